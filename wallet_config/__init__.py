"""
wallet_config -- single public entrypoint for runtime configuration.

Responsibility:
    ``get_active_config()`` is the only way to obtain configuration at
    runtime.  No other component reads YAML files or EWALLET_*
    environment variables directly.

Architecture position:
    Sits above ``wallet_kernel`` and below ``wallet_cli``.  The kernel
    never imports from this package; the CLI passes the values it needs
    into kernel constructors.

Failure modes:
    - ``FileNotFoundError`` -- EWALLET_CONFIG names a missing file.
    - ``yaml.YAMLError`` -- a configuration file is not valid YAML.
    - ``ValueError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful call logs ``wallet_config_loaded`` with the resolved
    values and their checksum.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from wallet_config.loader import compute_checksum, load_config
from wallet_config.schema import WalletConfig

__all__ = ["WalletConfig", "get_active_config"]

_logger = logging.getLogger("wallet_kernel.config")


def get_active_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> WalletConfig:
    """
    The ONLY public configuration entrypoint.

    Args:
        config_path: Explicit YAML file to overlay on the defaults.  When
            None, the file named by EWALLET_CONFIG is used if set.
        environ: Environment to read overrides from.  Defaults to
            ``os.environ``.

    Returns:
        The resolved, frozen WalletConfig.
    """
    config = load_config(
        config_path=config_path,
        environ=os.environ if environ is None else environ,
    )
    values = config.as_dict()
    _logger.info(
        "wallet_config_loaded",
        extra={"config": values, "checksum": compute_checksum(values)},
    )
    return config
