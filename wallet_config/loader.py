"""
Configuration Loader (``wallet_config.loader``).

Responsibility
--------------
Loads YAML files, merges them with environment overrides and parses the
result into a frozen ``WalletConfig``.  Runtime callers go through
``wallet_config.get_active_config()``; the functions here are exposed for
tests and tooling.

Invariants enforced
-------------------
* Unknown keys are rejected, so a typo never silently falls back to a
  default.
* Every value is type-checked; booleans must be real YAML booleans.
* ``compute_checksum`` gives a deterministic fingerprint of the resolved
  values for the load trace.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key, wrong type or out-of-range value  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from wallet_config.schema import WalletConfig

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

CONFIG_PATH_ENV = "EWALLET_CONFIG"

# Environment variable -> config key
ENV_OVERRIDES: dict[str, str] = {
    "EWALLET_DATABASE_URL": "database_url",
    "EWALLET_HISTORY_LIMIT": "history_limit",
    "EWALLET_LOG_LEVEL": "log_level",
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def apply_env_overrides(
    data: dict[str, Any], environ: Mapping[str, str]
) -> dict[str, Any]:
    """Return a copy of ``data`` with environment overrides applied."""
    merged = dict(data)
    for env_name, key in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None or raw == "":
            continue
        if key == "history_limit":
            try:
                merged[key] = int(raw)
            except ValueError:
                raise ValueError(f"{env_name} must be an integer, got {raw!r}")
        else:
            merged[key] = raw
    return merged


def _require(key: str, value: Any, expected: type | tuple[type, ...]) -> None:
    # bool is an int subclass; only accept it where a bool is expected
    if isinstance(value, bool) and expected is not bool:
        raise ValueError(f"{key} must not be a boolean, got {value!r}")
    if not isinstance(value, expected):
        raise ValueError(
            f"{key} has the wrong type: expected {expected}, got {type(value).__name__}"
        )


def parse_config(data: Mapping[str, Any]) -> WalletConfig:
    """
    Parse a merged mapping into a ``WalletConfig``.

    Keys absent from ``data`` keep the dataclass default.

    Raises:
        ValueError: on unknown keys or invalid values.
    """
    unknown = set(data) - WalletConfig.field_names()
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    values = dict(data)
    for key in ("database_url", "currency_symbol", "log_level", "log_file"):
        if key in values:
            _require(key, values[key], str)
    for key in ("echo_sql", "allow_self_transfer"):
        if key in values:
            _require(key, values[key], bool)
    if "history_limit" in values:
        _require("history_limit", values["history_limit"], int)
        if values["history_limit"] <= 0:
            raise ValueError(
                f"history_limit must be positive, got {values['history_limit']}"
            )
    if "message_timeout_seconds" in values:
        _require("message_timeout_seconds", values["message_timeout_seconds"], (int, float))
        if values["message_timeout_seconds"] <= 0:
            raise ValueError(
                "message_timeout_seconds must be positive, "
                f"got {values['message_timeout_seconds']}"
            )
        values["message_timeout_seconds"] = float(values["message_timeout_seconds"])
    if "log_level" in values:
        level = values["log_level"].upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}, got {values['log_level']!r}")
        values["log_level"] = level
    if "database_url" in values and not values["database_url"].startswith("sqlite"):
        raise ValueError(f"Only SQLite URLs are supported, got {values['database_url']!r}")

    return WalletConfig(**values)


def load_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> WalletConfig:
    """
    Resolve the configuration: defaults, then ``config_path`` (or the file
    named by EWALLET_CONFIG), then environment overrides.
    """
    env = environ if environ is not None else {}
    data = load_yaml_file(DEFAULTS_PATH)

    path = config_path
    if path is None and env.get(CONFIG_PATH_ENV):
        path = Path(env[CONFIG_PATH_ENV])
    if path is not None:
        data.update(load_yaml_file(path))

    return parse_config(apply_env_overrides(data, env))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def log_level_number(config: WalletConfig) -> int:
    return logging.getLevelName(config.log_level)
