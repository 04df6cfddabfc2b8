"""
WalletConfig schema.

The resolved runtime configuration: packaged defaults, overlaid by an
optional YAML file, overlaid by environment variables.  Parsed by the
loader into this frozen dataclass; nothing else reads configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class WalletConfig:
    """Runtime configuration for the wallet."""

    database_url: str = "sqlite:///ewallet.db"
    echo_sql: bool = False
    currency_symbol: str = "$"
    history_limit: int = 10
    message_timeout_seconds: float = 5.0
    allow_self_transfer: bool = False
    log_level: str = "INFO"
    log_file: str = "logs/ewallet.log"

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))

    def as_dict(self) -> dict[str, object]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
