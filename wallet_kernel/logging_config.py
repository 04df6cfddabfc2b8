"""
Structured logging for the wallet kernel.

Every record under the ``wallet_kernel`` logger tree is written as one JSON
object per line.  Operation-scoped fields (correlation id, acting username,
operation name) live in a ContextVar and are stamped onto every record
emitted while they are bound, so a single ledger operation can be followed
through the log by its correlation id.

Record layout::

    {"ts": ..., "level": ..., "logger": ..., "message": "<event_name>",
     "correlation_id": ..., "username": ..., "operation": ...,
     <extra fields>, <exc_* fields and traceback when exc_info is set>}
"""

__all__ = [
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

ROOT_LOGGER_NAME = "wallet_kernel"

CONTEXT_FIELDS = ("correlation_id", "username", "operation")


class LogContext:
    """
    Operation-scoped log fields, safe across threads and asyncio tasks.

    Only the names in CONTEXT_FIELDS are carried; None never overwrites a
    bound value.
    """

    _fields: ContextVar[dict[str, str]] = ContextVar("wallet_log_context")

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(cls._fields.get({}))

    @classmethod
    def set(
        cls,
        *,
        correlation_id: str | None = None,
        username: str | None = None,
        operation: str | None = None,
    ) -> None:
        cls._fields.set(
            cls._merged(
                correlation_id=correlation_id,
                username=username,
                operation=operation,
            )
        )

    @classmethod
    def clear(cls) -> None:
        cls._fields.set({})

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Bind fields for the duration of a ``with`` block, then restore."""
        token = cls._fields.set(cls._merged(**fields))
        try:
            yield cls
        finally:
            cls._fields.reset(token)

    @classmethod
    def _merged(cls, **fields: str | None) -> dict[str, str]:
        merged = cls.get_all()
        for name, value in fields.items():
            if name in CONTEXT_FIELDS and value is not None:
                merged[name] = value
        return merged


# Attributes every LogRecord has; anything else on a record came from extra=
_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # WalletKernelError subclasses keep their context as public attributes
    for name, value in vars(exc).items():
        if not name.startswith("_") and name not in ("args", "code"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for name, value in vars(record).items():
            if name not in _RESERVED_ATTRS:
                payload.setdefault(name, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """``get_logger("services.ledger")`` -> ``wallet_kernel.services.ledger``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


_state_lock = threading.Lock()
_configured = False


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``wallet_kernel`` logger.

    Only the first call has an effect until ``reset_logging()``.  Records do
    not propagate to the root logger, so the interactive console stays clean.

    Args:
        level: Level for the ``wallet_kernel`` logger.
        stream: Stream for a StreamHandler when ``handler`` is not given;
            defaults to stderr.
        handler: Pre-built handler (the CLI passes a file handler).
    """
    global _configured
    with _state_lock:
        if _configured:
            return
        _configured = True

    target = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(target)


def reset_logging() -> None:
    """Drop the handler and allow ``configure_logging`` again. Tests only."""
    global _configured
    with _state_lock:
        _configured = False
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.WARNING)
