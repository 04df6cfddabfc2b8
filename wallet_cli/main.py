"""CLI main loop: wire config, logging and storage, then drive the controller."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from pathlib import Path

import yaml
from sqlalchemy.exc import SQLAlchemyError

from wallet_config import get_active_config
from wallet_config.loader import compute_checksum, log_level_number
from wallet_kernel.db.engine import create_tables, get_session, init_engine_from_url
from wallet_kernel.db.immutability import register_immutability_listeners
from wallet_kernel.domain.clock import SystemClock
from wallet_kernel.domain.messages import MessageBoard
from wallet_kernel.domain.user_session import UserSession
from wallet_kernel.exceptions import StorageFailureError
from wallet_kernel.logging_config import StructuredFormatter, configure_logging, get_logger
from wallet_kernel.selectors.ledger_selector import LedgerSelector
from wallet_kernel.services.ledger_service import LedgerService
from wallet_cli.controller import AppController
from wallet_cli.views import render_screen

logger = get_logger("cli")


class _FlushingFileHandler(logging.FileHandler):
    """FileHandler that flushes after every emit so the log file updates immediately."""

    def emit(self, record: logging.LogRecord) -> None:
        super().emit(record)
        self.flush()


def _setup_file_logging(log_file: str, level: int) -> Path:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = _FlushingFileHandler(str(log_path), mode="a")
    handler.setLevel(level)
    handler.setFormatter(StructuredFormatter())
    # File only: the console belongs to the interactive screens
    configure_logging(level=level, handler=handler)
    return log_path


def run_loop(
    controller: AppController,
    read_line: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> int:
    """
    Render, read one line, dispatch; until quit or end of input.

    Messages are expired once per iteration, before rendering.

    Raises:
        StorageFailureError: propagated from the ledger.
    """
    while True:
        controller.messages.expire()
        for line in render_screen(controller):
            write(line)
        try:
            line = read_line(controller.prompt())
        except (EOFError, KeyboardInterrupt):
            write("")
            break
        if not controller.handle(line):
            write("\n  Goodbye.\n")
            break
    return 0


def main() -> int:
    try:
        config = get_active_config()
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"  ERROR: invalid configuration: {exc}", file=sys.stderr)
        return 1

    log_path = _setup_file_logging(config.log_file, log_level_number(config))
    # Resolved config, now that the file handler is attached
    values = config.as_dict()
    logger.info(
        "ewallet_cli_starting",
        extra={
            "log_path": str(log_path),
            "config": values,
            "config_checksum": compute_checksum(values),
        },
    )

    try:
        init_engine_from_url(config.database_url, echo=config.echo_sql)
        create_tables()
    except SQLAlchemyError as exc:
        logger.error("engine_startup_failed", exc_info=True)
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1
    register_immutability_listeners()

    clock = SystemClock()
    session = get_session()
    service = LedgerService(
        session,
        UserSession(),
        clock=clock,
        history_limit=config.history_limit,
        allow_self_transfer=config.allow_self_transfer,
        currency_symbol=config.currency_symbol,
    )
    controller = AppController(
        service,
        MessageBoard(clock, config.message_timeout_seconds),
        selector=LedgerSelector(session),
        currency_symbol=config.currency_symbol,
    )
    print(f"  Logging to: {log_path}", file=sys.stderr)

    try:
        return run_loop(controller)
    except StorageFailureError as exc:
        logger.critical("ewallet_cli_aborted", exc_info=True)
        print(f"\n  ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        session.close()
        logger.info("ewallet_cli_stopped")


if __name__ == "__main__":
    sys.exit(main())
