"""
Centralized logging configuration for BarcodeStockWeb.

Every generate call fans out into a document thread and an archive thread,
and barcode encodes run on a small worker pool. Log lines therefore carry the
name of the thread that produced them so one generation can be followed
across all of its workers.

Log Format:
    2026-10-18 10:15:30 [INFO    ] [MainThread] barcode_stock_web.app - Application initialized
    2026-10-18 10:15:31 [INFO    ] [Gen-a1b2c3d4-doc] barcode_stock_web.generation.a1b2c3d4 - Document finalized
    2026-10-18 10:15:31 [WARNING ] [Encode_0] barcode_stock_web.services.document_composer - Skipping entry

Usage:
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.INFO, enable_file_logging=False)
    logger = get_logger(__name__)

    # Inside a generate call
    gen_logger = get_generation_logger(generation_id)
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


APP_LOGGER_NAME = "barcode_stock_web"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ThreadContextFilter(logging.Filter):
    """
    Logging filter that stamps the current thread onto each record.

    Adds ``thread_name`` and ``thread_id`` attributes used by LOG_FORMAT.
    Never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        current_thread = threading.current_thread()
        record.thread_name = current_thread.name
        record.thread_id = threading.get_ident()
        return True


def _rotating_handler(
    log_file: Path,
    level: int,
    formatter: logging.Formatter,
    thread_filter: logging.Filter,
) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=log_file,
        maxBytes=10 * 1024 * 1024,  # 10 MB per file
        backupCount=5,
        encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(thread_filter)
    return handler


def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure application logging with thread context.

    Sets up a console handler and, when enabled, a rotating application log
    plus a rotating ERROR-only log under ``log_dir``.

    Args:
        app_name: Name of the application root logger
        log_level: Minimum log level
        log_dir: Directory for log files (default: ./logs next to this file)
        enable_file_logging: Whether to write log files

    Returns:
        Configured application root logger
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False

    # Allows re-configuration (each create_app() call in tests)
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    thread_filter = ThreadContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(thread_filter)
    logger.addHandler(console_handler)

    if enable_file_logging:
        if log_dir is None:
            log_dir = Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        app_log_file = log_dir / f"{app_name}.log"
        logger.addHandler(
            _rotating_handler(app_log_file, log_level, formatter, thread_filter)
        )
        logger.addHandler(
            _rotating_handler(
                log_dir / f"{app_name}_error.log", logging.ERROR, formatter, thread_filter
            )
        )

        logger.info(f"File logging enabled: {app_log_file}")

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger under the application namespace.

    Example:
        get_logger("services.session_store")
        # -> "barcode_stock_web.services.session_store"
    """
    if not name.startswith(APP_LOGGER_NAME):
        name = f"{APP_LOGGER_NAME}.{name}"

    return logging.getLogger(name)


def get_generation_logger(generation_id: str) -> logging.Logger:
    """
    Get a logger dedicated to one generate call.

    Only the random suffix of the generation ID is used in the logger name.

    Example:
        get_generation_logger("20261018T101530-a1b2c3d4")
        # -> "barcode_stock_web.generation.a1b2c3d4"
    """
    short_id = generation_id.rsplit("-", 1)[-1]
    return logging.getLogger(f"{APP_LOGGER_NAME}.generation.{short_id}")


def set_thread_name(name: str) -> None:
    """Rename the current thread; shows up in the [thread_name] log field."""
    threading.current_thread().name = name
