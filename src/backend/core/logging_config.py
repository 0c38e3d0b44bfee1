"""
Logging configuration for the BranchOps API.

File handlers sit behind a QueueHandler so that log writes never block the
event loop; a QueueListener drains the queue on a background thread.
Every record is tagged with the correlation id of the request that produced it.
"""

import atexit
import logging
import logging.handlers
import queue
import sys
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from core.middleware.correlation import get_correlation_id

# Global queue listener for cleanup
_queue_listener: Optional[logging.handlers.QueueListener] = None

CONSOLE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(correlation_id)s | %(message)s"
FILE_FORMAT = (
    "%(asctime)s | %(name)s | %(levelname)s | %(correlation_id)s | "
    "%(funcName)s:%(lineno)d | %(message)s"
)


class LogConfig(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    enable_file_logging: bool = True
    log_dir: str = "logs"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    enable_console: bool = True
    enable_query_logging: bool = False


class CorrelationIdFilter(logging.Filter):
    """Attach the current request's correlation id to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        return True


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    grey = "\x1b[38;21m"
    yellow = "\x1b[33;21m"
    red = "\x1b[31;21m"
    bold_red = "\x1b[31;1m"
    blue = "\x1b[34;21m"
    reset = "\x1b[0m"

    COLORS = {
        logging.DEBUG: grey,
        logging.INFO: blue,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red,
    }

    def format(self, record):
        color = self.COLORS.get(record.levelno, self.grey)
        # Format a copy so file handlers never see the escape codes
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.reset}"
        return super().format(colored) + self.reset


def _rotating_handler(config: LogConfig, filename: str, formatter: logging.Formatter):
    handler = logging.handlers.RotatingFileHandler(
        Path(config.log_dir) / filename,
        maxBytes=config.max_file_size,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(getattr(logging, config.level.upper()))
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: Optional[LogConfig] = None) -> None:
    """Setup application logging with configuration.

    - Console handler writes directly (stdout is cheap)
    - File handlers run behind a QueueListener thread
    - database.log only receives SQLAlchemy and db-layer records
    """
    global _queue_listener

    if config is None:
        config = LogConfig()

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None

    level = getattr(logging, config.level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    correlation_filter = CorrelationIdFilter()

    if config.enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.addFilter(correlation_filter)
        console_handler.setFormatter(
            ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt=config.date_format)
        )
        root_logger.addHandler(console_handler)

    if config.enable_file_logging:
        Path(config.log_dir).mkdir(parents=True, exist_ok=True)
        file_formatter = logging.Formatter(fmt=FILE_FORMAT, datefmt=config.date_format)

        app_handler = _rotating_handler(config, "app.log", file_formatter)
        db_handler = _rotating_handler(config, "database.log", file_formatter)
        db_handler.addFilter(
            lambda record: record.name.startswith(("sqlalchemy", "core.database", "core.decorators"))
        )

        log_queue = queue.Queue(-1)
        queue_handler = logging.handlers.QueueHandler(log_queue)
        # Filter before enqueueing: the listener thread has no request context
        queue_handler.addFilter(correlation_filter)
        root_logger.addHandler(queue_handler)

        _queue_listener = logging.handlers.QueueListener(
            log_queue,
            app_handler,
            db_handler,
            respect_handler_level=True,
        )
        _queue_listener.start()
        atexit.register(stop_queue_listener)

    sqlalchemy_logger = logging.getLogger("sqlalchemy.engine")
    if config.enable_query_logging:
        sqlalchemy_logger.setLevel(level)
    else:
        sqlalchemy_logger.setLevel(logging.WARNING)


def stop_queue_listener() -> None:
    """Stop the queue listener gracefully.

    Called automatically on exit via atexit.
    Can also be called manually during shutdown.
    """
    global _queue_listener

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None


# Uvicorn logging configuration, passed to uvicorn.run(log_config=...)
UVICORN_LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "()": "uvicorn.logging.DefaultFormatter",
            "fmt": "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "access": {
            "()": "uvicorn.logging.AccessFormatter",
            "fmt": '%(asctime)s | %(name)s | %(levelname)s | %(client_addr)s - "%(request_line)s" %(status_code)s',
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "default": {
            "formatter": "default",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        },
        "access": {
            "formatter": "access",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
    },
}
