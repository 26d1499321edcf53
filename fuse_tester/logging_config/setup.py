"""Logging configuration: file, console and event-forwarding handlers."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Callable

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 3

# Libraries that are too chatty at DEBUG level
_NOISY_LOGGERS = ["pyvisa", "pyvisa_sim", "asyncio"]

LogRecordCallback = Callable[[logging.LogRecord], None]


class EventLogHandler(logging.Handler):
    """
    Forwards log records to a callback.

    Lets a consumer (a UI, a test) receive log records without knowing
    about the logging configuration. Records are dropped while no callback
    is set.
    """

    def __init__(self, callback: LogRecordCallback | None = None):
        super().__init__()
        self._callback = callback

    def set_callback(self, callback: LogRecordCallback | None) -> None:
        self._callback = callback

    def emit(self, record: logging.LogRecord) -> None:
        if self._callback is None:
            return
        try:
            self._callback(record)
        except Exception:
            self.handleError(record)


def setup_logging(
    log_file: str | Path = "fuse_tester.log",
    log_level: str = "INFO",
    event_handler: EventLogHandler | None = None,
) -> None:
    """
    Configure the root logger.

    Args:
        log_file: Path of the rotating log file
        log_level: Level name for the root logger
        event_handler: EventLogHandler forwarding records to a consumer, if any
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    file_handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=MAX_LOG_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if event_handler is not None:
        event_handler.setFormatter(formatter)
        root.addHandler(event_handler)

    if level <= logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
