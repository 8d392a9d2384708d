"""
Logging for the bridge.

One named logger shared by every module, writing to:
- the console, coloured by level
- a size-rotated file under ``logs/``
- Grafana Loki, only when ``LOKI_URL`` is set, pushed from a background thread

Serial frames are logged through ``hex_dump`` so TX/RX lines read the
same for both device families.
"""

import atexit
import logging
import os
import queue
import time
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from typing import Final

import colorlog
import httpx

from configs import APP_NAME, LOG_FILE, LOG_LEVEL, LOKI_URL


# =============================================================================
# Constants
# =============================================================================

LINE_FORMAT: Final[str] = "%(name)s | %(asctime)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s"
COLOR_LINE_FORMAT: Final[str] = "%(log_color)s" + LINE_FORMAT
LOKI_LINE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
FILE_BACKUPS: Final[int] = 3
LOKI_TIMEOUT_S: Final[float] = 2.0

LEVEL_COLORS: Final[dict[str, str]] = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


# =============================================================================
# Loki
# =============================================================================


def loki_payload(level: str, line: str, app: str) -> dict:
    """One-line push request body for the Loki push API."""
    return {
        "streams": [
            {
                "stream": {"app": app, "level": level},
                "values": [[str(time.time_ns()), line]],
            }
        ]
    }


class LokiHandler(logging.Handler):
    """
    Pushes every record to Loki with a short synchronous POST.

    Attached behind a QueueListener, so the POST runs off the event loop.

    A failed push is printed to stderr and never logged, so a dead Loki
    cannot feed back into the logger.

    Attributes:
        url: Loki push endpoint.
        app: Value of the ``app`` stream label.
    """

    def __init__(self, url: str, app: str, timeout: float = LOKI_TIMEOUT_S) -> None:
        super().__init__()
        self.url = url
        self.app = app
        self.timeout = timeout

    def emit(self, record: logging.LogRecord) -> None:
        try:
            body = loki_payload(record.levelname.upper(), self.format(record), self.app)
        except Exception:
            self.handleError(record)
            return
        try:
            httpx.post(self.url, json=body, timeout=self.timeout)
        except httpx.HTTPError as e:
            print(f"[Loki push failed]: {e}")


# =============================================================================
# Handlers
# =============================================================================


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(
        colorlog.ColoredFormatter(COLOR_LINE_FORMAT, datefmt=DATE_FORMAT, log_colors=LEVEL_COLORS)
    )
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=FILE_MAX_BYTES, backupCount=FILE_BACKUPS, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LINE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _loki_handler(url: str, app: str, level: int) -> logging.Handler:
    loki = LokiHandler(url, app)
    loki.setLevel(level)
    loki.setFormatter(logging.Formatter(LOKI_LINE_FORMAT, datefmt=DATE_FORMAT))

    # Pushes run on the listener thread so the event loop never waits on Loki
    records: queue.SimpleQueue = queue.SimpleQueue()
    listener = QueueListener(records, loki, respect_handler_level=True)
    listener.start()
    atexit.register(listener.stop)

    handler = QueueHandler(records)
    handler.setLevel(level)
    return handler


# =============================================================================
# Logger Factory
# =============================================================================


def get_logger(
    name: str,
    app: str = APP_NAME,
    log_file: str = LOG_FILE,
    level: int = logging.DEBUG,
    loki_url: str = LOKI_URL,
) -> logging.Logger:
    """
    Return the named logger, attaching its handlers on first use.

    Args:
        name: Logger name, shown as the first column.
        app: Loki ``app`` label.
        log_file: Rotating file path; its directory is created if missing.
        level: Threshold for the logger and every handler.
        loki_url: Loki push endpoint; empty skips the Loki handler.
    """
    log = logging.getLogger(name)
    log.setLevel(level)
    if log.handlers:
        return log

    log.addHandler(_console_handler(level))
    log.addHandler(_file_handler(log_file, level))
    if loki_url:
        log.addHandler(_loki_handler(loki_url, app, level))
    return log


def hex_dump(data: bytes) -> str:
    """Bytes as space separated uppercase hex, e.g. ``02 00 04``."""
    return data.hex(" ").upper()


logger = get_logger(
    name="BRIDGE",
    level=getattr(logging, LOG_LEVEL, logging.DEBUG),
)
