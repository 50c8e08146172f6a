"""
Logging setup for cricauction.

Every subsystem logs under the "cricauction" namespace:

    cricauction.engine    bids, sales, rejections
    cricauction.timer     countdown expiry
    cricauction.sync      publish / poll failures
    cricauction.store     HTTP document traffic
    cricauction.storage   local cache
    cricauction.roster    imports

Console output is colored; the optional file log is plain text.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import colorlog

NAMESPACE = "cricauction"
LOG_FILE = "cricauction.log"

CONSOLE_FORMAT = "%(log_color)s%(asctime)s [%(name)s] %(levelname)-8s%(reset)s %(message)s"
FILE_FORMAT = "%(asctime)s [%(name)s] %(levelname)-8s %(message)s"
DATE_FORMAT = "%H:%M:%S"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


class _ConsoleHandler(colorlog.StreamHandler):
    """Writes to the current sys.stdout, even after it has been swapped."""

    def __init__(self):
        super().__init__(sys.stdout)

    @property
    def stream(self):
        return sys.stdout

    @stream.setter
    def stream(self, value):
        pass


class CricLogger:
    """Owns the handlers attached to the cricauction namespace"""

    _initialized = False
    _log_file: Optional[Path] = None

    @classmethod
    def setup(
        cls,
        level: int = logging.INFO,
        log_dir: Optional[str] = None,
        log_to_file: bool = True,
        force: bool = False,
    ):
        """
        Attach console (and file) handlers.

        Args:
            level: Logging level for every handler
            log_dir: Directory for cricauction.log (default ./logs)
            log_to_file: Whether to write the file log
            force: Replace handlers installed by an earlier call
        """
        if cls._initialized and not force:
            return

        root = logging.getLogger(NAMESPACE)
        root.setLevel(level)
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

        console = _ConsoleHandler()
        console.setLevel(level)
        console.setFormatter(
            colorlog.ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT, log_colors=LOG_COLORS)
        )
        root.addHandler(console)

        cls._log_file = None
        if log_to_file:
            directory = Path(log_dir) if log_dir else Path("logs")
            directory.mkdir(exist_ok=True, parents=True)
            cls._log_file = directory / LOG_FILE

            file_handler = logging.FileHandler(cls._log_file, encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            root.addHandler(file_handler)

        cls._initialized = True

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        # Console-only until the CLI configures logging properly
        if not cls._initialized:
            cls.setup(log_to_file=False)
        return logging.getLogger(f"{NAMESPACE}.{name}")

    @classmethod
    def log_file(cls) -> Optional[Path]:
        """Path of the active file log, if any."""
        return cls._log_file


def get_logger(name: str) -> logging.Logger:
    """Logger for one subsystem, e.g. get_logger("engine")"""
    return CricLogger.get_logger(name)


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    log_to_file: bool = True,
):
    """(Re)configure logging; later calls replace earlier handlers."""
    CricLogger.setup(level=level, log_dir=log_dir, log_to_file=log_to_file, force=True)
