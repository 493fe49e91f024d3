"""
Logging configuration for the import commodity report.

Writes logs to a rotating file in the top-level logs directory and to stdout
(coloured when stdout is a terminal).
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# ANSI escape codes for colors
COLORS = {
    logging.DEBUG: "\x1b[34m",  # Blue
    logging.INFO: "\x1b[32m",  # Green
    logging.WARNING: "\x1b[33m",  # Yellow
    logging.ERROR: "\x1b[31m",  # Red
    logging.CRITICAL: "\x1b[41m",  # Red background
}
RESET = "\x1b[0m"

DEFAULT_LOG_LEVEL = "INFO"

# src/import_commodity_report/utils -> project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent

LOG_DIR = Path(os.environ.get("IMPORT_REPORT_LOG_DIR", PROJECT_ROOT / "logs"))
LOG_FILE = LOG_DIR / "import_commodity_report.log"

_logging_initialized = False


class ColoredFormatter(logging.Formatter):
    """
    Formatter that colours the whole line by level.
    Only applies color if stdout is a TTY.
    """

    def __init__(self, fmt=None, datefmt=None, style="%", validate=True, *, defaults=None):
        super().__init__(fmt, datefmt, style, validate, defaults=defaults)
        self.use_color = sys.stdout.isatty()

    def format(self, record):
        log_msg = super().format(record)

        if self.use_color and record.levelno in COLORS:
            return f"{COLORS[record.levelno]}{log_msg}{RESET}"
        return log_msg


def setup_logging(log_level=None):
    """
    Set up logging for the project. Safe to call more than once; a repeated
    call only adjusts the level.

    Args:
        log_level (str, optional): Log level name. Defaults to the LOG_LEVEL
            environment variable, then INFO.

    Returns:
        logging.Logger: Configured root logger
    """
    global _logging_initialized

    if log_level is None:
        log_level = os.environ.get("LOG_LEVEL", DEFAULT_LOG_LEVEL)
    numeric_level = LOG_LEVELS.get(log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()

    if _logging_initialized:
        root_logger.setLevel(numeric_level)
        for handler in root_logger.handlers:
            handler.setLevel(numeric_level)
        return root_logger

    root_logger.setLevel(numeric_level)

    # Clear any existing handlers to avoid duplicate logs
    if root_logger.handlers:
        root_logger.handlers.clear()

    file_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
    )
    console_formatter = ColoredFormatter(fmt="%(asctime)s - %(levelname)s - %(message)s")

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,  # 10MB max size, keep 5 backups
    )
    file_handler.setLevel(numeric_level)
    file_handler.setFormatter(file_formatter)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(console_formatter)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    root_logger.info(f"Logging initialized at level {log_level}")

    _logging_initialized = True

    return root_logger


def get_logger(name):
    """
    Get a logger for a specific module, setting up logging on first use.

    Args:
        name (str): Name of the module (typically __name__)

    Returns:
        logging.Logger: Logger for the specified module
    """
    if not _logging_initialized:
        setup_logging()

    return logging.getLogger(name)
