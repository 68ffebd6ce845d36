"""
Logging configuration module.

Console output plus one log file per calendar day.
"""

import logging
import logging.handlers
import os
from datetime import datetime
from pathlib import Path

LOGGER_NAME = "src"
LOG_FILE_PREFIX = "jobhook"

# Fixed for the life of the process; only the date part of file names moves
PROCESS_STARTED = datetime.now().strftime("%H%M%S")


def _today() -> str:
    return datetime.now().strftime("%Y%m%d")


class DailyRotatingFileHandler(logging.handlers.BaseRotatingHandler):
    """
    Writes to <log_dir>/jobhook_YYYYMMDD_<HHMMSS>.log.

    HHMMSS is the process start time. The first record of a new day opens
    the next day's file.
    """

    def __init__(self, log_dir: str | Path = "logs", encoding: str = "utf-8"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.day = _today()
        super().__init__(self.path_for(self.day), mode="a", encoding=encoding)

    def path_for(self, day: str) -> str:
        return os.path.abspath(self.log_dir / f"{LOG_FILE_PREFIX}_{day}_{PROCESS_STARTED}.log")

    def shouldRollover(self, record: logging.LogRecord) -> bool:
        return _today() != self.day

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None
        self.day = _today()
        self.baseFilename = self.path_for(self.day)
        self.stream = self._open()


def setup_logging(
    log_level: str = "INFO",
    log_dir: str | Path = "logs",
    file_logging: bool = True,
) -> logging.Logger:
    """
    Configure the package logger and return it.

    Every module logs through ``logging.getLogger(__name__)``, so configuring
    the top-level package logger covers the engine, notifier and API.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for daily log files
        file_logging: Also write to a daily rotating file

    Returns:
        logging.Logger: Configured logger instance
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)

    # Prevent propagation to root logger (avoid duplicate logs)
    logger.propagate = False

    # Remove existing handlers (prevent duplicates)
    if logger.handlers:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if file_logging:
        file_handler = DailyRotatingFileHandler(log_dir=log_dir, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.info(f"Logging started - level: {log_level}, log file: {file_handler.baseFilename}")
    else:
        logger.info(f"Logging started - level: {log_level}")

    return logger
