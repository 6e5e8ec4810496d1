"""Logging utilities for Voice Memo."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "memo_recorder"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class EmojiFormatter(logging.Formatter):
    """Custom formatter that adds emoji indicators to log messages."""

    EMOJI_MAP = {
        logging.DEBUG: "🐛",
        logging.INFO: "🟢",
        logging.WARNING: "🟡",
        logging.ERROR: "🛑",
        logging.CRITICAL: "🛑",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with emoji indicator.

        Args:
            record: Log record to format.

        Returns:
            Formatted log message with emoji.
        """
        emoji = self.EMOJI_MAP.get(record.levelno, "")
        return f"{emoji} {super().format(record)}"


def _package_logger() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(EmojiFormatter(DEFAULT_FORMAT))
        logger.addHandler(console_handler)
        logger.setLevel(logging.INFO)
    return logger


def setup_logger(name: str) -> logging.Logger:
    """Get a logger that reports through the package console handler.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger instance.
    """
    _package_logger()
    return logging.getLogger(name)


def configure_logging(
    level: str = "INFO",
    verbose: bool = False,
    directory: Optional[Path] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Apply level, format and optional file output to the package logger.

    Args:
        level: Level name used when not verbose.
        verbose: Force DEBUG level.
        directory: When set, also append to a daily log file in this directory.
        log_format: Format string for both handlers.

    Returns:
        The configured package logger.
    """
    logger = _package_logger()
    logger.setLevel(logging.DEBUG if verbose else getattr(logging, level.upper()))

    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            continue
        handler.setFormatter(EmojiFormatter(log_format))

    if directory is not None:
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        date_str = datetime.now().strftime("%Y-%m-%d")
        log_file = directory / f"memo-recorder-{date_str}.log"
        if not any(
            isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_file.absolute()
            for h in logger.handlers
        ):
            file_handler = logging.FileHandler(log_file, mode="a")
            file_handler.setFormatter(logging.Formatter(log_format))
            logger.addHandler(file_handler)

    return logger
