"""Shared utilities for Voice Memo."""

from .exceptions import MemoRecorderError, PrepareError
from .logger import configure_logging, setup_logger

__all__ = ["MemoRecorderError", "PrepareError", "configure_logging", "setup_logger"]
