"""Configuration management for Voice Memo."""

from .settings import (
    Config,
    AudioConfig,
    StorageConfig,
    LoggingConfig,
)

__all__ = [
    "Config",
    "AudioConfig",
    "StorageConfig",
    "LoggingConfig",
]
