"""Configuration settings for Voice Memo."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class AudioConfig:
    """Audio capture and playback configuration."""

    chunk_size: int = 1024
    channels: int = 1
    sample_rate: int = 16000  # Capture rate; recordings are stored at 8000 Hz
    format: str = "int16"
    volume: float = 1.0
    input_device: Optional[int] = None
    output_device: Optional[int] = None


@dataclass
class StorageConfig:
    """Where the single memo is kept."""

    target_path: Path = field(default_factory=lambda: Path.home() / "audiorecorder.wav")


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    directory: Optional[Path] = None


@dataclass
class Config:
    """Main configuration container."""

    audio: AudioConfig
    storage: StorageConfig
    logging: LoggingConfig
    verbose: bool = False

    @classmethod
    def default(cls) -> "Config":
        """Create default configuration."""
        return cls(
            audio=AudioConfig(),
            storage=StorageConfig(),
            logging=LoggingConfig(),
        )

    @classmethod
    def from_args(cls, **kwargs) -> "Config":
        """Create configuration from command-line arguments."""
        config = cls.default()

        # None means "not given on the command line"
        if kwargs.get("output") is not None:
            config.storage.target_path = Path(kwargs["output"]).expanduser()
        if kwargs.get("sample_rate") is not None:
            config.audio.sample_rate = kwargs["sample_rate"]
        if kwargs.get("volume") is not None:
            config.audio.volume = max(0.0, min(1.0, kwargs["volume"]))
        if kwargs.get("input_device") is not None:
            config.audio.input_device = kwargs["input_device"]
        if kwargs.get("output_device") is not None:
            config.audio.output_device = kwargs["output_device"]
        if kwargs.get("log_dir") is not None:
            config.logging.directory = Path(kwargs["log_dir"])
        if "verbose" in kwargs:
            config.verbose = bool(kwargs["verbose"])

        return config
