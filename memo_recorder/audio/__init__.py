"""Audio recording and playback sessions."""

from .base import AudioSession
from .recorder import RecordingSession
from .player import PlaybackSession

__all__ = ["AudioSession", "RecordingSession", "PlaybackSession"]
