"""Base class for exclusively-owned audio device sessions."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union


class AudioSession(ABC):
    """Abstract base class for recording and playback sessions.

    A session binds one device to one file path between ``open`` and
    ``close``. ``close`` must be safe to call at any time, including after a
    failed ``open`` and more than once.
    """

    def __init__(self):
        self.path: Optional[Path] = None
        self.is_open = False

    @abstractmethod
    def open(self, path: Union[str, Path]):
        """
        Prepare and start the device on ``path``.

        Raises:
            PrepareError: If the device or file cannot be prepared
        """
        pass

    @abstractmethod
    def close(self):
        """Stop and release the device."""
        pass

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"<{type(self).__name__} {state} path={self.path}>"
