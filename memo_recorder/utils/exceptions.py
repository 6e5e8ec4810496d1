"""Custom exception definitions for Voice Memo."""


class MemoRecorderError(Exception):
    """Base exception class for Voice Memo errors."""

    pass


class PrepareError(MemoRecorderError):
    """Raised when a recording or playback device cannot be configured or opened.

    Covers unwritable or unreadable paths, busy or missing devices and
    malformed audio data alike.
    """

    pass
