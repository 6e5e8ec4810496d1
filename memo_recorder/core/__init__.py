"""Core modules for Voice Memo."""

from .controller import ActionCycleController, Mode, Presentation, PRESENTATIONS
from .interface import ConsoleView, RecorderInterface

__all__ = [
    "ActionCycleController",
    "Mode",
    "Presentation",
    "PRESENTATIONS",
    "ConsoleView",
    "RecorderInterface",
]
