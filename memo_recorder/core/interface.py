"""Console host for the record / play button."""

import os
import signal
import sys
from typing import Optional

from ..config import Config
from ..utils.logger import setup_logger
from .controller import ActionCycleController, Presentation

logger = setup_logger(__name__)

QUIT_COMMANDS = ("q", "quit", "exit")


class ConsoleView:
    """Renders the button label and icon as a line of text."""

    ICONS = {
        "ic_audio_record": "🔴",
        "ic_audio_stop_record": "⏹️",
        "ic_audio_play": "▶️",
        "ic_audio_stop_play": "⏹️",
    }

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self.current: Optional[Presentation] = None

    def render(self, presentation: Presentation):
        self.current = presentation
        icon = self.ICONS.get(presentation.icon, "")
        print(f"{icon} [Enter] {presentation.label}", file=self.stream, flush=True)

    def show_error(self, message: str):
        print(f"⚠️ {message}", file=self.stream, flush=True)


class RecorderInterface:
    """Wires the controller to the terminal.

    Every Enter press is one activation. The device is released whenever the
    process is backgrounded (Ctrl+Z) and when the interface shuts down.
    """

    def __init__(self, config: Config, view: Optional[ConsoleView] = None):
        self.config = config
        self.view = view or ConsoleView()
        self.controller = ActionCycleController(
            config.storage.target_path,
            view=self.view,
            audio_config=config.audio,
        )
        self._previous_tstp = None
        self._background_pending = False

    def run(self, input_func=input):
        """Read key presses until quit or end of input."""
        print(f"🎙️ Voice memo: {self.controller.target_path}")
        print("Press Enter to use the button, 'q' to quit.")
        self.install_signal_handlers()
        try:
            while True:
                try:
                    line = input_func()
                except EOFError:
                    break
                if line.strip().lower() in QUIT_COMMANDS:
                    break
                self.controller.activate()
                if self._background_pending:
                    self._background_pending = False
                    self._stop_process()
        finally:
            self.restore_signal_handlers()

    def install_signal_handlers(self):
        """Release the device when the process is stopped from the terminal."""
        if hasattr(signal, "SIGTSTP"):
            self._previous_tstp = signal.signal(signal.SIGTSTP, self._on_background)

    def restore_signal_handlers(self):
        if self._previous_tstp is not None:
            signal.signal(signal.SIGTSTP, self._previous_tstp)
            self._previous_tstp = None

    def _on_background(self, signum, frame):
        logger.info("Backgrounded, releasing audio device")
        self.controller.suspend()
        if self.controller.busy:
            # Interrupted mid-press; the controller releases once it finishes
            self._background_pending = True
            return
        self._stop_process()

    def _stop_process(self):
        # Stop for real, then re-arm once continued
        signal.signal(signal.SIGTSTP, signal.SIG_DFL)
        os.kill(os.getpid(), signal.SIGTSTP)
        signal.signal(signal.SIGTSTP, self._on_background)

    def cleanup(self):
        """Release any held device."""
        self.controller.suspend()
