"""Single-button record / stop / play / stop cycle."""

import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from ..audio import AudioSession, PlaybackSession, RecordingSession
from ..config import AudioConfig
from ..utils.exceptions import PrepareError
from ..utils.logger import setup_logger

logger = setup_logger(__name__)


class Mode(Enum):
    """Which action the next button press performs."""
    READY_TO_RECORD = "ready_to_record"
    RECORDING = "recording"
    READY_TO_PLAY = "ready_to_play"
    PLAYING = "playing"


@dataclass(frozen=True)
class Presentation:
    """Status label and icon identifier shown for a mode."""
    label: str
    icon: str


PRESENTATIONS = {
    Mode.READY_TO_RECORD: Presentation("record", "ic_audio_record"),
    Mode.RECORDING: Presentation("stop recording", "ic_audio_stop_record"),
    Mode.READY_TO_PLAY: Presentation("play", "ic_audio_play"),
    Mode.PLAYING: Presentation("stop playing", "ic_audio_stop_play"),
}


class ActionCycleController:
    """Owns the mode and the one open device session.

    ``activate`` (button press), ``on_playback_completed`` (device thread)
    and ``suspend`` (host lifecycle) may arrive from different threads; all of
    them run under one lock guarding the mode and the session.

    Args:
        target_path: File used as recording sink and playback source
        view: Receives ``render(presentation)`` after every transition and
            ``show_error(message)`` when a device cannot be prepared
        audio_config: Passed to the default session factories
        recorder_factory: Builds a fresh recording session
        player_factory: Builds a fresh playback session; called with
            ``on_complete``
    """

    def __init__(
        self,
        target_path: Union[str, Path],
        view=None,
        audio_config: Optional[AudioConfig] = None,
        recorder_factory: Optional[Callable[[], AudioSession]] = None,
        player_factory: Optional[Callable[..., AudioSession]] = None,
    ):
        self.view = view
        self.audio_config = audio_config or AudioConfig()
        self._recorder_factory = recorder_factory or (
            lambda: RecordingSession(self.audio_config)
        )
        self._player_factory = player_factory or (
            lambda on_complete: PlaybackSession(self.audio_config, on_complete=on_complete)
        )
        self._lock = threading.RLock()
        self._session: Optional[AudioSession] = None
        self._busy = False
        self._suspend_pending = False
        self._actions = {
            Mode.READY_TO_RECORD: self._start_recording,
            Mode.RECORDING: self._stop_recording,
            Mode.READY_TO_PLAY: self._start_playing,
            Mode.PLAYING: self._stop_playing,
        }
        self.initialize(target_path)

    def initialize(self, target_path: Union[str, Path]):
        """Reset to READY_TO_RECORD on ``target_path``, releasing any session."""
        with self._lock:
            self._release()
            self._target_path = Path(target_path)
            self._mode = Mode.READY_TO_RECORD
            self.last_error = None
            logger.debug(f"Controller ready, target {self._target_path}")
            self._render()

    # -- public entry points ------------------------------------------------

    def activate(self):
        """Perform the action for the current mode and advance the cycle."""
        with self._lock:
            logger.debug(f"Activate in {self._mode.name}")
            self._busy = True
            try:
                self._actions[self._mode]()
            finally:
                self._busy = False
                if self._suspend_pending:
                    self._suspend_pending = False
                    logger.info(f"Deferred suspend in {self._mode.name}, releasing device")
                    self._release()

    def on_playback_completed(self, session: Optional[AudioSession] = None):
        """End playback because the stream ran out.

        Ignored unless playing. When ``session`` is given it must still be
        the current session; a notification from a session that was already
        released is stale.
        """
        with self._lock:
            if self._mode is not Mode.PLAYING:
                logger.debug(f"Completion ignored in {self._mode.name}")
                return
            if session is not None and session is not self._session:
                logger.debug("Completion from a released session ignored")
                return
            self._stop_playing()

    def suspend(self):
        """Release any open session; mode and outputs stay as they are.

        A signal handler may call this on the thread that is inside
        ``activate``. The release then waits until the action has finished
        so that a session opened by that action is not left behind.
        """
        with self._lock:
            if self._busy:
                self._suspend_pending = True
                return
            if self._session is not None:
                logger.info(f"Suspending in {self._mode.name}, releasing device")
            self._release()

    # -- actions --------------------------------------------------------------

    def _start_recording(self):
        if self._open(self._recorder_factory()):
            self._transition(Mode.RECORDING)

    def _stop_recording(self):
        self._release()
        self._transition(Mode.READY_TO_PLAY)

    def _start_playing(self):
        if self._open(self._player_factory(on_complete=self.on_playback_completed)):
            self._transition(Mode.PLAYING)

    def _stop_playing(self):
        self._release()
        self._transition(Mode.READY_TO_RECORD)

    # -- helpers --------------------------------------------------------------

    def _open(self, session: AudioSession) -> bool:
        try:
            session.open(self._target_path)
        except PrepareError as e:
            session.close()
            self.last_error = e
            logger.error(f"Cannot {self.label}: {e}")
            if self.view is not None:
                self.view.show_error(str(e))
            return False
        self._session = session
        return True

    def _release(self):
        session, self._session = self._session, None
        if session is not None:
            session.close()

    def _transition(self, mode: Mode):
        logger.debug(f"{self._mode.name} -> {mode.name}")
        self._mode = mode
        self.last_error = None
        self._render()

    def _render(self):
        if self.view is not None:
            self.view.render(self.presentation)

    # -- context management ---------------------------------------------------

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.suspend()
        return False

    # -- observable state -----------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def presentation(self) -> Presentation:
        return PRESENTATIONS[self._mode]

    @property
    def label(self) -> str:
        return self.presentation.label

    @property
    def icon(self) -> str:
        return self.presentation.icon

    @property
    def target_path(self) -> Path:
        return self._target_path

    @property
    def busy(self) -> bool:
        """True while an action is running."""
        return self._busy

    @property
    def session(self) -> Optional[AudioSession]:
        return self._session

    @property
    def is_recording(self) -> bool:
        with self._lock:
            return self._session is not None and self._mode is Mode.RECORDING

    @property
    def is_playing(self) -> bool:
        with self._lock:
            return self._session is not None and self._mode is Mode.PLAYING
