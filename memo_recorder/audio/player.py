"""Audio playback of the memo file."""

import threading
from pathlib import Path
from typing import Callable, Optional, Union

import soundfile as sf

try:
    import sounddevice as sd
except (ImportError, OSError):  # OSError: PortAudio library not found
    sd = None

from ..config import AudioConfig
from ..utils.exceptions import PrepareError
from ..utils.logger import setup_logger
from .base import AudioSession

logger = setup_logger(__name__)


class PlaybackSession(AudioSession):
    """Exclusive output device streaming one source file.

    ``on_complete`` is called with the session, exactly once, when the
    stream reaches the end of the file. Stopping early through ``close``
    never triggers it.
    """

    def __init__(
        self,
        audio_config: Optional[AudioConfig] = None,
        on_complete: Optional[Callable[["PlaybackSession"], None]] = None,
    ):
        super().__init__()
        self.audio_config = audio_config or AudioConfig()
        self.on_complete = on_complete

        self._source: Optional[sf.SoundFile] = None
        self._stream = None
        self._reached_end = False
        self._closing = False
        self._completed = False

    def open(self, path: Union[str, Path]):
        """Open the source file and start streaming it to the output device."""
        if sd is None:
            raise PrepareError("sounddevice/PortAudio is not available; playback is unavailable")

        self.path = Path(path)
        if not self.path.exists():
            raise PrepareError(f"Nothing recorded yet at {self.path}")

        try:
            self._source = sf.SoundFile(str(self.path))
        except (RuntimeError, OSError) as e:  # LibsndfileError is a RuntimeError
            self.close()
            raise PrepareError(f"Cannot read {self.path}: {e}") from e

        try:
            self._stream = sd.OutputStream(
                samplerate=self._source.samplerate,
                channels=self._source.channels,
                dtype="float32",
                device=self.audio_config.output_device,
                callback=self._fill,
                finished_callback=self._finished,
            )
            self._stream.start()
        except (sd.PortAudioError, ValueError) as e:
            self.close()
            raise PrepareError(f"Cannot open output device: {e}") from e

        self.is_open = True
        logger.info(f"Playing {self.path}")

    def _fill(self, outdata, frames, time_info, status):
        """PortAudio callback; copies the next block of the file."""
        if status:
            logger.debug(f"Playback status flags: {status}")

        data = self._source.read(frames, dtype="float32", always_2d=True)
        data *= self.audio_config.volume
        count = len(data)
        outdata[:count] = data
        if count < frames:
            outdata[count:].fill(0)
            self._reached_end = True
            raise sd.CallbackStop

    def _finished(self):
        # Runs on the PortAudio thread, also after an explicit stop
        if self._reached_end and not self._closing and not self._completed:
            self._completed = True
            threading.Thread(
                target=self._notify_complete,
                name="playback-complete",
                daemon=True,
            ).start()

    def _notify_complete(self):
        logger.info("Playback finished")
        if self.on_complete is not None:
            self.on_complete(self)

    def close(self):
        """Stop playback and release the device and the source file."""
        self._closing = True

        if self._stream is not None:
            try:
                self._stream.stop()
                self._stream.close()
            except sd.PortAudioError as e:
                logger.warning(f"Error stopping playback stream: {e}")
            self._stream = None

        if self._source is not None:
            self._source.close()
            self._source = None

        self.is_open = False

    @property
    def reached_end(self) -> bool:
        """Whether the whole file has been handed to the device."""
        return self._reached_end
