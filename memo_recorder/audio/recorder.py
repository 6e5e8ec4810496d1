"""Microphone capture into the memo file."""

import os
import queue
import threading
from pathlib import Path
from typing import Optional, Union

import soundfile as sf

try:
    import pyaudio
except ImportError:
    pyaudio = None

from ..config import AudioConfig
from ..utils.exceptions import PrepareError
from ..utils.logger import setup_logger
from .base import AudioSession
from .resampler import STORAGE_RATE, AudioResampler

logger = setup_logger(__name__)

# Narrow-band compressed speech in a plain WAV container. Fixed so that
# whatever was recorded can always be played back.
CONTAINER = "WAV"
ENCODING = "GSM610"


class RecordingSession(AudioSession):
    """Exclusive capture device writing to one target file."""

    def __init__(self, audio_config: Optional[AudioConfig] = None):
        super().__init__()
        self.audio_config = audio_config or AudioConfig()
        self.resampler = AudioResampler(self.audio_config.sample_rate, STORAGE_RATE)
        self.frames_written = 0

        self._audio = None
        self._stream = None
        self._sink: Optional[sf.SoundFile] = None
        self._writer: Optional[threading.Thread] = None
        self._chunks: queue.Queue = queue.Queue()
        self._write_failed = False

    def open(self, path: Union[str, Path]):
        """Open the microphone, start capturing and write to a partial file.

        The target file is only replaced once the take is closed, so a failed
        open leaves any earlier recording in place.
        """
        if pyaudio is None:
            raise PrepareError("PyAudio is not installed; recording is unavailable")

        self.path = Path(path)
        self.frames_written = 0
        self._write_failed = False
        self._chunks = queue.Queue()
        self.resampler.reset()
        try:
            self._sink = sf.SoundFile(
                str(self.partial_path),
                mode="w",
                samplerate=STORAGE_RATE,
                channels=self.audio_config.channels,
                format=CONTAINER,
                subtype=ENCODING,
            )
        except (RuntimeError, OSError) as e:  # LibsndfileError is a RuntimeError
            self.close()
            raise PrepareError(f"Cannot write recording to {self.path}: {e}") from e

        try:
            self._audio = pyaudio.PyAudio()
            self._stream = self._audio.open(
                format=getattr(pyaudio, f"pa{self.audio_config.format.title()}"),
                channels=self.audio_config.channels,
                rate=self.audio_config.sample_rate,
                input=True,
                input_device_index=self.audio_config.input_device,
                frames_per_buffer=self.audio_config.chunk_size,
                stream_callback=self._capture,
                start=False,
            )
            self._stream.start_stream()
        except (OSError, ValueError) as e:
            self.close()
            raise PrepareError(f"Cannot open capture device: {e}") from e

        self._writer = threading.Thread(target=self._drain, name="recording-writer", daemon=True)
        self._writer.start()
        self.is_open = True
        logger.debug(self.resampler.info)
        logger.info(f"Recording to {self.path}")

    @property
    def partial_path(self) -> Optional[Path]:
        """Hidden file next to the target that holds the take in progress."""
        if self.path is None:
            return None
        return self.path.with_name(f".{self.path.name}.part")

    def _capture(self, in_data, frame_count, time_info, status):
        """PortAudio callback; hands raw blocks to the writer thread."""
        if status:
            logger.debug(f"Capture status flags: {status}")
        self._chunks.put(in_data)
        return (None, pyaudio.paContinue)

    def _drain(self):
        while True:
            chunk = self._chunks.get()
            if chunk is None:
                # Filter tail still held by the resampler
                self._write(self.resampler.flush)
                break
            self._write(lambda: self.resampler.resample_chunk(chunk, self.audio_config.channels))

    def _write(self, produce):
        if self._write_failed:
            return
        try:
            samples = produce()
            self._sink.write(samples)
            self.frames_written += len(samples)
        except (RuntimeError, OSError) as e:
            # Nobody waits on this thread; drop the rest of the take
            logger.error(f"Failed writing recording to {self.path}: {e}")
            self._write_failed = True

    def close(self):
        """Stop capture, flush pending audio and move the take into place."""
        if self._stream is not None:
            try:
                if self._stream.is_active():
                    self._stream.stop_stream()
                self._stream.close()
            except OSError as e:
                logger.warning(f"Error stopping capture stream: {e}")
            self._stream = None

        if self._audio is not None:
            self._audio.terminate()
            self._audio = None

        if self._writer is not None:
            self._chunks.put(None)
            self._writer.join()
            self._writer = None

        sink_closed = False
        if self._sink is not None:
            try:
                self._sink.close()
                sink_closed = True
            except (RuntimeError, OSError) as e:
                logger.warning(f"Error closing {self.partial_path}: {e}")
            self._sink = None

        if self.is_open and sink_closed:
            try:
                os.replace(self.partial_path, self.path)
            except OSError as e:
                logger.error(f"Cannot move recording into {self.path}: {e}")
            else:
                seconds = self.frames_written / STORAGE_RATE
                logger.info(f"Saved {seconds:.1f}s of audio to {self.path}")
        elif self.partial_path is not None and self.partial_path.exists():
            self.partial_path.unlink()
        self.is_open = False
