"""Audio resampling from the capture rate to the storage rate."""

from fractions import Fraction
from typing import Optional

import numpy as np
from scipy import signal

STORAGE_RATE = 8000


class AudioResampler:
    """Handles resampling captured audio down to the narrow-band storage rate.

    ``resample`` converts a whole signal at once. ``process`` and ``flush``
    convert a continuous stream block by block, carrying filter history
    across blocks, and produce the same samples as ``resample`` on the
    concatenated stream.
    """

    def __init__(self, source_rate: int, target_rate: int = STORAGE_RATE):
        """
        Initialize the resampler.

        Args:
            source_rate: The input sample rate in Hz
            target_rate: The target sample rate in Hz (default 8000 for GSM)
        """
        self.source_rate = source_rate
        self.target_rate = target_rate
        self.needs_resampling = source_rate != target_rate
        self.up = 1
        self.down = 1

        if self.needs_resampling:
            # For common rates, use known ratios
            if source_rate == 48000 and target_rate == 8000:
                self.up, self.down = 1, 6
            elif source_rate == 44100 and target_rate == 8000:
                # 8000/44100 = 80/441
                self.up, self.down = 80, 441
            elif source_rate == 16000 and target_rate == 8000:
                self.up, self.down = 1, 2
            else:
                frac = Fraction(target_rate, source_rate).limit_denominator(1000)
                self.up = frac.numerator
                self.down = frac.denominator

            # Same anti-aliasing filter and delay compensation as resample_poly
            max_rate = max(self.up, self.down)
            half_len = 10 * max_rate
            taps = signal.firwin(2 * half_len + 1, 1.0 / max_rate, window=("kaiser", 5.0))
            pre_pad = self.down - half_len % self.down
            self._taps = np.concatenate((np.zeros(pre_pad), taps * self.up))
            self._skip = (half_len + pre_pad) // self.down
            self._width = -(-len(self._taps) // self.up)

        self.reset()

    def reset(self):
        """Forget any stream history."""
        self._history: Optional[np.ndarray] = None
        self._start = 0
        self._received = 0
        self._emitted = 0
        self._dtype = np.dtype(np.int16)

    def resample(self, audio_data: np.ndarray) -> np.ndarray:
        """
        Resample a complete signal to the target rate.

        Args:
            audio_data: Input samples, shape (frames,) or (frames, channels)

        Returns:
            Resampled audio at target rate, same dtype as the input
        """
        if not self.needs_resampling or len(audio_data) == 0:
            return audio_data

        # resample_poly applies an anti-aliasing filter
        resampled = signal.resample_poly(audio_data, self.up, self.down, axis=0)
        return self._cast(resampled, audio_data.dtype)

    def process(self, audio_data: np.ndarray) -> np.ndarray:
        """
        Resample the next block of a continuous stream.

        Output lags the input by the filter delay; ``flush`` returns the rest.

        Args:
            audio_data: Input samples, shape (frames,) or (frames, channels)

        Returns:
            Every output sample that the input so far fully determines
        """
        if not self.needs_resampling:
            return audio_data

        self._dtype = audio_data.dtype
        block = audio_data.reshape(len(audio_data), -1).astype(np.float64)
        if self._history is None:
            self._history = np.zeros((0, block.shape[1]))
        self._history = np.concatenate((self._history, block))
        self._received += len(block)

        ready = max(0, self._total_outputs() - self._skip)
        return self._shape_like(self._emit(ready), audio_data)

    def flush(self) -> np.ndarray:
        """Return the tail of the stream, treating what follows as silence."""
        if not self.needs_resampling or self._history is None:
            self.reset()
            return np.zeros((0, 1), dtype=self._dtype)

        tail = self._cast(self._emit(self._total_outputs()), self._dtype)
        self.reset()
        return tail

    def resample_chunk(self, chunk: bytes, channels: int = 1) -> np.ndarray:
        """
        Resample the next raw int16 capture chunk of a stream.

        Args:
            chunk: Raw interleaved int16 bytes from the capture device
            channels: Number of interleaved channels

        Returns:
            Resampled int16 samples, shape (frames, channels)
        """
        samples = np.frombuffer(chunk, dtype=np.int16).reshape(-1, channels)
        return self.process(samples)

    def _total_outputs(self) -> int:
        return -(-self._received * self.up // self.down)

    def _emit(self, count: int) -> np.ndarray:
        channels = self._history.shape[1]
        if count <= self._emitted:
            return np.zeros((0, channels))
        if len(self._history) == 0:
            silent = np.zeros((count - self._emitted, channels))
            self._emitted = count
            return silent

        # Output n is sum_i x[i] * taps[t - i*up] with t = (n + skip) * down
        n = np.arange(self._emitted, count)
        t = (n + self._skip) * self.down
        k = np.arange(self._width)
        tap_index = (t % self.up)[:, None] + k[None, :] * self.up
        sample_index = (t // self.up)[:, None] - k[None, :]

        valid = (
            (tap_index < len(self._taps))
            & (sample_index >= 0)
            & (sample_index < self._received)
        )
        weights = np.where(valid, self._taps[np.minimum(tap_index, len(self._taps) - 1)], 0.0)
        rows = np.clip(sample_index - self._start, 0, len(self._history) - 1)
        output = np.einsum("nk,nkc->nc", weights, self._history[rows])

        self._emitted = count
        # Drop input that no later output can reach
        oldest_needed = ((count + self._skip) * self.down) // self.up - self._width + 1
        drop = min(max(0, oldest_needed - self._start), len(self._history))
        self._history = self._history[drop:]
        self._start += drop
        return output

    def _shape_like(self, output: np.ndarray, audio_data: np.ndarray) -> np.ndarray:
        output = self._cast(output, audio_data.dtype)
        return output[:, 0] if audio_data.ndim == 1 else output

    @staticmethod
    def _cast(resampled: np.ndarray, dtype) -> np.ndarray:
        if np.issubdtype(dtype, np.integer):
            info = np.iinfo(dtype)
            resampled = np.clip(np.round(resampled), info.min, info.max)
        return resampled.astype(dtype)

    @property
    def info(self) -> str:
        """Get information about the resampling configuration."""
        if not self.needs_resampling:
            return f"No resampling needed (already at {self.target_rate} Hz)"

        return (f"Resampling from {self.source_rate} Hz to {self.target_rate} Hz "
                f"(ratio: {self.up}/{self.down})")
