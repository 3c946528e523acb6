"""
Audio Buffer - Immutable-by-convention multi-channel sample container

Every effect in the engine consumes one AudioBuffer and returns a new one.
Channel data is stored as float32 with shape (channels, samples).
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Sequence

import numpy as np

logger = logging.getLogger(__name__)


class AudioBuffer:
    """
    In-memory multi-channel audio with a shared sample rate.

    All channels have the same length. Effects never write into
    ``channels``; they build new arrays and wrap them with
    ``with_channels``.
    """

    def __init__(self, channels: np.ndarray, sample_rate: int):
        """
        Initialize audio buffer.

        Args:
            channels: Sample data shaped (channels, samples), or 1-D for mono
            sample_rate: Sample rate in Hz
        """
        if sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate}")

        data = np.asarray(channels)
        if data.ndim == 1:
            data = data[np.newaxis, :]
        elif data.ndim != 2:
            raise ValueError(f"Invalid audio shape: {data.shape}")
        if data.shape[0] < 1:
            raise ValueError("Audio buffer needs at least one channel")

        # Ensure float32
        self.channels = np.ascontiguousarray(data, dtype=np.float32)
        self.sample_rate = int(sample_rate)

    @classmethod
    def from_mono(cls, samples: np.ndarray, sample_rate: int) -> "AudioBuffer":
        """Wrap a single 1-D channel."""
        samples = np.asarray(samples)
        if samples.ndim != 1:
            raise ValueError(f"Mono samples must be 1-D, got shape {samples.shape}")
        return cls(samples[np.newaxis, :], sample_rate)

    @classmethod
    def from_frames(cls, frames: np.ndarray, sample_rate: int) -> "AudioBuffer":
        """
        Build a buffer from (samples, channels) data, the layout used by
        soundfile and most decoders.
        """
        frames = np.asarray(frames)
        if frames.ndim == 1:
            return cls.from_mono(frames, sample_rate)
        return cls(frames.T, sample_rate)

    @property
    def num_channels(self) -> int:
        return self.channels.shape[0]

    @property
    def num_samples(self) -> int:
        return self.channels.shape[1]

    @property
    def duration(self) -> float:
        """Get duration in seconds."""
        return self.num_samples / self.sample_rate

    def __len__(self) -> int:
        return self.num_samples

    def copy(self) -> "AudioBuffer":
        return AudioBuffer(self.channels.copy(), self.sample_rate)

    def with_channels(self, channels) -> "AudioBuffer":
        """
        Create a new buffer with the same sample rate and shape.

        Args:
            channels: New channel data, a 2-D array or a sequence of 1-D arrays

        Returns:
            Freshly allocated AudioBuffer
        """
        if isinstance(channels, np.ndarray):
            data = channels
        else:
            data = np.stack([np.asarray(ch) for ch in channels])
        if data.shape != self.channels.shape:
            raise ValueError(
                f"Effect changed buffer shape from {self.channels.shape} to {data.shape}"
            )
        return AudioBuffer(data, self.sample_rate)

    def to_frames(self) -> np.ndarray:
        """Return a (samples, channels) copy for encoders."""
        return self.channels.T.copy()

    def peak(self) -> float:
        """Peak absolute amplitude across all channels."""
        if self.num_samples == 0:
            return 0.0
        return float(np.max(np.abs(self.channels)))

    def __repr__(self) -> str:
        return (f"AudioBuffer(channels={self.num_channels}, "
                f"samples={self.num_samples}, sr={self.sample_rate})")


def check_sample_rate(buffer: AudioBuffer, sample_rate: int) -> None:
    """Reject buffers recorded at a different rate than a processor expects."""
    if buffer.sample_rate != sample_rate:
        raise ValueError(f"Buffer sample rate {buffer.sample_rate} Hz does not match "
                         f"processor rate {sample_rate} Hz")


def map_channels(channels: Sequence[np.ndarray],
                 fn: Callable[[np.ndarray], np.ndarray],
                 max_workers: int = 1) -> List[np.ndarray]:
    """
    Apply a per-channel function, optionally on a thread pool.

    Channels share no mutable state, so they can run side by side.
    Results keep channel order.
    """
    if max_workers <= 1 or len(channels) <= 1:
        return [fn(ch) for ch in channels]

    workers = min(max_workers, len(channels))
    logger.debug(f"Processing {len(channels)} channels on {workers} workers")
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(fn, channels))
