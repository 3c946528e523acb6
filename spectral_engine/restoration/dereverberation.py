"""
Dereverberation Module - Remove room acoustics from recordings

Tracks a smoothed peak envelope per frequency bin and treats the decaying
part of that envelope as reverb. Each bin is attenuated by how much of
its energy the reverb estimate explains.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..buffer import AudioBuffer, check_sample_rate, map_channels
from ..transform.stft import FrameConfig, FrameProcessor

logger = logging.getLogger(__name__)


@dataclass
class DereverberationConfig:
    """Configuration for dereverberation."""
    # Intensity (0.0 to 1.0)
    intensity: float = 0.4

    # Large frames for fine frequency resolution
    fft_size: int = 8192
    overlap: float = 0.75

    # Same peak ceiling as the other spectral effects; None disables it
    ceiling: Optional[float] = 0.99

    def __post_init__(self):
        """Validate and clamp values."""
        self.intensity = max(0.0, min(1.0, self.intensity))

    @property
    def decay_rate(self) -> float:
        return 0.2 + self.intensity * 0.5

    @property
    def smoothing_time(self) -> float:
        """Envelope smoothing time in seconds (50-200 ms)."""
        return 0.05 + self.intensity * (0.2 - 0.05)


class Dereverberator:
    """
    Spectral envelope-tracking dereverberation.

    Principle: only attenuate. The suppression gain never exceeds 1, so
    the direct sound is left as it is and only the tail is pulled down.
    """

    def __init__(self, sample_rate: int, config: DereverberationConfig = None,
                 max_workers: int = 1):
        """
        Initialize dereverberator.

        Args:
            sample_rate: Sample rate in Hz
            config: Dereverberation configuration
            max_workers: Threads used to process channels side by side
        """
        self.sample_rate = sample_rate
        self.config = config or DereverberationConfig()
        self.max_workers = max_workers
        self.frames = FrameProcessor(FrameConfig(
            fft_size=self.config.fft_size,
            overlap=self.config.overlap,
            ceiling=self.config.ceiling,
        ))

        # Higher frequencies decay faster
        max_bin = self.config.fft_size // 2
        position = np.arange(max_bin + 1) / max_bin
        self.decay_factors = self.config.decay_rate ** np.sqrt(position)
        self.smoothing_coef = np.exp(-1.0 / (sample_rate * self.config.smoothing_time))

        logger.info(f"Initialized Dereverberator: sr={sample_rate}Hz, "
                    f"intensity={self.config.intensity}")

    def process(self, buffer: AudioBuffer) -> AudioBuffer:
        """
        Apply dereverberation to every channel.

        Args:
            buffer: Input audio

        Returns:
            Audio with reduced reverb

        Raises:
            InsufficientSamples: If the buffer is shorter than one frame
        """
        check_sample_rate(buffer, self.sample_rate)
        channels = map_channels(list(buffer.channels), self._process_mono, self.max_workers)

        logger.debug(f"Dereverberation: intensity={self.config.intensity}, "
                     f"decay_rate={self.config.decay_rate:.2f}")
        return buffer.with_channels(channels)

    def _process_mono(self, audio: np.ndarray) -> np.ndarray:
        # Running estimate, private to this channel and call
        envelope = np.zeros(self.frames.config.num_bins)
        decay_factors = self.decay_factors
        smoothing = self.smoothing_coef

        def suppress(real, imag, bins):
            magnitude = np.hypot(real, imag)
            np.maximum(magnitude, envelope * smoothing, out=envelope)

            reverb = envelope * decay_factors
            total = magnitude + reverb
            gain = np.ones_like(magnitude)
            np.divide(magnitude, total, out=gain, where=total > 0)
            gain = np.sqrt(gain)
            return real * gain, imag * gain

        return self.frames.process(audio, suppress)

    def get_info(self) -> dict:
        """Get dereverberator configuration and info."""
        return {
            "sample_rate": self.sample_rate,
            "config": {
                "intensity": self.config.intensity,
                "fft_size": self.config.fft_size,
                "overlap": self.config.overlap,
                "decay_rate": self.config.decay_rate,
                "smoothing_time": self.config.smoothing_time,
                "ceiling": self.config.ceiling,
            }
        }

    def __repr__(self) -> str:
        return (f"Dereverberator(sr={self.sample_rate}, "
                f"intensity={self.config.intensity})")


# Convenience function
def dereverberate(buffer: AudioBuffer, intensity: float = 0.4) -> AudioBuffer:
    """
    Apply dereverberation to audio.

    Args:
        buffer: Input audio
        intensity: Dereverberation intensity (0.0 to 1.0)

    Returns:
        Dereverberated audio
    """
    config = DereverberationConfig(intensity=intensity)
    return Dereverberator(buffer.sample_rate, config).process(buffer)
