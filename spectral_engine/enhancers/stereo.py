"""
Stereo Imager - Frequency-dependent mid/side widening

Widens the side signal between 200 Hz and 12 kHz while keeping the bass
mono and easing off towards 20 kHz, so the result stays mono-compatible
and free of harsh top end.
"""

import logging
from dataclasses import dataclass

import numpy as np

from ..buffer import AudioBuffer, check_sample_rate
from ..transform.stft import FrameConfig, FrameProcessor

logger = logging.getLogger(__name__)


@dataclass
class StereoWidthConfig:
    """Configuration for stereo widening."""
    # Intensity (0.0 = bypass, 1.0 = widest)
    intensity: float = 0.5

    fft_size: int = 4096
    overlap: float = 0.75

    # Width ramps in below low_hz, holds to high_hz, fades out by top_hz
    low_hz: float = 200.0
    high_hz: float = 12000.0
    top_hz: float = 20000.0

    ceiling: float = 0.98

    def __post_init__(self):
        if not 0.0 <= self.intensity <= 1.0:
            raise ValueError(f"Intensity must be 0-1, got {self.intensity}")
        if not 0 < self.low_hz < self.high_hz < self.top_hz:
            raise ValueError("Expected 0 < low_hz < high_hz < top_hz")

    @property
    def width(self) -> float:
        return 0.2 + self.intensity * 0.8


class StereoImager:
    """
    Mid/side stereo width enhancer.

    Mono and single-channel input passes through unchanged; only the
    first two channels of a multi-channel buffer are widened.
    """

    def __init__(self, sample_rate: int, config: StereoWidthConfig = None):
        """
        Initialize stereo imager.

        Args:
            sample_rate: Sample rate in Hz
            config: Width configuration
        """
        self.sample_rate = sample_rate
        self.config = config or StereoWidthConfig()
        self.frames = FrameProcessor(FrameConfig(
            fft_size=self.config.fft_size,
            overlap=self.config.overlap,
            ceiling=self.config.ceiling,
        ))

        logger.info(f"Initialized StereoImager: sr={sample_rate}Hz, "
                    f"intensity={self.config.intensity}")

    def width_curve(self) -> np.ndarray:
        """Side boost per bin (0 = untouched)."""
        cfg = self.config
        freqs = self.frames.bin_frequencies(self.sample_rate)
        scale = np.full_like(freqs, cfg.width)

        low = freqs < cfg.low_hz
        scale[low] = cfg.width * (freqs[low] / cfg.low_hz)

        high = freqs > cfg.high_hz
        fade = np.minimum(1.0, (freqs[high] - cfg.high_hz) / (cfg.top_hz - cfg.high_hz))
        scale[high] = cfg.width * (1.0 - fade)
        return scale

    def process(self, buffer: AudioBuffer) -> AudioBuffer:
        """
        Widen the stereo image.

        Args:
            buffer: Input audio

        Returns:
            Widened audio (a copy when there is nothing to widen)

        Raises:
            InsufficientSamples: If the buffer is shorter than one frame
        """
        check_sample_rate(buffer, self.sample_rate)

        if buffer.num_channels < 2:
            logger.debug("Stereo imager: fewer than two channels, passing through")
            return buffer.copy()
        if self.config.intensity == 0.0:
            return buffer.copy()

        side_gain = 1.0 + self.width_curve()

        def widen(spectra, bins):
            (left_re, left_im), (right_re, right_im) = spectra
            mid_re = (left_re + right_re) * 0.5
            mid_im = (left_im + right_im) * 0.5
            side_re = (left_re - right_re) * 0.5 * side_gain
            side_im = (left_im - right_im) * 0.5 * side_gain
            return [
                (mid_re + side_re, mid_im + side_im),
                (mid_re - side_re, mid_im - side_im),
            ]

        left, right = self.frames.process_joint(
            [buffer.channels[0], buffer.channels[1]], widen
        )

        channels = buffer.channels.copy()
        channels[0] = left
        channels[1] = right
        return buffer.with_channels(channels)

    def get_info(self) -> dict:
        return {
            "sample_rate": self.sample_rate,
            "config": {
                "intensity": self.config.intensity,
                "width": self.config.width,
                "fft_size": self.config.fft_size,
                "low_hz": self.config.low_hz,
                "high_hz": self.config.high_hz,
            }
        }

    def __repr__(self) -> str:
        return (f"StereoImager(sr={self.sample_rate}, "
                f"intensity={self.config.intensity})")


def widen_stereo(buffer: AudioBuffer, intensity: float = 0.5) -> AudioBuffer:
    """
    Convenience function for stereo widening.

    Args:
        buffer: Input audio
        intensity: Width intensity (0.0-1.0)

    Returns:
        Widened audio
    """
    config = StereoWidthConfig(intensity=intensity)
    return StereoImager(buffer.sample_rate, config).process(buffer)
