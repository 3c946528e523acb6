"""
Noise Reducer - Spectral subtraction against an estimated noise profile

Handles:
- Background hiss
- Steady hum and room tone
- Broadband noise present in the first moments of a recording

The noise profile is taken from the head of each channel (the first
0.5 s, or a quarter of the signal if that is shorter), then every frame
is gated against it with a soft threshold.
"""

import logging
from dataclasses import dataclass

import numpy as np

from ..buffer import AudioBuffer, check_sample_rate, map_channels
from ..transform.stft import FrameConfig, FrameProcessor

logger = logging.getLogger(__name__)


@dataclass
class NoiseReductionConfig:
    """Configuration for spectral noise reduction."""
    # Strength of noise reduction (0.0 = gentle, 1.0 = aggressive)
    intensity: float = 0.5

    # 0.0 = basic, 1.0 = advanced (lower gate threshold)
    quality: float = 0.0

    # FFT parameters
    fft_size: int = 2048
    overlap: float = 0.75

    # Noise profile estimation
    profile_seconds: float = 0.5  # seconds at the head used as noise profile

    ceiling: float = 0.95

    def __post_init__(self):
        if not 0.0 <= self.intensity <= 1.0:
            raise ValueError("Intensity must be between 0.0 and 1.0")
        if not 0.0 <= self.quality <= 1.0:
            raise ValueError("Quality must be between 0.0 and 1.0")
        if self.profile_seconds <= 0:
            raise ValueError("Profile duration must be positive")

    @property
    def threshold(self) -> float:
        """Soft gate width above the noise floor (shrinks with intensity)."""
        return 0.1 - 0.02 * self.quality - 0.05 * self.intensity

    @property
    def softness(self) -> float:
        """
        Exponent of the soft gate curve.

        Basic mode keeps it at 0.2. Advanced mode starts softer (0.1) and
        reaches 0.2 at full intensity. Gated ratios are below 1, so a
        larger exponent removes more.
        """
        basic = 0.2
        advanced = 0.1 + 0.1 * self.intensity
        return basic * (1.0 - self.quality) + advanced * self.quality

    @property
    def floor_scale(self) -> float:
        return 0.5 + 0.5 * self.intensity


class NoiseReducer:
    """
    Spectral subtraction noise reduction.

    Key features:
    - Per-channel noise profile from the head of the signal
    - Soft-knee gate so bins fade out instead of switching off
    - Phase preserved exactly (real and imaginary parts share one gain)
    """

    def __init__(self, sample_rate: int = 44100, config: NoiseReductionConfig = None,
                 max_workers: int = 1):
        """
        Initialize noise reducer.

        Args:
            sample_rate: Audio sample rate
            config: Noise reduction configuration
            max_workers: Threads used to process channels side by side
        """
        self.sample_rate = sample_rate
        self.config = config or NoiseReductionConfig()
        self.max_workers = max_workers
        self.frames = FrameProcessor(FrameConfig(
            fft_size=self.config.fft_size,
            overlap=self.config.overlap,
            ceiling=self.config.ceiling,
        ))

        logger.info(f"Initialized NoiseReducer: sr={sample_rate}Hz, "
                    f"intensity={self.config.intensity}")

    def process(self, buffer: AudioBuffer) -> AudioBuffer:
        """
        Apply noise reduction to every channel.

        Args:
            buffer: Input audio (mono or multi-channel)

        Returns:
            Noise-reduced audio

        Raises:
            InsufficientSamples: If the buffer is shorter than one frame
        """
        check_sample_rate(buffer, self.sample_rate)
        channels = map_channels(list(buffer.channels), self._process_mono, self.max_workers)
        return buffer.with_channels(channels)

    def _process_mono(self, audio: np.ndarray) -> np.ndarray:
        """Process one channel with its own noise profile."""
        profile = self.estimate_noise_profile(audio)

        floor = profile * self.config.floor_scale
        threshold = self.config.threshold
        softness = self.config.softness

        def subtract(real, imag, bins):
            magnitude = np.hypot(real, imag)
            ratio = np.maximum(magnitude - floor, 0.0) / threshold
            gain = np.where(magnitude < floor + threshold, ratio ** softness, 1.0)
            return real * gain, imag * gain

        return self.frames.process(audio, subtract)

    def estimate_noise_profile(self, audio: np.ndarray) -> np.ndarray:
        """
        Estimate the per-bin noise magnitude from the head of the signal.

        Non-overlapping frames over the first min(profile_seconds, len/4)
        samples are averaged. A head shorter than one frame gives an
        all-zero profile.

        Returns:
            Mean magnitude per bin, length fft_size/2 + 1
        """
        head = int(min(self.config.profile_seconds * self.sample_rate, len(audio) / 4))
        spectrum = np.zeros(self.frames.config.num_bins)

        n_frames = 0
        for magnitude in self.frames.magnitude_frames(audio[:head],
                                                      hop_size=self.frames.fft_size):
            spectrum += magnitude
            n_frames += 1

        if n_frames == 0:
            logger.warning(f"Noise profile head ({head} samples) is shorter than one "
                           f"{self.frames.fft_size}-sample frame, using a zero profile")
            return spectrum

        return spectrum / n_frames

    def get_info(self) -> dict:
        """Get noise reducer configuration and info."""
        return {
            "sample_rate": self.sample_rate,
            "config": {
                "intensity": self.config.intensity,
                "quality": self.config.quality,
                "fft_size": self.config.fft_size,
                "overlap": self.config.overlap,
                "threshold": self.config.threshold,
                "softness": self.config.softness,
            }
        }

    def __repr__(self) -> str:
        return (f"NoiseReducer(sr={self.sample_rate}, "
                f"intensity={self.config.intensity})")


def reduce_noise(buffer: AudioBuffer, intensity: float = 0.5,
                 quality: float = 0.0) -> AudioBuffer:
    """
    Convenience function for noise reduction.

    Args:
        buffer: Input audio
        intensity: Reduction strength (0.0-1.0)
        quality: 0.0 basic, 1.0 advanced

    Returns:
        Noise-reduced audio
    """
    config = NoiseReductionConfig(intensity=intensity, quality=quality)
    reducer = NoiseReducer(buffer.sample_rate, config)
    return reducer.process(buffer)
