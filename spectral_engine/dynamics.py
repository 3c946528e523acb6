"""
Dynamics Processor - Loudness normalization with compression and limiting

Signal chain per channel:
1. Static gain towards a target loudness (computed once over all channels)
2. Feed-forward compressor driven by an asymmetric envelope follower
3. Optional look-ahead peak limiter, or a plain peak ceiling when the
   limiter is off

Time domain only; no transform is involved.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .buffer import AudioBuffer, check_sample_rate, map_channels
from .utils import apply_ceiling, db_to_gain, estimate_loudness, measure_loudness_lufs, rms_level

logger = logging.getLogger(__name__)

LOUDNESS_METHODS = ("approximate", "bs1770")


@dataclass
class DynamicsConfig:
    """
    Configuration for dynamics processing.

    Fields left as None are derived from ``intensity`` and ``quality``.
    """
    # Intensity (0.0 to 1.0)
    intensity: float = 0.5

    # 0.0 = basic targets, 1.0 = advanced (louder target, deeper threshold)
    quality: float = 0.0

    # Compressor
    attack_s: float = 0.020
    release_s: Optional[float] = None
    ratio: Optional[float] = None
    threshold_db: Optional[float] = None

    # Loudness normalization
    target_loudness: Optional[float] = None
    gain_cap: float = 4.0
    loudness_method: str = "approximate"

    # Limiter
    use_limiter: Optional[bool] = None
    lookahead_s: float = 0.005
    limiter_threshold: float = 0.99
    limiter_release_s: float = 0.050

    # Applied when the limiter is off
    ceiling: float = 0.99

    def __post_init__(self):
        if not 0.0 <= self.intensity <= 1.0:
            raise ValueError("Intensity must be between 0.0 and 1.0")
        if not 0.0 <= self.quality <= 1.0:
            raise ValueError("Quality must be between 0.0 and 1.0")
        if self.attack_s <= 0:
            raise ValueError(f"Attack time must be positive, got {self.attack_s}")
        if self.release_s is not None and self.release_s <= 0:
            raise ValueError(f"Release time must be positive, got {self.release_s}")
        if self.ratio is not None and self.ratio < 1.0:
            raise ValueError(f"Ratio must be >= 1.0, got {self.ratio}")
        if self.gain_cap <= 0:
            raise ValueError(f"Gain cap must be positive, got {self.gain_cap}")
        if self.loudness_method not in LOUDNESS_METHODS:
            raise ValueError(f"Unknown loudness method: {self.loudness_method}. "
                             f"Available: {LOUDNESS_METHODS}")
        if self.lookahead_s <= 0 or self.limiter_release_s <= 0:
            raise ValueError("Limiter look-ahead and release must be positive")
        if not 0.0 < self.limiter_threshold <= 1.0:
            raise ValueError("Limiter threshold must be in (0, 1]")

    @property
    def target(self) -> float:
        """Target loudness in LU(FS)."""
        if self.target_loudness is not None:
            return self.target_loudness
        slack = 1.0 - self.intensity
        basic = -16.0 - slack * 8.0
        advanced = -14.0 - slack * 10.0
        return basic * (1.0 - self.quality) + advanced * self.quality

    @property
    def threshold(self) -> float:
        """Compressor threshold in dB."""
        if self.threshold_db is not None:
            return self.threshold_db
        slack = 1.0 - self.intensity
        basic = -20.0 - slack * 10.0
        advanced = -24.0 - slack * 12.0
        return basic * (1.0 - self.quality) + advanced * self.quality

    @property
    def compression_ratio(self) -> float:
        if self.ratio is not None:
            return self.ratio
        return 1.0 + self.intensity * 3.0

    @property
    def release(self) -> float:
        """Compressor release in seconds (100-300 ms)."""
        if self.release_s is not None:
            return self.release_s
        return 0.100 + self.intensity * 0.200

    @property
    def limiter_enabled(self) -> bool:
        if self.use_limiter is not None:
            return self.use_limiter
        return self.intensity > 0.7


class LookAheadLimiter:
    """
    Peak limiter with a short look-ahead window.

    Every sample waits ``ceil(sr * lookahead)`` steps before it leaves;
    the gain applied when it leaves is derived from the peak of everything
    still waiting, itself included. Gain drops instantly and recovers
    exponentially, so no emitted sample can exceed the threshold.
    """

    def __init__(self, sample_rate: int, lookahead_s: float = 0.005,
                 threshold: float = 0.99, release_s: float = 0.050):
        self.sample_rate = sample_rate
        self.threshold = threshold
        self.delay = max(1, int(math.ceil(sample_rate * lookahead_s)))
        self.release_coef = math.exp(-1.0 / (sample_rate * release_s))

    def gain_envelope(self, audio: np.ndarray) -> np.ndarray:
        """
        Limiter gain after each input sample has been buffered.

        Returns:
            Array of gains, one per input sample
        """
        # Peak over the window of delay+1 samples ending at each input
        padded = np.concatenate([np.zeros(self.delay), np.abs(audio)])
        peaks = sliding_window_view(padded, self.delay + 1).max(axis=1)

        threshold = self.threshold
        release = self.release_coef
        gains = np.empty(len(audio))
        gain = 1.0
        for i, peak in enumerate(peaks.tolist()):
            if peak > threshold:
                gain = min(gain, threshold / peak)
            else:
                gain = release * gain + (1.0 - release)
            gains[i] = gain
        return gains

    def process(self, audio: np.ndarray) -> np.ndarray:
        """
        Limit one channel.

        The output is aligned with the input (the look-ahead delay is
        removed) and has the same length; the final buffered samples are
        flushed with the last gain.
        """
        audio = np.asarray(audio, dtype=np.float64)
        n = len(audio)
        if n == 0:
            return audio.copy()

        gains = self.gain_envelope(audio)
        # Sample i leaves the delay line when input i + delay arrives
        leave_at = np.minimum(np.arange(n) + self.delay, n - 1)
        return audio * gains[leave_at]

    def __repr__(self) -> str:
        return (f"LookAheadLimiter(sr={self.sample_rate}, delay={self.delay}, "
                f"threshold={self.threshold})")


class DynamicsProcessor:
    """
    Loudness normalizer with envelope-follower compression.

    Usage:
        processor = DynamicsProcessor(44100, DynamicsConfig(intensity=0.8))
        louder = processor.process(buffer)
    """

    def __init__(self, sample_rate: int, config: DynamicsConfig = None, max_workers: int = 1):
        """
        Initialize dynamics processor.

        Args:
            sample_rate: Sample rate in Hz
            config: Dynamics configuration
            max_workers: Threads used to process channels side by side
        """
        self.sample_rate = sample_rate
        self.config = config or DynamicsConfig()
        self.max_workers = max_workers

        self.attack_coef = math.exp(-1.0 / (sample_rate * self.config.attack_s))
        self.release_coef = math.exp(-1.0 / (sample_rate * self.config.release))
        self.threshold_linear = db_to_gain(self.config.threshold)

        self.limiter = None
        if self.config.limiter_enabled:
            self.limiter = LookAheadLimiter(
                sample_rate,
                lookahead_s=self.config.lookahead_s,
                threshold=self.config.limiter_threshold,
                release_s=self.config.limiter_release_s,
            )

        logger.info(f"Initialized DynamicsProcessor: sr={sample_rate}Hz, "
                    f"intensity={self.config.intensity}, ratio={self.config.compression_ratio:.2f}, "
                    f"limiter={'on' if self.limiter else 'off'}")

    def measure_loudness(self, buffer: AudioBuffer) -> float:
        """Loudness estimate used for normalization."""
        if self.config.loudness_method == "bs1770":
            try:
                return measure_loudness_lufs(buffer.channels, buffer.sample_rate)
            except ValueError as e:
                logger.warning(f"BS.1770 measurement unavailable ({e}), "
                               f"using RMS approximation")
        return estimate_loudness(rms_level(buffer.channels))

    def gain_factor(self, buffer: AudioBuffer) -> float:
        """
        Static gain towards the target loudness, capped at ``gain_cap``.

        Silence gets unity gain.
        """
        loudness = self.measure_loudness(buffer)
        if not np.isfinite(loudness):
            return 1.0
        gain = db_to_gain(self.config.target - loudness)
        return min(self.config.gain_cap, gain)

    def compress(self, audio: np.ndarray, gain_factor: float) -> np.ndarray:
        """
        Apply static gain and compression to one channel.

        Args:
            audio: Input samples
            gain_factor: Normalization gain from ``gain_factor``

        Returns:
            Compressed samples (float64)
        """
        attack = self.attack_coef
        release = self.release_coef
        threshold = self.threshold_linear
        exponent = 1.0 / self.config.compression_ratio - 1.0

        output = np.empty(len(audio))
        envelope = 0.0
        for i, sample in enumerate(np.asarray(audio, dtype=np.float64).tolist()):
            level = abs(sample)
            coef = attack if level > envelope else release
            envelope = coef * envelope + (1.0 - coef) * level

            gain = 1.0
            driven = envelope * gain_factor
            if driven > threshold:
                gain = (driven / threshold) ** exponent

            output[i] = sample * gain_factor * gain
        return output

    def process(self, buffer: AudioBuffer) -> AudioBuffer:
        """
        Normalize and compress every channel.

        Args:
            buffer: Input audio

        Returns:
            Processed audio with peaks at or below the limiter threshold
            (limiter on) or the ceiling (limiter off)
        """
        check_sample_rate(buffer, self.sample_rate)
        gain_factor = self.gain_factor(buffer)

        def process_channel(audio):
            compressed = self.compress(audio, gain_factor)
            if self.limiter is not None:
                compressed = self.limiter.process(compressed)
            return compressed

        channels = map_channels(list(buffer.channels), process_channel, self.max_workers)
        if self.limiter is None:
            channels, _ = apply_ceiling(channels, self.config.ceiling)

        logger.debug(f"Dynamics: gain_factor={gain_factor:.3f}, "
                     f"target={self.config.target:.1f}, threshold={self.config.threshold:.1f}dB")
        return buffer.with_channels(channels)

    def get_info(self) -> dict:
        """Get processor configuration and info."""
        return {
            "sample_rate": self.sample_rate,
            "config": {
                "intensity": self.config.intensity,
                "quality": self.config.quality,
                "target_loudness": self.config.target,
                "threshold_db": self.config.threshold,
                "ratio": self.config.compression_ratio,
                "attack_s": self.config.attack_s,
                "release_s": self.config.release,
                "limiter": self.config.limiter_enabled,
                "loudness_method": self.config.loudness_method,
            }
        }

    def __repr__(self) -> str:
        return (f"DynamicsProcessor(sr={self.sample_rate}, "
                f"intensity={self.config.intensity}, quality={self.config.quality})")


# Convenience function
def normalize_dynamics(buffer: AudioBuffer, intensity: float = 0.5,
                       quality: float = 0.0) -> AudioBuffer:
    """
    Apply loudness normalization and compression.

    Args:
        buffer: Input audio
        intensity: Normalization intensity (0.0 to 1.0)
        quality: 0.0 basic, 1.0 advanced

    Returns:
        Processed audio
    """
    config = DynamicsConfig(intensity=intensity, quality=quality)
    return DynamicsProcessor(buffer.sample_rate, config).process(buffer)
