"""
Equalizer Module - Frequency-domain gain shaping

Two interchangeable curves run through the same STFT driver:
- MultibandEqualizer: low/mid/high gains split at two crossovers, with
  linear cross-fades so no band edge is audible
- ParametricEqualizer: any number of raised-cosine bell bands measured in
  octaves (used by the clarity preset)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np

from ..buffer import AudioBuffer, check_sample_rate, map_channels
from ..transform.stft import FrameConfig, FrameProcessor
from ..utils import db_to_gain

logger = logging.getLogger(__name__)

# Curves closer than this to 1.0 on every bin are treated as bypass
UNITY_TOLERANCE = 1e-12


@dataclass(frozen=True)
class BandDescriptor:
    """One bell band of a parametric equalizer."""
    frequency_hz: float
    gain_db: float
    bandwidth_octaves: float

    def __post_init__(self):
        if self.frequency_hz <= 0:
            raise ValueError(f"Band frequency must be positive, got {self.frequency_hz}")
        if self.bandwidth_octaves <= 0:
            raise ValueError(f"Bandwidth must be positive, got {self.bandwidth_octaves}")


@dataclass
class EqualizerConfig:
    """Configuration for the three-band equalizer."""
    low_gain_db: float = 0.0
    mid_gain_db: float = 0.0
    high_gain_db: float = 0.0

    # 0.0 = basic (300 Hz / 3.5 kHz), 1.0 = advanced (250 Hz / 4 kHz)
    quality: float = 0.0

    fft_size: int = 4096
    overlap: float = 0.75

    # Total width of each cross-fade as a share of the transform size
    transition_fraction: float = 0.05

    ceiling: float = 0.99

    def __post_init__(self):
        for name in ("low_gain_db", "mid_gain_db", "high_gain_db"):
            value = getattr(self, name)
            if not -24.0 <= value <= 24.0:
                raise ValueError(f"{name} must be within ±24 dB, got {value}")
        if not 0.0 <= self.quality <= 1.0:
            raise ValueError("Quality must be between 0.0 and 1.0")
        if not 0.0 <= self.transition_fraction <= 0.5:
            raise ValueError("Transition fraction must be between 0.0 and 0.5")

    @property
    def low_crossover_hz(self) -> float:
        return 300.0 - 50.0 * self.quality

    @property
    def high_crossover_hz(self) -> float:
        return 3500.0 + 500.0 * self.quality


@dataclass
class ParametricEqConfig:
    """Configuration for the bell-band equalizer."""
    bands: Tuple[BandDescriptor, ...] = field(default_factory=tuple)
    fft_size: int = 4096
    overlap: float = 0.75
    ceiling: float = 0.99

    def __post_init__(self):
        self.bands = tuple(self.bands)


class SpectralGainEffect(ABC):
    """
    Base class for effects that multiply every frame by a fixed per-bin
    gain curve.
    """

    def __init__(self, sample_rate: int, frame_config: FrameConfig, max_workers: int = 1):
        self.sample_rate = sample_rate
        self.max_workers = max_workers
        self.frames = FrameProcessor(frame_config)

    @abstractmethod
    def gain_curve(self) -> np.ndarray:
        """Linear gain for bins 0..N/2."""
        pass

    def process(self, buffer: AudioBuffer) -> AudioBuffer:
        """
        Apply the gain curve to every channel.

        A unity curve returns a copy of the input.

        Raises:
            InsufficientSamples: If the buffer is shorter than one frame
        """
        check_sample_rate(buffer, self.sample_rate)
        curve = self.gain_curve()

        if np.allclose(curve, 1.0, rtol=0.0, atol=UNITY_TOLERANCE):
            logger.debug(f"{type(self).__name__}: flat curve, passing audio through")
            return buffer.copy()

        def apply_curve(real, imag, bins):
            return real * curve, imag * curve

        channels = map_channels(
            list(buffer.channels),
            lambda audio: self.frames.process(audio, apply_curve),
            self.max_workers,
        )
        return buffer.with_channels(channels)


class MultibandEqualizer(SpectralGainEffect):
    """
    Three-band crossover equalizer.

    Gains are step functions of frequency joined by linear cross-fades
    centred on each crossover bin. A fade is narrowed when it would reach
    past DC, Nyquist or the midpoint between the crossovers, so each band
    keeps a flat region at its configured gain.
    """

    def __init__(self, sample_rate: int, config: EqualizerConfig = None, max_workers: int = 1):
        """
        Initialize equalizer.

        Args:
            sample_rate: Sample rate in Hz
            config: Band gains and crossover quality
            max_workers: Threads used to process channels side by side
        """
        self.config = config or EqualizerConfig()
        super().__init__(sample_rate, FrameConfig(
            fft_size=self.config.fft_size,
            overlap=self.config.overlap,
            ceiling=self.config.ceiling,
        ), max_workers)

        logger.info(f"Initialized MultibandEqualizer: sr={sample_rate}Hz, "
                    f"gains=({self.config.low_gain_db}, {self.config.mid_gain_db}, "
                    f"{self.config.high_gain_db}) dB")

    def crossover_bins(self) -> Tuple[int, int]:
        n = self.frames.fft_size
        low_bin = int(round(self.config.low_crossover_hz / self.sample_rate * n))
        high_bin = int(round(self.config.high_crossover_hz / self.sample_rate * n))
        return low_bin, high_bin

    def gain_curve(self) -> np.ndarray:
        low = db_to_gain(self.config.low_gain_db)
        mid = db_to_gain(self.config.mid_gain_db)
        high = db_to_gain(self.config.high_gain_db)

        num_bins = self.frames.config.num_bins
        bins = np.arange(num_bins)
        low_bin, high_bin = self.crossover_bins()

        half_width = int(self.frames.fft_size * self.config.transition_fraction) // 2
        gap = max(0, (high_bin - low_bin) // 2)
        low_half = min(half_width, low_bin // 2, gap)
        high_half = max(0, min(half_width, gap, (num_bins - 1 - high_bin) // 2))

        low_side = _crossfade(bins, low_bin, low_half, low, mid)
        high_side = _crossfade(bins, high_bin, high_half, mid, high)
        return np.where(bins < low_bin + gap, low_side, high_side)

    def get_info(self) -> dict:
        low_bin, high_bin = self.crossover_bins()
        return {
            "sample_rate": self.sample_rate,
            "config": {
                "low_gain_db": self.config.low_gain_db,
                "mid_gain_db": self.config.mid_gain_db,
                "high_gain_db": self.config.high_gain_db,
                "low_crossover_hz": self.config.low_crossover_hz,
                "high_crossover_hz": self.config.high_crossover_hz,
                "crossover_bins": (low_bin, high_bin),
            }
        }

    def __repr__(self) -> str:
        return (f"MultibandEqualizer(sr={self.sample_rate}, "
                f"low={self.config.low_gain_db}, mid={self.config.mid_gain_db}, "
                f"high={self.config.high_gain_db})")


class ParametricEqualizer(SpectralGainEffect):
    """Bell-curve equalizer over an arbitrary list of bands."""

    def __init__(self, sample_rate: int, config: ParametricEqConfig = None, max_workers: int = 1):
        self.config = config or ParametricEqConfig()
        super().__init__(sample_rate, FrameConfig(
            fft_size=self.config.fft_size,
            overlap=self.config.overlap,
            ceiling=self.config.ceiling,
        ), max_workers)

        logger.info(f"Initialized ParametricEqualizer: sr={sample_rate}Hz, "
                    f"{len(self.config.bands)} bands")

    def gain_curve(self) -> np.ndarray:
        freqs = self.frames.bin_frequencies(self.sample_rate)
        curve = np.ones_like(freqs)

        for band in self.config.bands:
            curve *= bell_gain(freqs, band)
        return curve

    def get_info(self) -> dict:
        return {
            "sample_rate": self.sample_rate,
            "config": {
                "bands": [
                    {"frequency_hz": b.frequency_hz, "gain_db": b.gain_db,
                     "bandwidth_octaves": b.bandwidth_octaves}
                    for b in self.config.bands
                ],
                "fft_size": self.config.fft_size,
            }
        }

    def __repr__(self) -> str:
        return f"ParametricEqualizer(sr={self.sample_rate}, bands={len(self.config.bands)})"


def _crossfade(bins: np.ndarray, centre: int, half: int,
               below: float, above: float) -> np.ndarray:
    """Linear fade from ``below`` to ``above`` over [centre-half, centre+half]."""
    if half <= 0:
        return np.where(bins < centre, below, above)
    mix = np.clip((bins - (centre - half)) / (2.0 * half), 0.0, 1.0)
    return below * (1.0 - mix) + above * mix


def bell_gain(freqs: np.ndarray, band: BandDescriptor) -> np.ndarray:
    """
    Raised-cosine bell in log-frequency.

    gain = 1 + (10^(dB/20) − 1)·0.5·(1 + cos(π·Δ/width)) for |Δ| < width,
    where Δ is the distance from the centre in octaves. DC is untouched.
    """
    with np.errstate(divide="ignore"):
        delta = np.log2(np.asarray(freqs, dtype=np.float64) / band.frequency_hz)
    width = band.bandwidth_octaves
    inside = np.abs(delta) < width

    shape = np.zeros_like(delta)
    shape[inside] = 0.5 * (1.0 + np.cos(np.pi * delta[inside] / width))
    return 1.0 + (db_to_gain(band.gain_db) - 1.0) * shape


def clarity_bands(intensity: float) -> List[BandDescriptor]:
    """
    Presence and clarity boosts for speech/vocal intelligibility.

    Args:
        intensity: 0.0-1.0

    Returns:
        Two bands: 2.5 kHz presence (3-12 dB) and 5 kHz clarity (1-6 dB)
    """
    intensity = max(0.0, min(1.0, intensity))
    return [
        BandDescriptor(2500.0, 3.0 + intensity * 9.0, 1.0 + intensity * 0.5),
        BandDescriptor(5000.0, 1.0 + intensity * 5.0, 0.8 + intensity * 0.3),
    ]


def equalize(buffer: AudioBuffer, low_gain_db: float = 0.0, mid_gain_db: float = 0.0,
             high_gain_db: float = 0.0, quality: float = 0.0) -> AudioBuffer:
    """
    Apply the three-band equalizer.

    Args:
        buffer: Input audio
        low_gain_db: Gain below the low crossover
        mid_gain_db: Gain between the crossovers
        high_gain_db: Gain above the high crossover
        quality: 0.0 basic crossovers, 1.0 advanced

    Returns:
        Equalized audio
    """
    config = EqualizerConfig(low_gain_db=low_gain_db, mid_gain_db=mid_gain_db,
                             high_gain_db=high_gain_db, quality=quality)
    return MultibandEqualizer(buffer.sample_rate, config).process(buffer)


def apply_bands(buffer: AudioBuffer, bands: Sequence[BandDescriptor]) -> AudioBuffer:
    """Apply an arbitrary set of bell bands."""
    config = ParametricEqConfig(bands=tuple(bands))
    return ParametricEqualizer(buffer.sample_rate, config).process(buffer)


def enhance_clarity(buffer: AudioBuffer, intensity: float = 0.6) -> AudioBuffer:
    """Apply the presence/clarity preset."""
    return apply_bands(buffer, clarity_bands(intensity))
