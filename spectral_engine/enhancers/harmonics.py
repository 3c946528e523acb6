"""
Harmonic Saturator - Tube and tape style waveshaping

Time-domain only. Both models blend the shaped signal with the dry
signal by ``amount``, so amount 0 is an exact bypass.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np
from scipy import signal

from ..buffer import AudioBuffer, check_sample_rate, map_channels

logger = logging.getLogger(__name__)


class SaturationModel(Enum):
    """Waveshaping character."""
    TUBE = "tube"  # Asymmetric, emphasises even harmonics
    TAPE = "tape"  # Symmetric, with high-frequency roll-off


@dataclass
class SaturationConfig:
    """Configuration for harmonic saturation."""
    model: SaturationModel = SaturationModel.TAPE

    # Drive and wet/dry blend (0.0 = bypass)
    amount: float = 0.15

    def __post_init__(self):
        if isinstance(self.model, str):
            self.model = SaturationModel(self.model)
        if not 0.0 <= self.amount <= 1.0:
            raise ValueError(f"Amount must be 0-1, got {self.amount}")


class HarmonicSaturator:
    """Adds harmonic warmth through nonlinear waveshaping."""

    def __init__(self, sample_rate: int, config: SaturationConfig = None,
                 max_workers: int = 1):
        self.sample_rate = sample_rate
        self.config = config or SaturationConfig()
        self.max_workers = max_workers

        logger.info(f"Initialized HarmonicSaturator: sr={sample_rate}Hz, "
                    f"model={self.config.model.value}, amount={self.config.amount}")

    def process(self, buffer: AudioBuffer) -> AudioBuffer:
        """
        Saturate every channel.

        Args:
            buffer: Input audio

        Returns:
            Saturated audio (a copy when amount is 0)
        """
        check_sample_rate(buffer, self.sample_rate)

        if self.config.amount == 0.0:
            return buffer.copy()

        shaper = tube_saturate if self.config.model == SaturationModel.TUBE else tape_saturate
        amount = self.config.amount
        channels = map_channels(
            list(buffer.channels),
            lambda audio: shaper(np.asarray(audio, dtype=np.float64), amount),
            self.max_workers,
        )
        return buffer.with_channels(channels)

    def get_info(self) -> dict:
        return {
            "sample_rate": self.sample_rate,
            "config": {
                "model": self.config.model.value,
                "amount": self.config.amount,
            }
        }

    def __repr__(self) -> str:
        return (f"HarmonicSaturator(sr={self.sample_rate}, model={self.config.model.value}, "
                f"amount={self.config.amount})")


def tube_saturate(audio: np.ndarray, amount: float) -> np.ndarray:
    """
    Asymmetric tanh soft clip.

    The negative half-cycle gets slightly less drive and a small level
    drop, which skews the waveform and produces even harmonics.
    """
    drive = 1.0 + amount * 4.0
    negative_drive = drive - amount * 0.1

    wet = np.where(
        audio > 0,
        np.tanh(audio * drive) / drive,
        np.tanh(audio * negative_drive) / negative_drive * (1.0 - amount * 0.2),
    )
    return audio * (1.0 - amount) + wet * amount


def tape_saturate(audio: np.ndarray, amount: float) -> np.ndarray:
    """
    Symmetric tanh soft clip between two smoothing stages.

    The smoothing coefficient grows with ``amount`` and rolls off the
    top end the way magnetic tape does.
    """
    drive = 1.0 + amount * 3.0
    coeff = 0.2 + amount * 0.6

    # x[n]·(1−c) + x[n−1]·c
    smoothed = signal.lfilter([1.0 - coeff, coeff], [1.0], audio)
    saturated = np.tanh(smoothed * drive) / drive
    # y[n] = s[n]·(1−c) + y[n−1]·c
    wet = signal.lfilter([1.0 - coeff], [1.0, -coeff], saturated)

    return audio * (1.0 - amount) + wet * amount


def harmonic_settings(level: float) -> Tuple[SaturationModel, float]:
    """
    Map a 0-1 "warmth" control to a model and amount.

    Returns:
        (model, amount): tube above 0.7, tape otherwise; amount 5-25 %
    """
    level = max(0.0, min(1.0, level))
    model = SaturationModel.TUBE if level > 0.7 else SaturationModel.TAPE
    return model, 0.05 + level * 0.2


def saturate(buffer: AudioBuffer, amount: float = 0.15,
             model: SaturationModel = SaturationModel.TAPE) -> AudioBuffer:
    """
    Convenience function for harmonic saturation.

    Args:
        buffer: Input audio
        amount: Drive and blend (0.0-1.0)
        model: TUBE or TAPE

    Returns:
        Saturated audio
    """
    config = SaturationConfig(model=model, amount=amount)
    return HarmonicSaturator(buffer.sample_rate, config).process(buffer)
