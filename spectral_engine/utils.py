"""
Utility Functions - Level conversions, peak ceilings and loudness estimates

Shared by every effect in the engine.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)


# === Level Conversions ===

def db_to_gain(db: float) -> float:
    """
    Convert decibels to linear amplitude gain.

    Args:
        db: Decibel value (can be negative)

    Returns:
        Linear gain value
    """
    return 10 ** (db / 20)


def gain_to_db(gain: float) -> float:
    """
    Convert linear gain to decibels.

    Args:
        gain: Linear gain value (> 0)

    Returns:
        Decibel value
    """
    if gain <= 0:
        return -float('inf')
    return 20 * np.log10(gain)


# === Peak Handling ===

def peak_level(channels: Sequence[np.ndarray]) -> float:
    """Peak absolute amplitude over one or more arrays."""
    peak = 0.0
    for ch in channels:
        if ch.size:
            peak = max(peak, float(np.max(np.abs(ch))))
    return peak


def apply_ceiling(channels: Sequence[np.ndarray],
                  ceiling: float) -> Tuple[List[np.ndarray], float]:
    """
    Rescale arrays jointly so their shared peak does not exceed ``ceiling``.

    The arrays are scaled proportionally by one factor; nothing is
    clipped.

    Args:
        channels: Output arrays of one effect call
        ceiling: Maximum allowed absolute amplitude

    Returns:
        Tuple of (rescaled arrays, applied scale factor)
    """
    peak = peak_level(channels)
    if peak <= ceiling:
        return [np.asarray(ch) for ch in channels], 1.0

    scale = ceiling / peak
    logger.debug(f"Peak {peak:.3f} above ceiling {ceiling}, rescaling by {scale:.3f}")
    return [ch * scale for ch in channels], scale


# === Loudness ===

def rms_level(channels: Sequence[np.ndarray]) -> float:
    """RMS over all samples of all channels."""
    total = 0.0
    count = 0
    for ch in channels:
        data = np.asarray(ch, dtype=np.float64)
        total += float(np.sum(data ** 2))
        count += data.size
    if count == 0:
        return 0.0
    return float(np.sqrt(total / count))


def estimate_loudness(rms: float) -> float:
    """
    Rough loudness estimate from RMS.

    ``20·log10(rms) − 10`` tracks LUFS closely enough to pick a
    normalization gain, but it is not a BS.1770 measurement.
    """
    if rms <= 0:
        return -float('inf')
    return 20 * np.log10(rms) - 10


def measure_loudness_lufs(channels: np.ndarray, sample_rate: int) -> float:
    """
    Integrated loudness (ITU-R BS.1770) using pyloudnorm.

    Args:
        channels: Audio shaped (channels, samples)
        sample_rate: Sample rate in Hz

    Returns:
        Loudness in LUFS (-inf for silence)

    Raises:
        ValueError: If the audio is shorter than one 400 ms gating block
    """
    import pyloudnorm as pyln

    meter = pyln.Meter(sample_rate)
    data = np.asarray(channels, dtype=np.float64)
    if data.ndim == 2:
        data = data.T if data.shape[0] > 1 else data[0]
    return float(meter.integrated_loudness(data))
