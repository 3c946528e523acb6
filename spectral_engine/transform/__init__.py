"""
Transform Package - Shared spectral infrastructure

Modules:
- fft: In-place radix-2 complex transform
- stft: Windowed frame processor with overlap-add resynthesis
"""

from .fft import forward, inverse, is_power_of_two, bit_reversal_permutation
from .stft import FrameConfig, FrameProcessor, hann_window

__all__ = [
    "forward",
    "inverse",
    "is_power_of_two",
    "bit_reversal_permutation",
    "FrameConfig",
    "FrameProcessor",
    "hann_window",
]
