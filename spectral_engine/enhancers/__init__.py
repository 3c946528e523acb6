"""
Enhancers Package - Tonal and spatial enhancement effects

Provides:
- MultibandEqualizer / ParametricEqualizer: Spectral gain curves
- StereoImager: Mid/side widening
- HarmonicSaturator: Tube and tape waveshaping
"""

from .equalizer import (
    BandDescriptor,
    EqualizerConfig,
    MultibandEqualizer,
    ParametricEqConfig,
    ParametricEqualizer,
    apply_bands,
    clarity_bands,
    enhance_clarity,
    equalize,
)
from .stereo import StereoImager, StereoWidthConfig, widen_stereo
from .harmonics import (
    HarmonicSaturator,
    SaturationConfig,
    SaturationModel,
    harmonic_settings,
    saturate,
)

__all__ = [
    "BandDescriptor",
    "EqualizerConfig",
    "MultibandEqualizer",
    "ParametricEqConfig",
    "ParametricEqualizer",
    "apply_bands",
    "clarity_bands",
    "enhance_clarity",
    "equalize",
    "StereoImager",
    "StereoWidthConfig",
    "widen_stereo",
    "HarmonicSaturator",
    "SaturationConfig",
    "SaturationModel",
    "harmonic_settings",
    "saturate",
]
