"""
Audio Restoration Package - Spectral cleanup effects

Provides:
- NoiseReducer: Spectral subtraction against a head-of-signal noise profile
- Dereverberator: Envelope-tracking reverb suppression
"""

from .noise_reducer import NoiseReducer, reduce_noise, NoiseReductionConfig
from .dereverberation import Dereverberator, dereverberate, DereverberationConfig

__all__ = [
    "NoiseReducer",
    "reduce_noise",
    "NoiseReductionConfig",
    "Dereverberator",
    "dereverberate",
    "DereverberationConfig",
]
