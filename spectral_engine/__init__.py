"""
Spectral Engine - Offline spectral audio enhancement

Block-based effects sharing one STFT frame processor: noise reduction,
dereverberation, equalization, stereo widening, harmonic saturation and
dynamics processing, chained by the enhancement pipeline.
"""

from .buffer import AudioBuffer
from .exceptions import SpectralEngineError, InvalidTransformSize, InsufficientSamples
from .transform import FrameConfig, FrameProcessor
from .restoration import NoiseReducer, Dereverberator
from .enhancers import MultibandEqualizer, ParametricEqualizer, StereoImager, HarmonicSaturator
from .dynamics import DynamicsProcessor, LookAheadLimiter
from .pipeline import EnhancementPipeline, EnhancementSettings, PipelineConfig, enhance

__version__ = "1.0.0"
__all__ = [
    "AudioBuffer",
    "SpectralEngineError",
    "InvalidTransformSize",
    "InsufficientSamples",
    "FrameConfig",
    "FrameProcessor",
    "NoiseReducer",
    "Dereverberator",
    "MultibandEqualizer",
    "ParametricEqualizer",
    "StereoImager",
    "HarmonicSaturator",
    "DynamicsProcessor",
    "LookAheadLimiter",
    "EnhancementPipeline",
    "EnhancementSettings",
    "PipelineConfig",
    "enhance",
]
