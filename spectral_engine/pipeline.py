"""
Enhancement Pipeline - Turns user-facing controls into an effect chain

Converts percentage and dB controls into effect parameters, threads one
buffer through the enabled effects in order, and reports one StageEvent
per stage to an optional callback and to the logger.

Stages (default order):
1. denoise     - spectral noise reduction
2. dereverb    - reverb suppression (advanced only)
3. equalizer   - three-band EQ
4. clarity     - presence/clarity bells (advanced only)
5. harmonics   - tube/tape saturation (advanced only)
6. stereo      - stereo widening
7. dynamics    - loudness normalization and compression
"""

import logging
import time
from dataclasses import asdict, dataclass, field, fields
from typing import Callable, Dict, List, Optional, Tuple

from .buffer import AudioBuffer
from .dynamics import DynamicsConfig, DynamicsProcessor
from .enhancers.equalizer import (
    EqualizerConfig,
    MultibandEqualizer,
    ParametricEqConfig,
    ParametricEqualizer,
    clarity_bands,
)
from .enhancers.harmonics import HarmonicSaturator, SaturationConfig, harmonic_settings
from .enhancers.stereo import StereoImager, StereoWidthConfig
from .exceptions import InsufficientSamples
from .restoration.dereverberation import DereverberationConfig, Dereverberator
from .restoration.noise_reducer import NoiseReducer, NoiseReductionConfig
from .utils import measure_loudness_lufs

logger = logging.getLogger(__name__)

DEFAULT_STAGE_ORDER = (
    "denoise",
    "dereverb",
    "equalizer",
    "clarity",
    "harmonics",
    "stereo",
    "dynamics",
)

STATUS_APPLIED = "applied"
STATUS_SKIPPED = "skipped"
STATUS_INSUFFICIENT = "insufficient"


@dataclass
class EnhancementSettings:
    """User-facing enhancement controls."""
    # Basic controls (percent unless noted)
    noise_reduction: float = 50.0
    normalization: float = 50.0
    eq_low_db: float = 0.0
    eq_mid_db: float = 0.0
    eq_high_db: float = 0.0
    stereo_enhance: float = 0.0

    # Advanced controls (percent)
    denoise_level: float = 70.0
    harmonic_enhance: float = 50.0
    clarity_level: float = 60.0
    dereverb_level: float = 40.0
    use_advanced_processing: bool = False

    def __post_init__(self):
        for name in ("noise_reduction", "normalization", "stereo_enhance",
                     "denoise_level", "harmonic_enhance", "clarity_level", "dereverb_level"):
            value = getattr(self, name)
            if not 0.0 <= value <= 100.0:
                raise ValueError(f"{name} must be 0-100, got {value}")
        for name in ("eq_low_db", "eq_mid_db", "eq_high_db"):
            value = getattr(self, name)
            if not -12.0 <= value <= 12.0:
                raise ValueError(f"{name} must be within ±12 dB, got {value}")

    @property
    def quality(self) -> float:
        return 1.0 if self.use_advanced_processing else 0.0

    @property
    def denoise_intensity(self) -> float:
        level = self.noise_reduction
        if self.use_advanced_processing:
            level = max(level, self.denoise_level)
        return level / 100.0

    @classmethod
    def from_dict(cls, data: Dict) -> "EnhancementSettings":
        """
        Build settings from a plain dict (e.g. parsed JSON).

        Unknown keys are rejected so typos do not pass silently.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown settings: {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class PipelineConfig:
    """Configuration for the enhancement pipeline."""
    stage_order: Tuple[str, ...] = DEFAULT_STAGE_ORDER

    # Report "insufficient" instead of raising on buffers shorter than a frame
    skip_short_input: bool = True

    # Threads for per-channel effects
    max_workers: int = 1

    # Measure BS.1770 loudness before and after
    measure_loudness: bool = True

    def __post_init__(self):
        self.stage_order = tuple(self.stage_order)
        unknown = [name for name in self.stage_order if name not in DEFAULT_STAGE_ORDER]
        if unknown:
            raise ValueError(f"Unknown stages: {unknown}. Available: {list(DEFAULT_STAGE_ORDER)}")
        if len(set(self.stage_order)) != len(self.stage_order):
            raise ValueError("Stage order contains duplicates")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")


@dataclass
class StageEvent:
    """Outcome of one pipeline stage."""
    name: str
    status: str
    duration_s: float
    peak_in: float
    peak_out: float

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class PipelineResult:
    """Results and metrics from the enhancement pipeline."""
    buffer: AudioBuffer
    stages: List[StageEvent] = field(default_factory=list)
    processing_time: float = 0.0
    input_loudness_lufs: Optional[float] = None
    output_loudness_lufs: Optional[float] = None

    @property
    def applied_stages(self) -> List[str]:
        return [event.name for event in self.stages if event.status == STATUS_APPLIED]

    def to_dict(self) -> Dict:
        """Summary without the audio itself."""
        return {
            "sample_rate": self.buffer.sample_rate,
            "channels": self.buffer.num_channels,
            "samples": self.buffer.num_samples,
            "stages": [event.to_dict() for event in self.stages],
            "processing_time": self.processing_time,
            "input_loudness_lufs": self.input_loudness_lufs,
            "output_loudness_lufs": self.output_loudness_lufs,
        }


class EnhancementPipeline:
    """
    Orchestrates the enhancement effects.

    Usage:
        pipeline = EnhancementPipeline(EnhancementSettings(stereo_enhance=40))
        result = pipeline.process(buffer)
        enhanced = result.buffer
    """

    def __init__(self, settings: EnhancementSettings = None, config: PipelineConfig = None,
                 on_event: Optional[Callable[[StageEvent], None]] = None):
        """
        Initialize the pipeline.

        Args:
            settings: User-facing controls
            config: Stage order and execution options
            on_event: Called with each StageEvent as stages finish
        """
        self.settings = settings or EnhancementSettings()
        self.config = config or PipelineConfig()
        self.on_event = on_event

    def build_stage(self, name: str, sample_rate: int):
        """
        Create the processor for a stage, or None when the current
        settings disable it.
        """
        s = self.settings
        workers = self.config.max_workers
        advanced = s.use_advanced_processing

        if name == "denoise":
            intensity = s.denoise_intensity
            if intensity <= 0:
                return None
            config = NoiseReductionConfig(intensity=intensity, quality=s.quality)
            return NoiseReducer(sample_rate, config, max_workers=workers)

        if name == "dereverb":
            if not advanced or s.dereverb_level <= 0:
                return None
            config = DereverberationConfig(intensity=s.dereverb_level / 100.0)
            return Dereverberator(sample_rate, config, max_workers=workers)

        if name == "equalizer":
            if s.eq_low_db == 0 and s.eq_mid_db == 0 and s.eq_high_db == 0:
                return None
            config = EqualizerConfig(low_gain_db=s.eq_low_db, mid_gain_db=s.eq_mid_db,
                                     high_gain_db=s.eq_high_db, quality=s.quality)
            return MultibandEqualizer(sample_rate, config, max_workers=workers)

        if name == "clarity":
            if not advanced or s.clarity_level <= 0:
                return None
            config = ParametricEqConfig(bands=tuple(clarity_bands(s.clarity_level / 100.0)))
            return ParametricEqualizer(sample_rate, config, max_workers=workers)

        if name == "harmonics":
            if not advanced or s.harmonic_enhance <= 0:
                return None
            model, amount = harmonic_settings(s.harmonic_enhance / 100.0)
            config = SaturationConfig(model=model, amount=amount)
            return HarmonicSaturator(sample_rate, config, max_workers=workers)

        if name == "stereo":
            if s.stereo_enhance <= 0:
                return None
            config = StereoWidthConfig(intensity=s.stereo_enhance / 100.0)
            return StereoImager(sample_rate, config)

        if name == "dynamics":
            if s.normalization <= 0:
                return None
            config = DynamicsConfig(intensity=s.normalization / 100.0, quality=s.quality)
            return DynamicsProcessor(sample_rate, config, max_workers=workers)

        raise ValueError(f"Unknown stage: {name}")

    def process(self, buffer: AudioBuffer) -> PipelineResult:
        """
        Run the enabled stages in order.

        Args:
            buffer: Input audio (left untouched)

        Returns:
            PipelineResult with the enhanced buffer and per-stage events

        Raises:
            InsufficientSamples: If a stage cannot run on a short buffer
                and skip_short_input is False
        """
        start_time = time.time()
        logger.info(f"Enhancing {buffer!r} with stages {list(self.config.stage_order)}")

        input_loudness = self._loudness(buffer)
        events = []
        current = buffer

        for name in self.config.stage_order:
            stage_start = time.time()
            peak_in = current.peak()
            processor = self.build_stage(name, current.sample_rate)

            if processor is None:
                status = STATUS_SKIPPED
            else:
                try:
                    current = processor.process(current)
                    status = STATUS_APPLIED
                except InsufficientSamples as e:
                    if not self.config.skip_short_input:
                        raise
                    logger.warning(f"Stage '{name}' skipped: {e}")
                    status = STATUS_INSUFFICIENT

            event = StageEvent(
                name=name,
                status=status,
                duration_s=time.time() - stage_start,
                peak_in=peak_in,
                peak_out=current.peak(),
            )
            events.append(event)
            self._emit(event)

        # Stages may all be skipped; the result is still a fresh buffer
        if current is buffer:
            current = buffer.copy()

        result = PipelineResult(
            buffer=current,
            stages=events,
            processing_time=time.time() - start_time,
            input_loudness_lufs=input_loudness,
            output_loudness_lufs=self._loudness(current),
        )
        logger.info(f"Enhancement complete in {result.processing_time:.2f}s, "
                    f"applied: {result.applied_stages}")
        return result

    def _emit(self, event: StageEvent):
        logger.info(f"Stage {event.name}: {event.status} ({event.duration_s:.3f}s, "
                    f"peak {event.peak_in:.3f} -> {event.peak_out:.3f})")
        if self.on_event is not None:
            self.on_event(event)

    def _loudness(self, buffer: AudioBuffer) -> Optional[float]:
        if not self.config.measure_loudness:
            return None
        try:
            return measure_loudness_lufs(buffer.channels, buffer.sample_rate)
        except ValueError as e:
            logger.debug(f"Loudness not measured: {e}")
            return None


# Convenience function
def enhance(buffer: AudioBuffer, settings: EnhancementSettings = None,
            **overrides) -> AudioBuffer:
    """
    Enhance audio with default pipeline options.

    Args:
        buffer: Input audio
        settings: Enhancement controls (defaults when None)
        **overrides: Individual settings, e.g. ``stereo_enhance=40``

    Returns:
        Enhanced audio
    """
    if settings is None:
        settings = EnhancementSettings(**overrides)
    elif overrides:
        settings = EnhancementSettings.from_dict({**settings.to_dict(), **overrides})
    return EnhancementPipeline(settings).process(buffer).buffer
