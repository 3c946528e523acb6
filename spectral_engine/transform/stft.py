"""
STFT Frame Processor - Windowed analysis, spectral edit, overlap-add resynthesis

Shared driver for every frequency-domain effect. An effect supplies a
hook that edits bins 0..N/2 of each frame; the processor handles
windowing, the transform, Hermitian mirroring, overlap-add and the final
peak ceiling.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import librosa
from scipy.signal import windows

from ..exceptions import InsufficientSamples, InvalidTransformSize
from ..utils import apply_ceiling
from .fft import forward, inverse, is_power_of_two

logger = logging.getLogger(__name__)

# (real_bins, imag_bins, bin_index) -> (new_real, new_imag)
SpectralHook = Callable[[np.ndarray, np.ndarray, np.ndarray], Tuple[np.ndarray, np.ndarray]]

# [(real_bins, imag_bins), ...], bin_index -> [(new_real, new_imag), ...]
JointSpectralHook = Callable[
    [List[Tuple[np.ndarray, np.ndarray]], np.ndarray],
    List[Tuple[np.ndarray, np.ndarray]],
]

# Partially covered head/tail samples are divided by at least this share
# of the steady-state window sum
WINDOW_SUM_FLOOR = 0.1


def hann_window(size: int) -> np.ndarray:
    """Symmetric Hann window 0.5·(1 − cos(2πi/(N−1))), read-only."""
    window = windows.hann(size, sym=True).astype(np.float64)
    window.setflags(write=False)
    return window


@dataclass(frozen=True)
class FrameConfig:
    """Frame geometry and output ceiling for one spectral effect."""
    fft_size: int = 2048
    overlap: float = 0.75
    ceiling: Optional[float] = 0.95  # None disables the peak post-pass

    def __post_init__(self):
        if not is_power_of_two(self.fft_size) or self.fft_size < 4:
            raise InvalidTransformSize(self.fft_size, "frame size must be a power of two >= 4")
        if not 0.0 <= self.overlap < 1.0:
            raise ValueError(f"Overlap must be in [0, 1), got {self.overlap}")
        if self.ceiling is not None and self.ceiling <= 0:
            raise ValueError(f"Ceiling must be positive, got {self.ceiling}")

    @property
    def hop_size(self) -> int:
        return max(1, int(self.fft_size * (1.0 - self.overlap)))

    @property
    def num_bins(self) -> int:
        return self.fft_size // 2 + 1


class FrameProcessor:
    """
    Generic STFT analysis/resynthesis driver.

    One window is built per processor and reused across all frames and
    calls. Each channel gets a single pair of scratch arrays that is
    overwritten frame after frame.
    """

    def __init__(self, config: FrameConfig = None):
        self.config = config or FrameConfig()
        self.window = hann_window(self.config.fft_size)
        self.bin_index = np.arange(self.config.num_bins)

    @property
    def fft_size(self) -> int:
        return self.config.fft_size

    @property
    def hop_size(self) -> int:
        return self.config.hop_size

    def frame_count(self, length: int) -> int:
        """Number of full frames that fit in ``length`` samples."""
        if length < self.fft_size:
            return 0
        return (length - self.fft_size) // self.hop_size + 1

    def bin_frequencies(self, sample_rate: int) -> np.ndarray:
        """Centre frequency in Hz of bins 0..N/2."""
        return librosa.fft_frequencies(sr=sample_rate, n_fft=self.fft_size)

    def process(self, samples: np.ndarray, hook: SpectralHook) -> np.ndarray:
        """
        Run one channel through analysis, ``hook`` and resynthesis.

        Args:
            samples: 1-D input channel
            hook: Edits the low half-spectrum of each frame

        Returns:
            New float64 array with the same length as ``samples``

        Raises:
            InsufficientSamples: If ``samples`` is shorter than one frame
        """
        def joint_hook(spectra, bins):
            real, imag = spectra[0]
            return [hook(real, imag, bins)]

        return self.process_joint([samples], joint_hook)[0]

    def process_joint(self, channels: Sequence[np.ndarray],
                      hook: JointSpectralHook) -> List[np.ndarray]:
        """
        Run several equal-length channels frame by frame, handing the
        spectra of all channels for the same frame to ``hook`` together.

        The ceiling is applied with one shared scale factor.

        Raises:
            InsufficientSamples: If the channels are shorter than one frame
        """
        inputs = [np.asarray(ch, dtype=np.float64) for ch in channels]
        length = inputs[0].shape[0]
        if any(ch.shape != (length,) for ch in inputs):
            raise ValueError("All channels must be 1-D and share one length")

        n_frames = self.frame_count(length)
        if n_frames == 0:
            raise InsufficientSamples(length, self.fft_size)

        n = self.fft_size
        half = n // 2
        hop = self.hop_size
        window = self.window

        outputs = [np.zeros(length) for _ in inputs]
        window_sum = np.zeros(length)
        scratch = [(np.zeros(n), np.zeros(n)) for _ in inputs]

        for frame in range(n_frames):
            start = frame * hop
            end = min(start + n, length)
            count = end - start

            spectra = []
            for samples, (real, imag) in zip(inputs, scratch):
                real[:count] = samples[start:end] * window[:count]
                real[count:] = 0.0
                imag[:] = 0.0
                forward(real, imag)
                spectra.append((real[:half + 1], imag[:half + 1]))

            edited = hook(spectra, self.bin_index)

            for (new_real, new_imag), (real, imag), out in zip(edited, scratch, outputs):
                real[:half + 1] = new_real
                imag[:half + 1] = new_imag
                # Hermitian mirror: real[n-i] = real[i], imag[n-i] = -imag[i]
                real[n - 1:half:-1] = real[1:half]
                imag[n - 1:half:-1] = -imag[1:half]

                inverse(real, imag)

                # Bounds-checked overlap-add; nothing is written past the end
                out[start:end] += real[:count] * window[:count]

            window_sum[start:end] += window[:count] ** 2

        norm = np.maximum(window_sum, WINDOW_SUM_FLOOR * window_sum.max())
        outputs = [out / norm for out in outputs]

        logger.debug(f"STFT: {n_frames} frames, size={n}, hop={hop}, length={length}")

        if self.config.ceiling is not None:
            outputs, _ = apply_ceiling(outputs, self.config.ceiling)
        return outputs

    def magnitude_frames(self, samples: np.ndarray,
                         hop_size: Optional[int] = None) -> Iterator[np.ndarray]:
        """
        Analysis only: yield the magnitude of bins 0..N/2 for each frame.

        Args:
            samples: 1-D input channel
            hop_size: Frame advance (defaults to the configured hop)
        """
        samples = np.asarray(samples, dtype=np.float64)
        hop = hop_size or self.hop_size
        n = self.fft_size
        real = np.zeros(n)
        imag = np.zeros(n)

        start = 0
        while start + n <= samples.shape[0]:
            real[:] = samples[start:start + n] * self.window
            imag[:] = 0.0
            forward(real, imag)
            yield np.hypot(real[:n // 2 + 1], imag[:n // 2 + 1])
            start += hop

    def __repr__(self) -> str:
        return (f"FrameProcessor(fft_size={self.fft_size}, hop={self.hop_size}, "
                f"ceiling={self.config.ceiling})")
