"""
Complex Spectrum Transform - In-place iterative radix-2 FFT

forward() and inverse() operate on paired real/imaginary arrays whose
length is a power of two. inverse() is the only place results are
divided by n.
"""

from functools import lru_cache
from typing import Tuple

import numpy as np

from ..exceptions import InvalidTransformSize


def is_power_of_two(n: int) -> bool:
    """True for 1, 2, 4, 8, ..."""
    return n > 0 and (n & (n - 1)) == 0


@lru_cache(maxsize=None)
def bit_reversal_permutation(n: int) -> np.ndarray:
    """
    Index table mapping i to the reverse of its log2(n)-bit representation.

    Cached per size; the returned array is read-only.
    """
    if not is_power_of_two(n):
        raise InvalidTransformSize(n)

    bits = n.bit_length() - 1
    index = np.arange(n, dtype=np.intp)
    reversed_index = np.zeros(n, dtype=np.intp)
    for _ in range(bits):
        reversed_index = (reversed_index << 1) | (index & 1)
        index = index >> 1

    reversed_index.setflags(write=False)
    return reversed_index


@lru_cache(maxsize=None)
def _twiddles(block_size: int) -> Tuple[np.ndarray, np.ndarray]:
    """cos/sin(-2πk/B) for k in [0, B/2)."""
    k = np.arange(block_size // 2)
    angle = -2.0 * np.pi * k / block_size
    cos, sin = np.cos(angle), np.sin(angle)
    cos.setflags(write=False)
    sin.setflags(write=False)
    return cos, sin


def _check_arrays(real: np.ndarray, imag: np.ndarray) -> int:
    if real.ndim != 1 or imag.ndim != 1:
        raise ValueError(f"Transform expects 1-D arrays, got {real.shape} and {imag.shape}")
    if real.shape != imag.shape:
        raise ValueError(f"Real/imag length mismatch: {real.shape[0]} vs {imag.shape[0]}")
    n = real.shape[0]
    if not is_power_of_two(n):
        raise InvalidTransformSize(n)
    return n


def forward(real: np.ndarray, imag: np.ndarray) -> None:
    """
    Forward DFT in place.

    Args:
        real: Real parts, length n (power of two)
        imag: Imaginary parts, same length

    Raises:
        InvalidTransformSize: If n is not a power of two. The arrays are
            left untouched in that case.
    """
    n = _check_arrays(real, imag)

    perm = bit_reversal_permutation(n)
    re = np.asarray(real, dtype=np.float64)[perm]
    im = np.asarray(imag, dtype=np.float64)[perm]

    block = 2
    while block <= n:
        half = block // 2
        cos, sin = _twiddles(block)

        # One row per block; every block is combined in one vectorized step
        re_blocks = re.reshape(-1, block)
        im_blocks = im.reshape(-1, block)

        even_re = re_blocks[:, :half].copy()
        even_im = im_blocks[:, :half].copy()
        odd_re = re_blocks[:, half:]
        odd_im = im_blocks[:, half:]

        t_re = odd_re * cos - odd_im * sin
        t_im = odd_re * sin + odd_im * cos

        re_blocks[:, :half] = even_re + t_re
        im_blocks[:, :half] = even_im + t_im
        re_blocks[:, half:] = even_re - t_re
        im_blocks[:, half:] = even_im - t_im

        block *= 2

    real[:] = re
    imag[:] = im


def inverse(real: np.ndarray, imag: np.ndarray) -> None:
    """
    Inverse DFT in place: conjugate, forward, conjugate, divide by n.

    Raises:
        InvalidTransformSize: If n is not a power of two.
    """
    n = _check_arrays(real, imag)

    np.negative(imag, out=imag)
    forward(real, imag)
    np.negative(imag, out=imag)

    real /= n
    imag /= n
