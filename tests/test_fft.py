"""
Tests for the radix-2 complex transform.
"""

import pytest
import numpy as np
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from spectral_engine.exceptions import InvalidTransformSize
from spectral_engine.transform.fft import (
    bit_reversal_permutation, forward, inverse, is_power_of_two
)


class TestTransform:
    """Test suite for forward/inverse."""

    @pytest.fixture
    def random_signal(self):
        rng = np.random.default_rng(42)
        return rng.standard_normal(1024), rng.standard_normal(1024)

    def test_power_of_two(self):
        assert is_power_of_two(1)
        assert is_power_of_two(2048)
        assert not is_power_of_two(0)
        assert not is_power_of_two(12)
        assert not is_power_of_two(-4)

    def test_bit_reversal_table(self):
        table = bit_reversal_permutation(8)
        assert list(table) == [0, 4, 2, 6, 1, 5, 3, 7]
        with pytest.raises(ValueError):
            table[0] = 1

    def test_impulse_gives_flat_spectrum(self):
        real = np.zeros(16)
        imag = np.zeros(16)
        real[0] = 1.0
        forward(real, imag)
        np.testing.assert_allclose(real, np.ones(16), atol=1e-12)
        np.testing.assert_allclose(imag, np.zeros(16), atol=1e-12)

    def test_matches_numpy_fft(self, random_signal):
        re, im = random_signal
        real, imag = re.copy(), im.copy()
        forward(real, imag)

        expected = np.fft.fft(re + 1j * im)
        np.testing.assert_allclose(real, expected.real, atol=1e-9)
        np.testing.assert_allclose(imag, expected.imag, atol=1e-9)

    def test_round_trip(self, random_signal):
        re, im = random_signal
        real, imag = re.copy(), im.copy()
        forward(real, imag)
        inverse(real, imag)

        np.testing.assert_allclose(real, re, atol=1e-9)
        np.testing.assert_allclose(imag, im, atol=1e-9)

    def test_size_one_is_identity(self):
        real = np.array([3.0])
        imag = np.array([-1.0])
        forward(real, imag)
        assert real[0] == 3.0 and imag[0] == -1.0

    def test_invalid_size_leaves_arrays_untouched(self):
        real = np.arange(12, dtype=np.float64)
        imag = np.zeros(12)

        with pytest.raises(InvalidTransformSize) as excinfo:
            forward(real, imag)

        assert excinfo.value.size == 12
        np.testing.assert_array_equal(real, np.arange(12))
        np.testing.assert_array_equal(imag, np.zeros(12))

    def test_invalid_size_is_value_error(self):
        with pytest.raises(ValueError):
            inverse(np.zeros(6), np.zeros(6))

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            forward(np.zeros(8), np.zeros(16))
