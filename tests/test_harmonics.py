"""
Tests for tube and tape saturation.
"""

import pytest
import numpy as np
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from spectral_engine.buffer import AudioBuffer
from spectral_engine.enhancers.harmonics import (
    HarmonicSaturator, SaturationConfig, SaturationModel, harmonic_settings, saturate
)

SR = 44100


def harmonic_levels(audio, fundamental=1000):
    """Magnitude at the fundamental, 2nd and 3rd harmonic of a 1 s signal."""
    spectrum = np.abs(np.fft.rfft(np.asarray(audio, dtype=np.float64)))
    return spectrum[fundamental], spectrum[2 * fundamental], spectrum[3 * fundamental]


class TestHarmonicSaturator:
    """Test suite for HarmonicSaturator class."""

    @pytest.fixture
    def sine_buffer(self):
        # Exactly 1000 cycles, so every harmonic falls on a 1 Hz bin
        t = np.arange(SR) / SR
        return AudioBuffer.from_mono(0.5 * np.sin(2 * np.pi * 1000 * t), SR)

    def test_config_validation(self):
        with pytest.raises(ValueError):
            SaturationConfig(amount=1.5)
        assert SaturationConfig(model="tube").model == SaturationModel.TUBE

    @pytest.mark.parametrize("model", [SaturationModel.TUBE, SaturationModel.TAPE])
    def test_zero_amount_is_identity(self, sine_buffer, model):
        result = saturate(sine_buffer, amount=0.0, model=model)
        assert result is not sine_buffer
        np.testing.assert_array_equal(result.channels, sine_buffer.channels)

    def test_tube_adds_even_harmonics(self, sine_buffer):
        clean = harmonic_levels(sine_buffer.channels[0])
        result = saturate(sine_buffer, amount=1.0, model=SaturationModel.TUBE)
        fundamental, second, third = harmonic_levels(result.channels[0])

        assert second > 1e-3 * fundamental
        assert second > 100 * clean[1]
        assert third > 1e-3 * fundamental

    def test_tape_adds_odd_harmonics(self, sine_buffer):
        clean = harmonic_levels(sine_buffer.channels[0])
        result = saturate(sine_buffer, amount=1.0, model=SaturationModel.TAPE)
        fundamental, _, third = harmonic_levels(result.channels[0])

        assert third > 1e-3 * fundamental
        assert third > 100 * clean[2]

    @pytest.mark.parametrize("model", [SaturationModel.TUBE, SaturationModel.TAPE])
    def test_never_louder_than_input(self, sine_buffer, model):
        result = saturate(sine_buffer, amount=0.8, model=model)
        assert result.peak() <= sine_buffer.peak() + 1e-6

    def test_tape_rolls_off_highs(self):
        rng = np.random.default_rng(4)
        noise = AudioBuffer.from_mono(0.01 * rng.standard_normal(SR), SR)
        result = saturate(noise, amount=1.0, model=SaturationModel.TAPE)

        spectrum_in = np.abs(np.fft.rfft(noise.channels[0]))
        spectrum_out = np.abs(np.fft.rfft(result.channels[0]))
        top = slice(15000, 22050)
        assert np.mean(spectrum_out[top]) < 0.5 * np.mean(spectrum_in[top])

    def test_harmonic_settings(self):
        model, amount = harmonic_settings(0.5)
        assert model == SaturationModel.TAPE
        assert amount == pytest.approx(0.15)

        model, amount = harmonic_settings(0.8)
        assert model == SaturationModel.TUBE
        assert amount == pytest.approx(0.21)

    def test_multichannel(self, sine_buffer):
        stereo = AudioBuffer(np.vstack([sine_buffer.channels, -sine_buffer.channels]), SR)
        saturator = HarmonicSaturator(SR, SaturationConfig(SaturationModel.TAPE, 0.5),
                                      max_workers=2)
        result = saturator.process(stereo)
        # Tape is symmetric, so a polarity-inverted channel stays inverted
        np.testing.assert_allclose(result.channels[1], -result.channels[0], atol=1e-6)

    def test_repr_and_info(self):
        saturator = HarmonicSaturator(SR, SaturationConfig(SaturationModel.TUBE, 0.3))
        assert "tube" in repr(saturator)
        assert saturator.get_info()["config"] == {"model": "tube", "amount": 0.3}
