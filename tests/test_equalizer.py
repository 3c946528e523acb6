"""
Tests for the multiband and parametric equalizers.
"""

import pytest
import numpy as np
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from spectral_engine.buffer import AudioBuffer
from spectral_engine.enhancers.equalizer import (
    BandDescriptor, EqualizerConfig, MultibandEqualizer, ParametricEqConfig,
    ParametricEqualizer, bell_gain, clarity_bands, enhance_clarity, equalize
)
from spectral_engine.utils import db_to_gain

SR = 44100


def sine_buffer(freq, amplitude=0.3, seconds=1.0):
    t = np.arange(int(SR * seconds)) / SR
    return AudioBuffer.from_mono(amplitude * np.sin(2 * np.pi * freq * t), SR)


def interior_rms(audio, margin=4096):
    segment = np.asarray(audio[margin:-margin], dtype=np.float64)
    return np.sqrt(np.mean(segment ** 2))


class TestMultibandEqualizer:
    """Test suite for the three-band equalizer."""

    def test_flat_settings_return_input(self):
        # One second of 440 Hz at 0.5 through a 0 dB equalizer
        buffer = sine_buffer(440, amplitude=0.5)
        result = equalize(buffer, 0.0, 0.0, 0.0)

        assert result is not buffer
        np.testing.assert_allclose(result.channels, buffer.channels, atol=1e-6)

    def test_gain_validation(self):
        with pytest.raises(ValueError):
            EqualizerConfig(low_gain_db=30.0)
        with pytest.raises(ValueError):
            EqualizerConfig(quality=2.0)

    def test_crossovers_follow_quality(self):
        basic = EqualizerConfig(quality=0.0)
        advanced = EqualizerConfig(quality=1.0)
        assert (basic.low_crossover_hz, basic.high_crossover_hz) == (300.0, 3500.0)
        assert (advanced.low_crossover_hz, advanced.high_crossover_hz) == (250.0, 4000.0)

    @pytest.mark.parametrize("freq, gains, expected_db", [
        (100, (6.0, 0.0, 0.0), 6.0),
        (1000, (0.0, -6.0, 0.0), -6.0),
        (8000, (0.0, 0.0, -6.0), -6.0),
    ])
    def test_band_gain_applied(self, freq, gains, expected_db):
        buffer = sine_buffer(freq)
        result = equalize(buffer, *gains)

        ratio = interior_rms(result.channels[0]) / interior_rms(buffer.channels[0])
        assert ratio == pytest.approx(db_to_gain(expected_db), rel=0.02)

    def test_other_bands_untouched(self):
        buffer = sine_buffer(1000)
        result = equalize(buffer, low_gain_db=9.0, high_gain_db=-9.0)

        ratio = interior_rms(result.channels[0]) / interior_rms(buffer.channels[0])
        assert ratio == pytest.approx(1.0, rel=0.01)

    def test_curve_is_continuous(self):
        eq = MultibandEqualizer(SR, EqualizerConfig(low_gain_db=12.0, mid_gain_db=-12.0,
                                                    high_gain_db=12.0))
        curve = eq.gain_curve()
        low_bin, high_bin = eq.crossover_bins()

        assert curve[0] == pytest.approx(db_to_gain(12.0))
        assert curve[(low_bin + high_bin) // 2] == pytest.approx(db_to_gain(-12.0))
        assert curve[-1] == pytest.approx(db_to_gain(12.0))
        # Each fade is linear, so no step exceeds the full change spread over
        # its narrowed width
        config = eq.config
        half_width = int(eq.frames.fft_size * config.transition_fraction) // 2
        gap = (high_bin - low_bin) // 2
        low_half = min(half_width, low_bin // 2, gap)
        high_half = min(half_width, gap, (len(curve) - 1 - high_bin) // 2)
        assert low_half > 0 and high_half > 0

        change = db_to_gain(12.0) - db_to_gain(-12.0)
        steps = np.abs(np.diff(curve))
        split = low_bin + gap
        assert steps[:split].max() <= change / (2 * low_half) + 1e-12
        assert steps[split:].max() <= change / (2 * high_half) + 1e-12
        # Flat between the fades
        assert np.all(steps[low_bin + low_half:high_bin - high_half] < 1e-12)

    def test_peak_ceiling(self):
        buffer = sine_buffer(100, amplitude=0.9)
        result = equalize(buffer, low_gain_db=12.0)
        assert result.peak() <= 0.99 + 1e-6

    def test_get_info(self):
        eq = MultibandEqualizer(SR, EqualizerConfig(mid_gain_db=3.0))
        info = eq.get_info()
        assert info["config"]["mid_gain_db"] == 3.0
        assert info["config"]["crossover_bins"] == eq.crossover_bins()


class TestParametricEqualizer:
    """Test suite for bell-band equalization."""

    def test_band_validation(self):
        with pytest.raises(ValueError):
            BandDescriptor(0.0, 3.0, 1.0)
        with pytest.raises(ValueError):
            BandDescriptor(1000.0, 3.0, 0.0)

    def test_bell_shape(self):
        band = BandDescriptor(1000.0, 6.0, 1.0)
        freqs = np.array([0.0, 1000.0, 1500.0, 2000.0, 4000.0])
        gain = bell_gain(freqs, band)

        assert gain[0] == 1.0
        assert gain[1] == pytest.approx(db_to_gain(6.0))
        assert 1.0 < gain[2] < gain[1]
        assert gain[3] == pytest.approx(1.0)
        assert gain[4] == 1.0

    def test_clarity_bands(self):
        low, high = clarity_bands(0.0)
        assert (low.frequency_hz, low.gain_db, low.bandwidth_octaves) == (2500.0, 3.0, 1.0)
        assert (high.frequency_hz, high.gain_db) == (5000.0, 1.0)

        low, high = clarity_bands(1.0)
        assert low.gain_db == pytest.approx(12.0)
        assert high.gain_db == pytest.approx(6.0)

    def test_no_bands_is_identity(self):
        buffer = sine_buffer(440)
        result = ParametricEqualizer(SR, ParametricEqConfig()).process(buffer)
        np.testing.assert_array_equal(result.channels, buffer.channels)

    def test_clarity_boosts_presence(self):
        buffer = sine_buffer(2500, amplitude=0.1)
        result = enhance_clarity(buffer, intensity=0.5)

        ratio = interior_rms(result.channels[0]) / interior_rms(buffer.channels[0])
        # 2.5 kHz sits an octave below the clarity band, outside its reach
        assert ratio == pytest.approx(db_to_gain(7.5), rel=0.02)

    def test_clarity_leaves_bass(self):
        buffer = sine_buffer(200, amplitude=0.1)
        result = enhance_clarity(buffer, intensity=0.5)

        ratio = interior_rms(result.channels[0]) / interior_rms(buffer.channels[0])
        assert ratio == pytest.approx(1.0, rel=0.01)
