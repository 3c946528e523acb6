"""
Tests for the audio buffer and shared level utilities.
"""

import pytest
import numpy as np
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from spectral_engine.buffer import AudioBuffer, check_sample_rate, map_channels
from spectral_engine.utils import (
    apply_ceiling, db_to_gain, estimate_loudness, gain_to_db, peak_level, rms_level
)


class TestAudioBuffer:
    """Test suite for AudioBuffer."""

    @pytest.fixture
    def stereo_frames(self):
        t = np.arange(4410) / 44100
        left = 0.5 * np.sin(2 * np.pi * 440 * t)
        right = 0.25 * np.sin(2 * np.pi * 660 * t)
        return np.stack([left, right], axis=1)

    def test_from_mono(self):
        buffer = AudioBuffer.from_mono(np.zeros(100), 22050)
        assert buffer.num_channels == 1
        assert buffer.num_samples == 100
        assert len(buffer) == 100
        assert buffer.channels.dtype == np.float32

    def test_from_frames_transposes(self, stereo_frames):
        buffer = AudioBuffer.from_frames(stereo_frames, 44100)
        assert buffer.channels.shape == (2, 4410)
        np.testing.assert_allclose(buffer.channels[1], stereo_frames[:, 1], atol=1e-7)
        assert buffer.to_frames().shape == (4410, 2)

    def test_duration(self):
        buffer = AudioBuffer(np.zeros((2, 44100)), 44100)
        assert buffer.duration == pytest.approx(1.0)

    def test_invalid_inputs(self):
        with pytest.raises(ValueError):
            AudioBuffer(np.zeros(10), 0)
        with pytest.raises(ValueError):
            AudioBuffer(np.zeros((1, 2, 3)), 44100)
        with pytest.raises(ValueError):
            AudioBuffer.from_mono(np.zeros((2, 10)), 44100)

    def test_copy_is_independent(self, stereo_frames):
        buffer = AudioBuffer.from_frames(stereo_frames, 44100)
        duplicate = buffer.copy()
        duplicate.channels[0, 0] = 0.9
        assert buffer.channels[0, 0] != pytest.approx(0.9)

    def test_with_channels_rejects_shape_change(self, stereo_frames):
        buffer = AudioBuffer.from_frames(stereo_frames, 44100)
        with pytest.raises(ValueError):
            buffer.with_channels([buffer.channels[0][:-1], buffer.channels[1][:-1]])
        with pytest.raises(ValueError):
            buffer.with_channels([buffer.channels[0]])

    def test_with_channels_keeps_rate(self, stereo_frames):
        buffer = AudioBuffer.from_frames(stereo_frames, 44100)
        result = buffer.with_channels([ch * 0.5 for ch in buffer.channels])
        assert result.sample_rate == 44100
        assert result.peak() == pytest.approx(0.25, abs=1e-3)

    def test_check_sample_rate(self):
        buffer = AudioBuffer(np.zeros(10), 48000)
        check_sample_rate(buffer, 48000)
        with pytest.raises(ValueError):
            check_sample_rate(buffer, 44100)

    def test_map_channels_parallel_matches_serial(self):
        rng = np.random.default_rng(1)
        channels = [rng.standard_normal(1000) for _ in range(4)]
        serial = map_channels(channels, np.cumsum)
        parallel = map_channels(channels, np.cumsum, max_workers=3)
        for a, b in zip(serial, parallel):
            np.testing.assert_array_equal(a, b)


class TestLevelUtils:
    """Test suite for level conversions and ceilings."""

    def test_db_conversions(self):
        assert db_to_gain(20.0) == pytest.approx(10.0)
        assert db_to_gain(0.0) == 1.0
        assert gain_to_db(0.1) == pytest.approx(-20.0)
        assert gain_to_db(0.0) == -float('inf')

    def test_apply_ceiling_below_peak_is_noop(self):
        data = [np.array([0.1, -0.5]), np.array([0.2])]
        result, scale = apply_ceiling(data, 0.9)
        assert scale == 1.0
        np.testing.assert_array_equal(result[0], data[0])

    def test_apply_ceiling_scales_jointly(self):
        data = [np.array([2.0, -1.0]), np.array([0.5])]
        result, scale = apply_ceiling(data, 1.0)
        assert scale == pytest.approx(0.5)
        assert peak_level(result) == pytest.approx(1.0)
        np.testing.assert_allclose(result[1], [0.25])

    def test_rms_and_loudness(self):
        sine = np.sin(2 * np.pi * np.arange(44100) * 100 / 44100)
        rms = rms_level([sine, sine])
        assert rms == pytest.approx(1 / np.sqrt(2), rel=1e-3)
        assert estimate_loudness(rms) == pytest.approx(20 * np.log10(rms) - 10)
        assert estimate_loudness(0.0) == -float('inf')
        assert rms_level([]) == 0.0
