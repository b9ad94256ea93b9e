"""Unit tests for sample-buffer preprocessing"""

import numpy as np
import pytest

from music_features.analysis.math_utils import clamp, clamp01, safe_mean
from music_features.analysis.preprocessing import (
    make_window,
    hann_window,
    next_power_of_two,
    normalize_peak,
    pad_to_power_of_two,
    pcm16_bytes_to_float,
    prepare_window,
    quantize_pcm16,
    rms,
)
from music_features.models.enums import WindowType


class TestPowerOfTwo:
    """Tests for power-of-two sizing and padding"""

    @pytest.mark.parametrize("n,expected", [
        (0, 1), (1, 1), (2, 2), (3, 4), (1000, 1024), (1024, 1024), (1025, 2048),
    ])
    def test_next_power_of_two(self, n, expected):
        assert next_power_of_two(n) == expected

    def test_pad_zero_fills(self):
        padded = pad_to_power_of_two(np.array([1.0, 2.0, 3.0]), 3)
        np.testing.assert_array_equal(padded, [1.0, 2.0, 3.0, 0.0])

    def test_pad_truncates_to_requested_length(self):
        padded = pad_to_power_of_two(np.arange(1, 11, dtype=float), 4)
        np.testing.assert_array_equal(padded, [1.0, 2.0, 3.0, 4.0])


class TestWindows:
    """Tests for window functions"""

    def test_hann_coefficients(self):
        np.testing.assert_allclose(hann_window(5), [0.0, 0.5, 1.0, 0.5, 0.0], atol=1e-12)

    def test_hann_degenerate_lengths(self):
        assert len(hann_window(0)) == 0
        np.testing.assert_array_equal(hann_window(1), [1.0])

    def test_rectangular_is_all_ones(self):
        np.testing.assert_array_equal(make_window(WindowType.RECTANGULAR, 8), np.ones(8))

    def test_hamming_endpoints(self):
        window = make_window(WindowType.HAMMING, 9)
        assert window[0] == pytest.approx(0.08)
        assert window[4] == pytest.approx(1.0)

    def test_blackman_endpoints(self):
        window = make_window(WindowType.BLACKMAN, 9)
        assert window[0] == pytest.approx(0.0, abs=1e-12)
        assert window[4] == pytest.approx(1.0)


class TestPrepareWindow:
    """Tests for analysis-window preparation"""

    def test_short_buffer_is_degenerate(self):
        assert prepare_window(np.ones(63)) is None
        assert prepare_window(np.zeros(0)) is None

    def test_window_covers_only_real_samples(self):
        windowed = prepare_window(np.ones(100), window_length=1024)

        assert len(windowed) == 128
        assert windowed[0] == pytest.approx(0.0)
        assert windowed[50] > 0.9
        np.testing.assert_array_equal(windowed[100:], np.zeros(28))

    def test_long_buffer_uses_first_window(self):
        samples = np.concatenate([np.ones(1024), np.full(1024, 5.0)])
        windowed = prepare_window(samples, window_length=1024, window=WindowType.RECTANGULAR)

        assert len(windowed) == 1024
        np.testing.assert_array_equal(windowed, np.ones(1024))


class TestLevels:
    """Tests for level helpers"""

    def test_rms(self):
        assert rms(np.array([0.6, 0.8])) == pytest.approx(np.sqrt(0.5))
        assert rms(np.zeros(0)) == 0.0

    def test_normalize_peak(self):
        normalized = normalize_peak(np.array([0.25, -0.5], dtype=np.float32))
        np.testing.assert_allclose(normalized, [0.5, -1.0])

    def test_normalize_silence_unchanged(self):
        np.testing.assert_array_equal(normalize_peak(np.zeros(4)), np.zeros(4))


class TestPcm16:
    """Tests for 16-bit PCM helpers"""

    def test_bytes_to_float_skips_header_and_odd_byte(self):
        data = bytes(44) + b'\x00\x40' + b'\x00\xc0' + b'\x01'
        samples = pcm16_bytes_to_float(data)

        assert samples.dtype == np.float32
        np.testing.assert_array_equal(samples, [0.5, -0.5])

    def test_bytes_shorter_than_header(self):
        assert len(pcm16_bytes_to_float(b'RIFF')) == 0

    def test_quantize_levels(self):
        quantized = quantize_pcm16(np.array([0.5, 1.0, -1.0, 0.0]))
        np.testing.assert_array_equal(quantized, np.array([0.5, 32767 / 32768, -1.0, 0.0], dtype=np.float32))


class TestMathUtils:
    """Tests for clamping helpers"""

    def test_clamp(self):
        assert clamp(5.0, 0.0, 1.0) == 1.0
        assert clamp(-5.0, 0.0, 1.0) == 0.0
        assert clamp(float('nan'), 60.0, 200.0) == 60.0

    def test_clamp01(self):
        assert clamp01(0.3) == 0.3
        assert clamp01(2) == 1.0

    def test_safe_mean(self):
        assert safe_mean([]) == 0.0
        assert safe_mean([], default=0.5) == 0.5
        assert safe_mean([0.2, 0.4]) == pytest.approx(0.3)
