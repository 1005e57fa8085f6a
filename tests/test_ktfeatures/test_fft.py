"""Tests for the radix-2 transform engine and framer."""

import numpy as np
import pytest

from ktfeatures.errors import InvalidInputError
from ktfeatures.fft import bit_reverse_indices, fft, is_power_of_two, magnitude_spectrum
from ktfeatures.framing import Framer, hann_window


class TestFFT:
    """Tests for fft / magnitude_spectrum."""

    def test_matches_numpy_fft(self):
        rng = np.random.default_rng(0)
        x = rng.standard_normal(1024)
        np.testing.assert_allclose(fft(x), np.fft.fft(x), atol=1e-9)

    def test_batch_rows_transform_independently(self):
        rng = np.random.default_rng(1)
        frames = rng.standard_normal((5, 256))
        np.testing.assert_allclose(fft(frames), np.fft.fft(frames, axis=-1), atol=1e-9)

    def test_sine_peak_at_expected_bin(self):
        sr = 44100
        n = 2048
        k = 93
        f = k * sr / n  # bin-aligned
        t = np.arange(n) / sr
        spectrum = magnitude_spectrum(np.sin(2 * np.pi * f * t))
        assert spectrum.shape == (n // 2,)
        assert int(np.argmax(spectrum)) == round(f * n / sr)
        # Unique peak
        assert np.sum(spectrum == spectrum.max()) == 1

    def test_magnitudes_are_non_negative(self):
        rng = np.random.default_rng(2)
        spectrum = magnitude_spectrum(rng.uniform(-1, 1, 512))
        assert (spectrum >= 0).all()

    def test_input_not_mutated(self):
        x = np.linspace(-1, 1, 64)
        original = x.copy()
        fft(x)
        magnitude_spectrum(x)
        np.testing.assert_array_equal(x, original)

    def test_degenerate_lengths_are_noop(self):
        one = np.array([0.5])
        assert fft(one) is not None
        np.testing.assert_array_equal(fft(one), one)
        assert fft(np.array([])).size == 0
        assert magnitude_spectrum(one).size == 0

    def test_non_power_of_two_rejected(self):
        with pytest.raises(InvalidInputError):
            fft(np.zeros(1000))
        # InvalidInputError is a ValueError
        with pytest.raises(ValueError):
            magnitude_spectrum(np.zeros(12))

    def test_helpers(self):
        assert is_power_of_two(1)
        assert is_power_of_two(8192)
        assert not is_power_of_two(0)
        assert not is_power_of_two(6)
        assert bit_reverse_indices(8).tolist() == [0, 4, 2, 6, 1, 5, 3, 7]


class TestFramer:
    """Tests for frame slicing and windowing."""

    def test_hann_window_shape(self):
        w = hann_window(2048)
        assert w[0] == pytest.approx(0.0)
        assert w[-1] == pytest.approx(0.0)
        np.testing.assert_allclose(w, np.hanning(2048), atol=1e-12)

    def test_frame_count_drops_partial_tail(self):
        framer = Framer(np.zeros(10_000), 2048, 512)
        # starts 0, 512, ... while start + 2048 <= 10000
        assert len(framer) == (10_000 - 2048) // 512 + 1
        assert len(list(framer)) == len(framer)

    def test_short_buffer_has_no_frames(self):
        framer = Framer(np.ones(1000), 2048, 512)
        assert len(framer) == 0
        assert list(framer.batches()) == []

    def test_frames_are_windowed_slices(self):
        samples = np.arange(4096, dtype=float)
        framer = Framer(samples, 1024, 256)
        frames = list(framer)
        np.testing.assert_allclose(frames[3], samples[768:1792] * hann_window(1024))

    def test_restartable_and_batches_match_iteration(self):
        rng = np.random.default_rng(3)
        framer = Framer(rng.standard_normal(20_000), 1024, 300)
        first = np.array(list(framer))
        second = np.array(list(framer))
        batched = np.vstack(list(framer.batches(batch_size=7)))
        np.testing.assert_array_equal(first, second)
        np.testing.assert_allclose(batched, first)

    def test_does_not_mutate_buffer(self):
        samples = np.ones(5000)
        for _ in Framer(samples, 1024, 512).batches():
            pass
        assert (samples == 1.0).all()

    @pytest.mark.parametrize("frame_size,hop_size", [(1000, 500), (1024, 0), (1024, 2048), (1, 1)])
    def test_invalid_configuration(self, frame_size, hop_size):
        with pytest.raises(InvalidInputError):
            Framer(np.zeros(4096), frame_size, hop_size)
