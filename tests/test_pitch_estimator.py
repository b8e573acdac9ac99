from unittest.mock import patch

import numpy as np
import pytest

from Core.config import FREQ_RANGE, FreqRange, HARMONIC_RATIO, INSTRUMENT_FREQ_RANGES
from note_detection.pitch_estimator import (
    autocorrelate,
    compute_rms,
    estimate_pitch,
    find_peak_lag,
    interpolate_peak,
    is_harmonic,
    lag_window,
)

SR = 44100
GUITAR = INSTRUMENT_FREQ_RANGES["guitar"]
BASS = INSTRUMENT_FREQ_RANGES["bass"]


def spiky_correlation(length, peaks, floor=0.1):
    """Flat correlation with c[0] = 1 and the given {lag: value} spikes."""
    c = np.full(length, floor)
    c[0] = 1.0
    for lag, value in peaks.items():
        c[lag] = value
    return c


class TestSilenceGate:

    def test_near_zero_constant_frame(self):
        frame = np.full(2048, 0.0001, dtype=np.float32)
        assert estimate_pitch(frame, FREQ_RANGE, SR) is None

    def test_all_zero_frame(self):
        assert estimate_pitch(np.zeros(2048, dtype=np.float32), FREQ_RANGE, SR) is None

    def test_gate_runs_before_correlation(self, make_sine):
        frame = make_sine(220.0, amplitude=0.005)
        with patch("note_detection.pitch_estimator.autocorrelate") as mock_ac:
            assert estimate_pitch(frame, GUITAR, SR) is None
        mock_ac.assert_not_called()

    def test_rms(self):
        assert compute_rms(np.array([0.5, -0.5, 0.5, -0.5])) == pytest.approx(0.5)
        assert compute_rms(np.array([])) == 0.0


class TestEstimatePitch:

    @pytest.mark.parametrize("freq", [110.0, 146.83, 220.0, 329.63, 440.0])
    def test_sine_in_guitar_band(self, make_sine, freq):
        result = estimate_pitch(make_sine(freq), GUITAR, SR)
        assert result == pytest.approx(freq, rel=0.01)

    def test_low_e(self, make_sine):
        result = estimate_pitch(make_sine(82.41), GUITAR, SR)
        assert result == pytest.approx(82.41, rel=0.01)

    def test_bass_a(self, make_sine):
        result = estimate_pitch(make_sine(55.0), BASS, SR)
        assert result == pytest.approx(55.0, rel=0.01)

    def test_harmonic_rich_tone(self, make_sine):
        frame = make_sine(110.0, harmonics=(1.0, 0.5, 0.3))
        assert estimate_pitch(frame, GUITAR, SR) == pytest.approx(110.0, rel=0.01)

    def test_other_sample_rate(self, make_sine):
        frame = make_sine(196.0, sr=48000)
        assert estimate_pitch(frame, GUITAR, 48000) == pytest.approx(196.0, rel=0.01)

    def test_period_longer_than_band(self, make_sine):
        # 40 Hz has no correlation peak inside the guitar lag window
        assert estimate_pitch(make_sine(40.0), GUITAR, SR) is None

    def test_white_noise_has_no_reliable_peak(self):
        rng = np.random.default_rng(3)
        frame = rng.uniform(-0.5, 0.5, 8192).astype(np.float32)
        assert estimate_pitch(frame, GUITAR, SR) is None

    def test_refined_frequency_outside_band(self, make_sine):
        with patch("note_detection.pitch_estimator.interpolate_peak", return_value=10.0):
            assert estimate_pitch(make_sine(220.0), GUITAR, SR) is None


class TestAutocorrelate:

    def test_small_frame(self):
        result = autocorrelate(np.array([1, 0, 1, 0], dtype=np.float32))
        assert len(result) == 4
        np.testing.assert_allclose(result, [2.0, 0.0, 1.0, 0.0])

    def test_lag_zero_is_energy(self, make_sine):
        frame = make_sine(220.0, n=1024)
        assert autocorrelate(frame)[0] == pytest.approx(np.sum(frame.astype(np.float64) ** 2))


class TestFindPeakLag:

    def test_single_peak(self):
        period = round(SR / 440)
        c = spiky_correlation(period * 2, {period: 0.9})
        lag = find_peak_lag(c, SR, FREQ_RANGE)
        assert lag == period
        assert FREQ_RANGE.min < SR / lag < FREQ_RANGE.max

    def test_tie_keeps_shortest_lag(self):
        c = spiky_correlation(300, {100: 0.9, 150: 0.9})
        assert find_peak_lag(c, SR, FREQ_RANGE) == 100

    def test_below_threshold(self):
        c = spiky_correlation(300, {100: 0.5})
        assert find_peak_lag(c, SR, FREQ_RANGE) is None

    def test_rejects_subharmonic(self):
        # lag 200 is stronger, but half of it (lag 100) correlates within 90%
        c = spiky_correlation(400, {100: 0.85, 200: 0.9})
        assert find_peak_lag(c, SR, FREQ_RANGE) == 100

    def test_all_candidates_harmonic(self):
        c = spiky_correlation(400, {200: 0.9})
        c[99:102] = 0.85  # plateau: correlates, but is not a peak
        assert find_peak_lag(c, SR, FREQ_RANGE) is None

    @pytest.mark.parametrize("harmonic_lag", [100, 75])
    def test_higher_multiples_at_exact_ratio(self, harmonic_lag):
        c = spiky_correlation(400, {300: 1.0})
        c[harmonic_lag - 1:harmonic_lag + 2] = HARMONIC_RATIO  # correlates, but is not a peak
        assert find_peak_lag(c, SR, FREQ_RANGE) is None

    @pytest.mark.parametrize("harmonic_lag", [100, 75])
    def test_higher_multiples_just_under_ratio(self, harmonic_lag):
        c = spiky_correlation(400, {300: 1.0})
        c[harmonic_lag - 1:harmonic_lag + 2] = np.nextafter(HARMONIC_RATIO, 0.0)
        assert find_peak_lag(c, SR, FREQ_RANGE) == 300

    def test_flat_correlation(self):
        assert find_peak_lag(np.ones(300), SR, FREQ_RANGE) is None

    def test_ignores_peaks_outside_window(self):
        # lag 10 is 4410 Hz, above the band
        c = spiky_correlation(300, {10: 0.95})
        assert find_peak_lag(c, SR, FREQ_RANGE) is None


class TestLagWindow:

    def test_bounds(self):
        assert lag_window(8192, SR, GUITAR) == (44, 735)

    def test_clamped_to_frame(self):
        assert lag_window(1024, SR, FreqRange(20.0, 2000.0)) == (22, 1022)


class TestIsHarmonic:

    def test_half_lag_correlates(self):
        c = spiky_correlation(400, {100: 0.85, 200: 0.9})
        assert is_harmonic(c, 200, SR)

    def test_clean_peak(self):
        c = spiky_correlation(400, {200: 0.9})
        assert not is_harmonic(c, 200, SR)

    @pytest.mark.parametrize("harmonic_lag", [150, 100, 75])
    def test_ratio_boundary(self, harmonic_lag):
        # lag 300 is 147 Hz; 2x, 3x and 4x land on lags 150, 100 and 75
        c = spiky_correlation(400, {300: 1.0, harmonic_lag: HARMONIC_RATIO})
        assert is_harmonic(c, 300, SR)
        c[harmonic_lag] = np.nextafter(HARMONIC_RATIO, 0.0)
        assert not is_harmonic(c, 300, SR)


class TestInterpolatePeak:

    def test_symmetric(self):
        assert interpolate_peak(np.array([0.5, 1.0, 0.5]), 1) == pytest.approx(1.0)

    def test_skewed_right(self):
        # p = 0.5 * (0.5 - 0.8) / (0.5 - 2.0 + 0.8)
        assert interpolate_peak(np.array([0.5, 1.0, 0.8]), 1) == pytest.approx(1 + 0.15 / 0.7)

    def test_flat_neighbourhood(self):
        assert interpolate_peak(np.array([1.0, 1.0, 1.0]), 1) == 1.0

    def test_edges(self):
        c = np.array([1.0, 0.5, 0.2])
        assert interpolate_peak(c, 0) == 0.0
        assert interpolate_peak(c, 2) == 2.0
