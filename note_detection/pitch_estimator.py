# note_detection/pitch_estimator.py
"""
Autocorrelation pitch estimation for a single mono frame.

Everything here is a pure function of its arguments: no history, no device.
Per-session smoothing lives in note_detection.stabilizer.
"""
import math
from typing import Optional

import numpy as np

from Core.config import (
    FREQ_RANGE,
    CORRELATION_THRESHOLD,
    MIN_SIGNAL_STRENGTH,
    HARMONIC_MULTIPLES,
    HARMONIC_RATIO,
)


def compute_rms(frame: np.ndarray) -> float:
    frame = np.asarray(frame, dtype=np.float64)
    if frame.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(frame ** 2)))


def autocorrelate(frame: np.ndarray) -> np.ndarray:
    """
    Raw autocorrelation, one value per lag 0..N-1:
        r[L] = sum_i x[i] * x[i+L]
    """
    x = np.asarray(frame, dtype=np.float64)
    n = len(x)
    return np.correlate(x, x, mode="full")[n - 1:]


def lag_window(n: int, sample_rate: int, freq_range) -> tuple[int, int]:
    """Inclusive lag bounds for the band, kept inside [1, n-2] so a peak always has two neighbours."""
    min_lag = max(1, int(math.floor(sample_rate / freq_range.max)))
    max_lag = min(n - 2, int(math.ceil(sample_rate / freq_range.min)))
    return min_lag, max_lag


def is_harmonic(correlation: np.ndarray, lag: int, sample_rate: int) -> bool:
    """
    True when the peak at `lag` is really a multiple of a shorter period:
    one of the lags for 2x-4x its frequency correlates almost as well.
    """
    freq = sample_rate / lag
    for k in HARMONIC_MULTIPLES:
        harmonic_lag = int(round(sample_rate / (freq * k)))
        if 1 <= harmonic_lag < len(correlation) and \
                correlation[harmonic_lag] >= correlation[lag] * HARMONIC_RATIO:
            return True
    return False


def find_peak_lag(correlation: np.ndarray, sample_rate: int, freq_range=FREQ_RANGE,
                  threshold: float = CORRELATION_THRESHOLD) -> Optional[int]:
    """
    Lag of the strongest non-harmonic correlation peak inside the band.

    A candidate must be a strict local maximum whose min-max normalized
    value exceeds `threshold`. Candidates are scanned in ascending lag
    order and only a strictly larger value replaces the current best, so
    ties keep the shortest lag.
    """
    n = len(correlation)
    min_lag, max_lag = lag_window(n, sample_rate, freq_range)
    if min_lag > max_lag:
        return None

    c_max = float(np.max(correlation))
    c_min = float(np.min(correlation))
    span = c_max - c_min
    if span <= 0:
        return None

    lags = np.arange(min_lag, max_lag + 1)
    window = correlation[lags]
    normalized = (window - c_min) / span
    is_peak = (window > correlation[lags - 1]) & (window > correlation[lags + 1])
    candidates = lags[(normalized > threshold) & is_peak]

    best_lag = None
    best_corr = -np.inf
    for lag in candidates:
        value = correlation[lag]
        if value <= best_corr:
            continue
        if is_harmonic(correlation, int(lag), sample_rate):
            continue
        best_lag, best_corr = int(lag), value
    return best_lag


def interpolate_peak(correlation: np.ndarray, peak: int) -> float:
    """
    Sub-sample peak position from a parabola through peak-1, peak, peak+1.
    A flat neighbourhood (zero curvature) leaves the peak where it is.
    """
    if peak <= 0 or peak >= len(correlation) - 1:
        return float(peak)

    alpha = correlation[peak - 1]
    beta = correlation[peak]
    gamma = correlation[peak + 1]
    denominator = alpha - 2 * beta + gamma
    if denominator == 0:
        return float(peak)
    p = 0.5 * (alpha - gamma) / denominator
    return float(peak + p)


def estimate_pitch(frame: np.ndarray, freq_range=FREQ_RANGE, sample_rate: int = 44100,
                   correlation_threshold: float = CORRELATION_THRESHOLD,
                   min_signal_strength: float = MIN_SIGNAL_STRENGTH) -> Optional[float]:
    """
    Fundamental frequency of one frame.

    Parameters
    ----------
    frame : np.ndarray
        Mono time-domain samples in [-1, 1].
    freq_range : FreqRange
        Band to search, in Hz.
    sample_rate : int
        Sampling rate in Hz.

    Returns
    -------
    float or None
        Frequency in Hz, or None for silence, no reliable peak, or a
        result outside the band.
    """
    if compute_rms(frame) < min_signal_strength:
        return None

    correlation = autocorrelate(frame)
    peak = find_peak_lag(correlation, sample_rate, freq_range, correlation_threshold)
    if peak is None:
        return None

    refined_lag = interpolate_peak(correlation, peak)
    if refined_lag <= 0:
        return None
    freq = sample_rate / refined_lag

    if not (freq_range.min <= freq <= freq_range.max):
        return None
    return float(freq)
