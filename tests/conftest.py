import numpy as np
import pytest

SR = 44100


def sine(freq, n=8192, sr=SR, amplitude=0.5, harmonics=(1.0,)):
    """Sum of harmonics of `freq`; harmonics[k] is the amplitude of partial k+1."""
    t = np.arange(n) / sr
    x = sum(a * np.sin(2 * np.pi * freq * (k + 1) * t) for k, a in enumerate(harmonics))
    return (amplitude * x).astype(np.float32)


@pytest.fixture
def make_sine():
    return sine
