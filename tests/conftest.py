import numpy as np
import pytest


@pytest.fixture
def sine_wave():
    sample_rate = 48_000
    t = np.arange(sample_rate * 5, dtype=np.float64) / sample_rate
    base = np.sin(2.0 * np.pi * 1_000.0 * t)
    return {
        "sample_rate": sample_rate,
        "quiet": (0.1 * base).astype(np.float32),
        "loud": (0.5 * base).astype(np.float32),
    }


@pytest.fixture
def silence():
    sample_rate = 48_000
    return {
        "sample_rate": sample_rate,
        "audio": np.zeros(sample_rate * 2, dtype=np.float32),
    }
