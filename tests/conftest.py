"""
Shared fixtures for the test suite.

Synthetic signals only: every test builds its audio in memory so the
suite needs no files and no audio backend.
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pytest

SR: int = 44100
"""Sample rate used by the scenario tests."""


def _make_sine(
    frequency: float,
    duration: float,
    sample_rate: int = SR,
    amplitude: float = 0.8,
) -> np.ndarray:
    """Pure sine tone as float64 samples."""
    t = np.arange(int(round(duration * sample_rate))) / sample_rate
    return amplitude * np.sin(2.0 * np.pi * frequency * t)


def _peak_frequency(samples: np.ndarray, sample_rate: int = SR) -> float:
    """Frequency of the strongest Hann-windowed spectral peak (≈0.17 Hz grid)."""
    x = np.asarray(samples, dtype=np.float64)
    n_fft = 1 << 18
    mags = np.abs(np.fft.rfft(x * np.hanning(x.size), n=n_fft))
    return float(np.argmax(mags)) * sample_rate / n_fft


@pytest.fixture
def sine() -> Callable[..., np.ndarray]:
    """Factory fixture: ``sine(frequency, duration, sample_rate=44100, amplitude=0.8)``."""
    return _make_sine


@pytest.fixture
def peak_frequency() -> Callable[..., float]:
    """Factory fixture: ``peak_frequency(samples, sample_rate=44100)``."""
    return _peak_frequency


@pytest.fixture
def rng() -> np.random.Generator:
    """Deterministic random generator."""
    return np.random.default_rng(1234)
