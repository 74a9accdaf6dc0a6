"""
vocal_enhancer.dsp.spectrum
~~~~~~~~~~~~~~~~~~~~~~~~~~~

Dominant-pitch estimation by FFT magnitude peak.

The analyzer owns a :class:`SpectrumPlan` (the fixed analysis length and
a pre-allocated complex work array) created once when the engine is
built.  The plan is mutable scratch space and is therefore **not** safe
to share between threads; build one analyzer (or engine) per
concurrent worker.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import numpy as np

from vocal_enhancer.config import (
    ANALYSIS_MS,
    FALLBACK_FREQUENCY,
    SILENCE_THRESHOLD,
    EnhancerConstructionError,
)

logger = logging.getLogger(__name__)


def analysis_length(sample_rate: int, duration_ms: float = ANALYSIS_MS) -> int:
    """Smallest power of two covering *duration_ms* at *sample_rate*.

    >>> analysis_length(44100)
    2048

    Raises
    ------
    EnhancerConstructionError
        If either argument is not positive.
    """
    if sample_rate <= 0:
        raise EnhancerConstructionError(f"sample_rate must be positive, got {sample_rate}")
    if duration_ms <= 0:
        raise EnhancerConstructionError(f"duration_ms must be positive, got {duration_ms}")
    n = max(1, math.ceil(sample_rate * duration_ms / 1000.0))
    return 1 << (n - 1).bit_length()


@dataclass(frozen=True)
class PitchEstimate:
    """Result of one pitch analysis.

    ``frequency`` is always usable: silent buffers report the 440 Hz
    fallback with ``is_silent=True`` so they are never shifted.
    """

    frequency: float
    is_silent: bool = False


@dataclass
class SpectrumPlan:
    """Fixed-size FFT resources tied to one analyzer."""

    n_fft: int
    sample_rate: int
    work: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.n_fft <= 0:
            raise EnhancerConstructionError(f"analysis length must be positive, got {self.n_fft}")
        self.work = np.zeros(self.n_fft, dtype=np.complex128)

    def magnitudes(self, samples: np.ndarray) -> np.ndarray:
        """Magnitude of bins ``[0, n_fft/2)`` of the zero-padded *samples*.

        Only the first ``n_fft`` samples are analysed.  The work array is
        cleared afterwards so no audio outlives the call.
        """
        count = min(samples.size, self.n_fft)
        self.work[:count] = samples[:count]
        self.work[count:] = 0.0
        try:
            spectrum = np.fft.fft(self.work)
        finally:
            self.work.fill(0.0)
        return np.abs(spectrum[: self.n_fft // 2])


class SpectrumAnalyzer:
    """Estimate the dominant frequency of a mono sample buffer.

    Parameters
    ----------
    sample_rate : int
        Sample rate of every buffer passed to :meth:`estimate`.
    n_fft : int, optional
        Analysis length; defaults to :func:`analysis_length`.
    silence_threshold : float
        Mean absolute amplitude under which a buffer counts as silent.
    """

    def __init__(
        self,
        sample_rate: int,
        n_fft: int | None = None,
        silence_threshold: float = SILENCE_THRESHOLD,
    ) -> None:
        if sample_rate <= 0:
            raise EnhancerConstructionError(f"sample_rate must be positive, got {sample_rate}")
        if n_fft is None:
            n_fft = analysis_length(sample_rate)
        self.sample_rate = int(sample_rate)
        self.silence_threshold = silence_threshold
        self.plan = SpectrumPlan(n_fft=int(n_fft), sample_rate=self.sample_rate)

    @property
    def n_fft(self) -> int:
        return self.plan.n_fft

    @property
    def bin_width(self) -> float:
        """Frequency resolution in Hz."""
        return self.sample_rate / self.plan.n_fft

    def is_silent(self, samples: np.ndarray) -> bool:
        if samples.size == 0:
            return True
        return float(np.mean(np.abs(samples))) < self.silence_threshold

    def estimate(self, samples: np.ndarray) -> PitchEstimate:
        """Run the silence gate and FFT peak search.

        Parameters
        ----------
        samples : np.ndarray
            Mono samples in ``[-1, 1]``.

        Returns
        -------
        PitchEstimate
            ``bin * sample_rate / n_fft`` for the loudest bin below
            Nyquist (lowest bin on ties), or the 440 Hz fallback for
            silence.
        """
        samples = np.asarray(samples, dtype=np.float64)
        if self.is_silent(samples):
            logger.debug("silent buffer (%d samples), using %.1f Hz", samples.size, FALLBACK_FREQUENCY)
            return PitchEstimate(FALLBACK_FREQUENCY, is_silent=True)

        mags = self.plan.magnitudes(samples)
        peak_bin = int(np.argmax(mags))
        frequency = peak_bin * self.sample_rate / self.plan.n_fft
        logger.debug("spectral peak at bin %d -> %.2f Hz", peak_bin, frequency)
        return PitchEstimate(frequency)

    def detect_pitch(self, samples: np.ndarray) -> float:
        """Dominant frequency in Hz (440 Hz for silence)."""
        return self.estimate(samples).frequency
