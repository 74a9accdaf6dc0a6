"""
vocal_enhancer.dsp.vocoder
~~~~~~~~~~~~~~~~~~~~~~~~~~

Phase-vocoder alternative to :mod:`vocal_enhancer.dsp.psola`.

Time-stretches the whole buffer to ``len / ratio`` in the STFT domain
(librosa's phase vocoder keeps bin phases coherent across frames), then
resamples the result back to the input length with the cubic kernel.  As
with the overlap-add shifter the pitch moves to ``f / ratio``.
Selected with ``EnhancerConfig(shifter="phase_vocoder")``.
"""

from __future__ import annotations

import logging
import math

import librosa
import numpy as np

from vocal_enhancer.config import PV_HOP_LENGTH, PV_N_FFT
from vocal_enhancer.dsp.resample import resample_to_length

logger = logging.getLogger(__name__)


def shift_pitch_vocoder(
    samples: np.ndarray,
    ratio: float,
    n_fft: int = PV_N_FFT,
    hop_length: int = PV_HOP_LENGTH,
) -> np.ndarray:
    """Phase-vocoder counterpart of :func:`~vocal_enhancer.dsp.psola.shift_pitch`.

    Parameters
    ----------
    samples : np.ndarray
        Mono input buffer.
    ratio : float
        Time-scale ratio; the pitch moves to ``f / ratio``.  Degenerate
        values pass the input through.
    n_fft, hop_length : int
        STFT geometry.

    Returns
    -------
    np.ndarray
        Buffer with the same length as *samples*.  Inputs shorter than one
        FFT frame are returned unchanged.
    """
    x = np.asarray(samples, dtype=np.float64)
    if not math.isfinite(ratio) or ratio <= 0.0:
        logger.warning("degenerate shift ratio %r, passing through", ratio)
        return x.copy()
    if x.size < n_fft or ratio == 1.0:
        return x.copy()

    D = librosa.stft(x, n_fft=n_fft, hop_length=hop_length, window="hann")
    # rate > 1 shortens the signal: length becomes len(x) / ratio
    D_stretched = librosa.phase_vocoder(D, rate=ratio, hop_length=hop_length, n_fft=n_fft)
    target = max(2, int(round(x.size / ratio)))
    stretched = librosa.istft(
        D_stretched,
        hop_length=hop_length,
        n_fft=n_fft,
        window="hann",
        length=target,
    )
    logger.debug("phase vocoder: %d -> %d samples (ratio %.4f)", x.size, stretched.size, ratio)
    return np.clip(resample_to_length(stretched, x.size), -1.0, 1.0)
