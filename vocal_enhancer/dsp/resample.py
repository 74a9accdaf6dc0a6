"""
vocal_enhancer.dsp.resample
~~~~~~~~~~~~~~~~~~~~~~~~~~~

Four-point cubic interpolation and the segment resamplers built on it.

The kernel is the one used throughout the shifter:

.. math::
    a_0 = v_3 - v_2 - v_0 + v_1,\\quad
    a_1 = v_0 - v_1 - a_0,\\quad
    a_2 = v_2 - v_0

    y = a_0 t^3 + a_1 t^2 + a_2 t + v_1

Scalar and vectorised paths evaluate the same expression in the same
order, so results are bit-for-bit identical for identical inputs.
"""

from __future__ import annotations

import math

import numpy as np


def cubic_interpolate(v0: float, v1: float, v2: float, v3: float, t: float) -> float:
    """Interpolate between *v1* and *v2* at fractional position *t* ∈ [0, 1)."""
    a0 = v3 - v2 - v0 + v1
    a1 = v0 - v1 - a0
    a2 = v2 - v0
    return a0 * t * t * t + a1 * t * t + a2 * t + v1


def _interpolate_at(segment: np.ndarray, positions: np.ndarray) -> np.ndarray:
    """Evaluate the cubic kernel at fractional *positions* of *segment*.

    Neighbour indices are clamped to the segment; there is no wraparound.
    """
    last = segment.size - 1
    idx = np.floor(positions).astype(np.int64)
    frac = positions - idx

    v0 = segment[np.clip(idx - 1, 0, last)]
    v1 = segment[np.clip(idx, 0, last)]
    v2 = segment[np.clip(idx + 1, 0, last)]
    v3 = segment[np.clip(idx + 2, 0, last)]

    a0 = v3 - v2 - v0 + v1
    a1 = v0 - v1 - a0
    a2 = v2 - v0
    return a0 * frac * frac * frac + a1 * frac * frac + a2 * frac + v1


def stretched_length(length: int, ratio: float) -> int:
    """``round(length * ratio)`` with halves rounded away from zero."""
    return int(math.floor(length * ratio + 0.5))


def resample(segment: np.ndarray, ratio: float) -> np.ndarray:
    """Stretch (*ratio* > 1) or compress (*ratio* < 1) a segment in time.

    Parameters
    ----------
    segment : np.ndarray
        Input samples.
    ratio : float
        Output/input length ratio; must be positive and finite.

    Returns
    -------
    np.ndarray
        ``round(len(segment) * ratio)`` samples, output ``i`` read from
        source position ``i / ratio``.

    Raises
    ------
    ValueError
        If *ratio* is not a positive finite number.
    """
    if not math.isfinite(ratio) or ratio <= 0.0:
        raise ValueError(f"ratio must be positive and finite, got {ratio}")
    segment = np.asarray(segment, dtype=np.float64)
    n_out = stretched_length(segment.size, ratio)
    if segment.size == 0 or n_out == 0:
        return np.zeros(0, dtype=np.float64)

    positions = np.arange(n_out, dtype=np.float64) / ratio
    return _interpolate_at(segment, positions)


def resample_to_length(segment: np.ndarray, length: int) -> np.ndarray:
    """Resample *segment* to exactly *length* samples.

    The first and last output samples land on the first and last input
    samples; the points in between use the cubic kernel.
    """
    if length < 0:
        raise ValueError(f"length must be non-negative, got {length}")
    segment = np.asarray(segment, dtype=np.float64)
    if length == 0 or segment.size == 0:
        return np.zeros(length, dtype=np.float64)
    if segment.size == 1 or length == 1:
        return np.full(length, segment[0], dtype=np.float64)

    step = (segment.size - 1) / (length - 1)
    positions = np.arange(length, dtype=np.float64) * step
    return _interpolate_at(segment, positions)
