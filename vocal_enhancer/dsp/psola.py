"""
vocal_enhancer.dsp.psola
~~~~~~~~~~~~~~~~~~~~~~~~

Overlap-add pitch shifter.

The buffer is cut into Hann-windowed grains of ``window_size`` samples
every ``hop_size`` samples (75 % overlap by default).  Each grain is
resampled by the shift ratio, windowed a second time on the synthesis
side and added into an output accumulator at ``round(start * ratio)``.
The accumulator has the input's length; anything placed past the end is
dropped.

Placing grains at ``start * ratio`` scales time by *ratio*, so the pitch
moves to ``f / ratio``.  A ratio below 1 raises it and compresses the
buffer into its first ``ratio * len`` samples plus one grain, which can
leave a short silent tail on long buffers.  A ratio above 1 lowers it.

Notes
-----
* The synthesis window has the length of the stretched grain, so at
  ratio 1.0 it is exactly the analysis window.
* The accumulator is divided by the summed analysis × synthesis window
  envelope wherever that envelope is above :data:`ENVELOPE_FLOOR`.  At
  ratio 1.0 this makes the shifter an identity everywhere except the
  first ~10 samples (at the default window size), where the envelope is
  below the floor and the output keeps the doubly windowed, near-zero
  value: every output starts with a short fade-in.
"""

from __future__ import annotations

import logging
import math
from functools import lru_cache

import numpy as np

from vocal_enhancer.config import HOP_SIZE, WINDOW_SIZE
from vocal_enhancer.dsp.resample import resample, stretched_length

logger = logging.getLogger(__name__)

ENVELOPE_FLOOR: float = 1e-6
"""Window envelope below which output samples are left un-normalised."""


@lru_cache(maxsize=16)
def hann_window(size: int) -> np.ndarray:
    """Symmetric Hann window ``0.5 * (1 - cos(2πi / (size - 1)))``.

    Cached per size and returned read-only.
    """
    window = np.hanning(size)
    window.setflags(write=False)
    return window


def frame_count(n_samples: int, hop_size: int = HOP_SIZE) -> int:
    """Number of analysis frames, ``ceil(n_samples / hop_size)``."""
    return math.ceil(n_samples / hop_size)


def shift_pitch(
    samples: np.ndarray,
    ratio: float,
    window_size: int = WINDOW_SIZE,
    hop_size: int = HOP_SIZE,
) -> np.ndarray:
    """Resynthesise *samples* with every grain resampled by *ratio*.

    Parameters
    ----------
    samples : np.ndarray
        Mono input buffer.
    ratio : float
        Time-scale ratio; the pitch moves to ``f / ratio``.  Non-finite or
        non-positive values are replaced by ``1.0`` (pass-through).
    window_size : int
        Grain length in samples.
    hop_size : int
        Distance between analysis frames.

    Returns
    -------
    np.ndarray
        Buffer with the same length as *samples*.  The first samples fade
        in from zero because the Hann envelope there is below
        :data:`ENVELOPE_FLOOR` and is left un-normalised (about 10 samples
        for a 1024-sample window).
    """
    x = np.asarray(samples, dtype=np.float64)
    n = x.size
    if n == 0:
        return np.zeros(0, dtype=np.float64)
    if not math.isfinite(ratio) or ratio <= 0.0:
        logger.warning("degenerate shift ratio %r, passing through", ratio)
        ratio = 1.0

    window = hann_window(window_size)
    stretched_window = resample(window, ratio)
    synthesis = hann_window(stretched_window.size)
    envelope = stretched_window * synthesis

    out = np.zeros(n, dtype=np.float64)
    weight = np.zeros(n, dtype=np.float64)
    frame = np.zeros(window_size, dtype=np.float64)

    for k in range(frame_count(n, hop_size)):
        start = k * hop_size
        pos = stretched_length(start, ratio)
        if pos >= n:
            break

        chunk = x[start : start + window_size]
        frame[: chunk.size] = chunk
        frame[chunk.size :] = 0.0

        grain = resample(frame * window, ratio) * synthesis
        count = min(grain.size, n - pos)
        out[pos : pos + count] += grain[:count]
        weight[pos : pos + count] += envelope[:count]

    covered = weight > ENVELOPE_FLOOR
    out[covered] /= weight[covered]
    return out
