"""
vocal_enhancer.dsp.dynamics
~~~~~~~~~~~~~~~~~~~~~~~~~~~

Post-shift dynamics and timbre shaping.

All stages return new arrays.  The chain is optional makeup gain →
compression → harmonic exciter → optional echo → peak normalisation with
gain and a hard clamp → optional soft limiter, so the result always lies
in ``[-1, 1]``.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy.signal import lfilter

from vocal_enhancer.config import (
    COMPRESSOR_RATIO,
    COMPRESSOR_THRESHOLD,
    EXCITER_DRIVE,
    EXCITER_MIX,
    EXCITER_THRESHOLD,
    LIMITER_CEILING,
    MAKEUP_COMPENSATION,
    MAKEUP_GAIN_RANGE,
    OUTPUT_GAIN,
    EnhancerConfig,
)

logger = logging.getLogger(__name__)


def rms(samples: np.ndarray) -> float:
    """Root-mean-square level, ``0.0`` for an empty buffer."""
    x = np.asarray(samples, dtype=np.float64)
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(x * x)))


def makeup_gain(
    samples: np.ndarray,
    reference_rms: float,
    compensation: float = MAKEUP_COMPENSATION,
    gain_range: tuple[float, float] = MAKEUP_GAIN_RANGE,
) -> np.ndarray:
    """Bring *samples* back to *reference_rms*, times *compensation*.

    The gain is clamped to *gain_range*.  Near-silent buffers (RMS below
    ``1e-9``) are returned unchanged.
    """
    x = np.asarray(samples, dtype=np.float64)
    level = rms(x)
    if level <= 1e-9:
        return x.copy()
    gain = float(np.clip(reference_rms / level * compensation, *gain_range))
    logger.debug("makeup gain %.3f (rms %.4f -> %.4f)", gain, level, reference_rms)
    return x * gain


def compress(
    samples: np.ndarray,
    threshold: float = COMPRESSOR_THRESHOLD,
    ratio: float = COMPRESSOR_RATIO,
) -> np.ndarray:
    """Attenuate positive excursions above *threshold* by *ratio*.

    ``x > T`` becomes ``T + (x - T) / R``.  Negative peaks are left alone;
    the asymmetry is part of the enhancer's sound.
    """
    x = np.asarray(samples, dtype=np.float64)
    return np.where(x > threshold, threshold + (x - threshold) / ratio, x)


def excite(
    samples: np.ndarray,
    threshold: float = EXCITER_THRESHOLD,
    drive: float = EXCITER_DRIVE,
    mix: float = EXCITER_MIX,
) -> np.ndarray:
    """Harmonic exciter: drive, hard-clip and blend loud samples back in.

    For ``|x| > threshold``: ``x + mix * clip(x * drive, -1, 1)``.  The
    result may exceed ``[-1, 1]``; :func:`normalize` re-clamps it.
    """
    x = np.asarray(samples, dtype=np.float64)
    driven = np.clip(x * drive, -1.0, 1.0)
    return np.where(np.abs(x) > threshold, x + mix * driven, x)


def _delay_line(x: np.ndarray, delay: int, gain_in: float, feedback: float) -> np.ndarray:
    """Output of a feedback comb ``v[n] = g*x[n] + fb*v[n-d]`` read ``d`` samples late."""
    a = np.zeros(delay + 1, dtype=np.float64)
    a[0] = 1.0
    a[delay] = -feedback
    line = lfilter([gain_in], a, x)
    delayed = np.zeros_like(line)
    if delay < x.size:
        delayed[delay:] = line[:-delay]
    return delayed


def echo(
    samples: np.ndarray,
    sample_rate: int,
    gain_in: float = 0.5,
    gain_out: float = 0.18,
    delays_ms: tuple[float, float] = (85.0, 125.0),
    feedback: tuple[float, float] = (0.10, 0.08),
) -> np.ndarray:
    """Two parallel feedback delay lines mixed into the dry signal.

    Each line feeds ``dry * gain_in + feedback * delayed`` back into itself;
    the mean of both delayed outputs is added to the dry signal scaled by
    *gain_out*.
    """
    x = np.asarray(samples, dtype=np.float64)
    if x.size == 0:
        return x.copy()
    gain_in = float(np.clip(gain_in, 0.0, 1.0))
    gain_out = float(np.clip(gain_out, 0.0, 1.0))
    fb1, fb2 = (float(np.clip(fb, 0.0, 0.95)) for fb in feedback)
    d1, d2 = (max(1, int(ms / 1000.0 * sample_rate)) for ms in delays_ms)

    wet = _delay_line(x, d1, gain_in, fb1) + _delay_line(x, d2, gain_in, fb2)
    return x + wet * 0.5 * gain_out


def normalize(samples: np.ndarray, gain: float = OUTPUT_GAIN) -> np.ndarray:
    """Scale to unit peak, apply *gain*, clamp to ``[-1, 1]``.

    An all-zero buffer skips the peak scaling (no division by zero).
    """
    x = np.asarray(samples, dtype=np.float64)
    if x.size == 0:
        return x.copy()
    peak = float(np.max(np.abs(x)))
    if peak > 0.0:
        x = x / peak
    return np.clip(x * gain, -1.0, 1.0)


def soft_limit(samples: np.ndarray, ceiling: float = LIMITER_CEILING) -> np.ndarray:
    """tanh soft limiter.

    Samples up to a knee at ``0.9 * ceiling`` pass through; above it the
    magnitude follows ``knee + (ceiling - knee) * tanh(over) / tanh(1)``
    with ``over = (|x| - knee) / (1 - knee)``, never exceeding *ceiling*.
    """
    x = np.asarray(samples, dtype=np.float64)
    ceiling = float(np.clip(ceiling, 0.1, 0.999))
    knee = 0.9 * ceiling
    magnitude = np.abs(x)
    over = (magnitude - knee) / (1.0 - knee)
    shaped = np.minimum(knee + (ceiling - knee) * np.tanh(over) / np.tanh(1.0), ceiling)
    return np.where(magnitude <= knee, x, np.sign(x) * shaped)


def process_dynamics(
    samples: np.ndarray,
    config: EnhancerConfig | None = None,
    sample_rate: int | None = None,
    reference_rms: float | None = None,
) -> np.ndarray:
    """Run the full dynamics chain configured by *config*.

    Parameters
    ----------
    samples : np.ndarray
        Pitch-corrected buffer.
    config : EnhancerConfig, optional
        Stage parameters; defaults to ``EnhancerConfig()``.
    sample_rate : int, optional
        Required only when the echo stage is enabled.
    reference_rms : float, optional
        Level of the dry input; required only when makeup gain is enabled.

    Returns
    -------
    np.ndarray
        Buffer in ``[-1, 1]``.
    """
    config = config or EnhancerConfig()
    y = np.asarray(samples, dtype=np.float64)
    if config.makeup_gain:
        if reference_rms is None:
            raise ValueError("reference_rms is required when makeup gain is enabled")
        y = makeup_gain(y, reference_rms)
    y = compress(y, config.compressor_threshold, config.compressor_ratio)
    y = excite(y, config.exciter_threshold, config.exciter_drive, config.exciter_mix)
    if config.echo:
        if sample_rate is None:
            raise ValueError("sample_rate is required when echo is enabled")
        y = echo(
            y,
            sample_rate,
            config.echo_gain_in,
            config.echo_gain_out,
            config.echo_delays_ms,
            config.echo_feedback,
        )
        logger.debug("echo applied (%s ms)", config.echo_delays_ms)
    y = normalize(y, config.gain)
    if config.soft_limit:
        y = soft_limit(y, config.limiter_ceiling)
    return y
