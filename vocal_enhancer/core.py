"""
vocal_enhancer.core
~~~~~~~~~~~~~~~~~~~

High-level enhancement pipeline — the "glue" that connects the PCM
codec, pitch analysis, note quantisation, resynthesis and dynamics into
one-liner calls.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from vocal_enhancer.config import (
    SAMPLE_WIDTH,
    SUPPORTED_SAMPLE_WIDTHS,
    EnhancerConfig,
    EnhancerConstructionError,
)
from vocal_enhancer.data.pcm import decode, encode
from vocal_enhancer.dsp.dynamics import process_dynamics, rms
from vocal_enhancer.dsp.psola import shift_pitch
from vocal_enhancer.dsp.spectrum import SpectrumAnalyzer, analysis_length
from vocal_enhancer.dsp.vocoder import shift_pitch_vocoder
from vocal_enhancer.theory.notes import cents_between, nearest_note, note_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PitchAnalysis:
    """What the engine decided for one buffer."""

    detected: float
    """Dominant frequency in Hz (440 Hz fallback for silence)."""

    is_silent: bool

    target: float
    """Nearest equal-tempered note frequency in Hz."""

    note: str
    """Name of the target note, e.g. ``'A4'``."""

    ratio: float
    """Shift ratio handed to the resynthesis stage (``1.0`` = untouched)."""


def compute_shift_ratio(
    detected: float,
    target: float,
    config: EnhancerConfig | None = None,
) -> float:
    """Turn a detected/target frequency pair into a safe shift ratio.

    Parameters
    ----------
    detected : float
        Estimated pitch in Hz.
    target : float
        Quantised note frequency in Hz.
    config : EnhancerConfig, optional
        Ratio bounds and correction policy.

    Returns
    -------
    float
        ``target / detected`` shaped by the dead zone, correction cap,
        strength and block smoothing.  Zero or non-finite frequencies, a
        non-finite ratio or a ratio outside ``[min_ratio, max_ratio]`` (a likely spurious
        detection) all yield ``1.0``.
    """
    config = config or EnhancerConfig()
    if not (math.isfinite(detected) and detected > 0.0 and math.isfinite(target) and target > 0.0):
        logger.warning("cannot correct detected=%r target=%r, passing through", detected, target)
        return 1.0

    ratio = target / detected
    if not math.isfinite(ratio) or ratio <= 0.0:
        logger.warning("non-finite shift ratio for detected=%r, passing through", detected)
        return 1.0
    if not config.min_ratio <= ratio <= config.max_ratio:
        logger.warning(
            "shift ratio %.4f outside [%.2f, %.2f], treating detection as spurious",
            ratio,
            config.min_ratio,
            config.max_ratio,
        )
        return 1.0

    cents = cents_between(target, detected)
    if abs(cents) < config.dead_zone_cents:
        return 1.0
    if config.max_correction_cents is not None and abs(cents) > config.max_correction_cents:
        ratio = 2.0 ** (math.copysign(config.max_correction_cents, cents) / 1200.0)
    if config.strength != 1.0:
        ratio = ratio**config.strength
    if config.smoothing != 1.0:
        ratio = 1.0 + config.smoothing * (ratio - 1.0)
    return ratio


class VocalEnhancer:
    """Pitch-correct and polish a mono vocal take held in memory.

    Parameters
    ----------
    sample_rate : int
        Sample rate in Hz of every buffer handed to this engine.
    sample_width : int
        Bytes per PCM sample (2 in practice).
    channels : int
        Interleaved channels in the PCM; they are down-mixed for
        processing and the result is replicated back.
    config : EnhancerConfig, optional
        Tunables; defaults to ``EnhancerConfig()``.
    is_float : bool
        The PCM holds ``float32`` samples (``sample_width`` must be 4).

    Raises
    ------
    EnhancerConstructionError
        On an invalid sample rate, width, channel count or analysis size.

    Notes
    -----
    The engine owns the FFT plan of its :class:`SpectrumAnalyzer`.  Calls
    on one instance must not overlap; use one engine per thread.
    """

    def __init__(
        self,
        sample_rate: int,
        sample_width: int = SAMPLE_WIDTH,
        channels: int = 1,
        config: EnhancerConfig | None = None,
        is_float: bool = False,
    ) -> None:
        try:
            rate = int(sample_rate)
        except (TypeError, ValueError, OverflowError) as exc:
            raise EnhancerConstructionError(f"invalid sample_rate {sample_rate!r}") from exc
        if rate <= 0:
            raise EnhancerConstructionError(f"sample_rate must be positive, got {sample_rate}")
        if sample_width not in SUPPORTED_SAMPLE_WIDTHS:
            raise EnhancerConstructionError(
                f"sample_width must be one of {SUPPORTED_SAMPLE_WIDTHS}, got {sample_width}"
            )
        if channels < 1:
            raise EnhancerConstructionError(f"channels must be >= 1, got {channels}")
        if is_float and sample_width != 4:
            raise EnhancerConstructionError(f"float PCM must be 4 bytes wide, got {sample_width}")

        self.sample_rate = rate
        self.sample_width = sample_width
        self.channels = channels
        self.is_float = is_float
        self.config = config or EnhancerConfig()
        self.analyzer = SpectrumAnalyzer(
            rate, n_fft=analysis_length(rate, self.config.analysis_ms)
        )

        self._progress = 0.0
        self.banner = "Begin Vocal Enhancement"
        self.last_analysis: PitchAnalysis | None = None

    @property
    def frame_bytes(self) -> int:
        return self.sample_width * self.channels

    @property
    def progress(self) -> int:
        """Completion of the current/last call, 0–100."""
        return int(self._progress * 100.0)

    def _report(self, fraction: float, banner: str) -> None:
        self._progress = fraction
        self.banner = banner
        logger.debug("%3d%% %s", self.progress, banner)

    # ── Pipeline stages ──────────────────────────────────────────────
    def analyze(self, samples: np.ndarray) -> PitchAnalysis:
        """Detect the pitch of *samples* and decide the correction."""
        estimate = self.analyzer.estimate(samples)
        target = nearest_note(estimate.frequency)
        ratio = compute_shift_ratio(estimate.frequency, target, self.config)
        return PitchAnalysis(
            detected=estimate.frequency,
            is_silent=estimate.is_silent,
            target=target,
            note=note_name(target),
            ratio=ratio,
        )

    def _resynthesize(self, samples: np.ndarray, ratio: float) -> np.ndarray:
        """Raise the pitch of *samples* by *ratio*.

        Both shifters scale time by their argument, which moves the pitch
        by its inverse, so they are handed ``1 / ratio``.  A ratio within
        ``bypass_eps`` of ``1.0`` skips resynthesis altogether.
        """
        if abs(ratio - 1.0) <= self.config.bypass_eps:
            return samples.copy()
        time_scale = 1.0 / ratio
        if self.config.shifter == "phase_vocoder":
            return shift_pitch_vocoder(samples, time_scale)
        return shift_pitch(samples, time_scale, self.config.window_size, self.config.hop_size)

    def process(self, samples: np.ndarray) -> np.ndarray:
        """Run analysis, resynthesis and dynamics on a float buffer.

        Parameters
        ----------
        samples : np.ndarray
            Mono samples in ``[-1, 1]``.

        Returns
        -------
        np.ndarray
            Enhanced samples in ``[-1, 1]``, same length as the input.  When
            the pitch is raised the shifter covers roughly ``len / ratio``
            samples, so a short silent tail may remain.
        """
        x = np.asarray(samples, dtype=np.float64)
        self._report(0.0, "Begin Vocal Enhancement")
        if x.size == 0:
            self._report(1.0, "Enhancer: empty input")
            return x.copy()

        analysis = self.last_analysis = self.analyze(x)
        if analysis.is_silent:
            self._report(0.25, "Enhancer: silence, no pitch correction")
        else:
            self._report(
                0.25,
                f"pitch detected: {analysis.detected:.2f} Hz -> "
                f"{analysis.note} ({analysis.target:.2f} Hz) r={analysis.ratio:.4f}",
            )

        shifted = self._resynthesize(x, analysis.ratio)
        if not np.all(np.isfinite(shifted)):
            logger.warning("resynthesis produced non-finite samples, keeping the dry signal")
            shifted = x.copy()
        self._report(0.75, "Applying dynamics")

        out = process_dynamics(shifted, self.config, self.sample_rate, reference_rms=rms(x))
        self._report(1.0, "Vocal Enhancement complete!")
        return out

    def enhance(self, pcm: bytes) -> bytes:
        """Pitch-correct raw PCM and return PCM in the same format.

        Parameters
        ----------
        pcm : bytes
            Headerless little-endian PCM matching the engine's width and
            channel count.  An incomplete trailing frame is dropped.

        Returns
        -------
        bytes
            Enhanced PCM, ``frame_bytes * floor(len(pcm) / frame_bytes)``
            bytes long; empty for empty input.
        """
        samples = decode(pcm, self.sample_width, self.channels, self.is_float)
        if samples.size == 0:
            self._report(1.0, "Enhancer: empty input")
            return b""

        out = self.process(samples)
        analysis = self.last_analysis
        logger.info(
            "enhanced %d samples @ %d Hz: %.2f Hz -> %s r=%.4f",
            samples.size,
            self.sample_rate,
            analysis.detected,
            analysis.note,
            analysis.ratio,
        )
        return encode(out, self.sample_width, self.channels, self.is_float)


def enhance(
    pcm: bytes,
    sample_rate: int,
    sample_width: int = SAMPLE_WIDTH,
    channels: int = 1,
    config: EnhancerConfig | None = None,
    is_float: bool = False,
) -> bytes:
    """One-shot :meth:`VocalEnhancer.enhance` with a throwaway engine."""
    engine = VocalEnhancer(sample_rate, sample_width, channels, config, is_float=is_float)
    return engine.enhance(pcm)
