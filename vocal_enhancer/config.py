"""
vocal_enhancer.config
~~~~~~~~~~~~~~~~~~~~~

Global constants for PCM decoding, pitch analysis and resynthesis.
Centralises all magic numbers so they can be imported once and
shared across every submodule, plus the per-engine tunables in
:class:`EnhancerConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

# ── PCM ──────────────────────────────────────────────────────────────
SAMPLE_WIDTH: Final[int] = 2
"""Bytes per sample (16-bit signed little-endian)."""

SUPPORTED_SAMPLE_WIDTHS: Final[tuple[int, ...]] = (1, 2, 3, 4)
"""Integer PCM widths the codec understands (u8, s16, s24, s32)."""

INT16_DECODE_SCALE: Final[float] = 32768.0
"""Divisor mapping int16 samples into [-1, 1)."""

INT16_ENCODE_SCALE: Final[float] = 32767.0
"""Multiplier mapping [-1, 1] floats back onto the int16 range."""

# ── Analysis ─────────────────────────────────────────────────────────
ANALYSIS_MS: Final[float] = 40.0
"""Target analysis duration; the FFT size is the next power of two."""

SILENCE_THRESHOLD: Final[float] = 0.01
"""Mean absolute amplitude below which a buffer counts as silence."""

FALLBACK_FREQUENCY: Final[float] = 440.0
"""Pitch reported for silent buffers (so silence is never shifted)."""

# ── Note table ───────────────────────────────────────────────────────
N_NOTES: Final[int] = 128
"""Number of equal-tempered notes in the table (MIDI 0–127)."""

A4_MIDI: Final[int] = 69
"""Table index of the reference pitch A4."""

A4_FREQUENCY: Final[float] = 440.0
"""Reference tuning in Hz."""

# ── Resynthesis ──────────────────────────────────────────────────────
WINDOW_SIZE: Final[int] = 1024
"""PSOLA grain length in samples."""

HOP_SIZE: Final[int] = WINDOW_SIZE // 4
"""Analysis hop (75 % overlap)."""

MIN_RATIO: Final[float] = 0.5
"""Smallest shift ratio accepted before falling back to pass-through."""

MAX_RATIO: Final[float] = 2.0
"""Largest shift ratio accepted before falling back to pass-through."""

PV_N_FFT: Final[int] = 2048
"""FFT size of the optional phase-vocoder shifter."""

PV_HOP_LENGTH: Final[int] = PV_N_FFT // 4
"""Hop length of the optional phase-vocoder shifter."""

SHIFTERS: Final[tuple[str, ...]] = ("psola", "phase_vocoder")
"""Available resynthesis back-ends."""

# ── Dynamics ─────────────────────────────────────────────────────────
COMPRESSOR_THRESHOLD: Final[float] = 0.7
COMPRESSOR_RATIO: Final[float] = 3.0

EXCITER_THRESHOLD: Final[float] = 0.2
EXCITER_DRIVE: Final[float] = 1.2
EXCITER_MIX: Final[float] = 0.3
"""Share of the driven signal blended back into the dry signal."""

OUTPUT_GAIN: Final[float] = 1.0

MAKEUP_COMPENSATION: Final[float] = 1.35
"""Extra loudness applied on top of restoring the pre-shift RMS."""

MAKEUP_GAIN_RANGE: Final[tuple[float, float]] = (0.75, 3.0)
"""Clamp for the makeup gain."""

LIMITER_CEILING: Final[float] = 0.98
"""Peak ceiling of the tanh soft limiter."""


class EnhancerConstructionError(ValueError):
    """Raised when an engine, analyzer or config cannot be built.

    Only construction-time misconfiguration surfaces as an error; every
    per-buffer condition (silence, degenerate ratio, clipping) is handled
    inside the pipeline with a documented fallback.
    """


@dataclass(frozen=True)
class EnhancerConfig:
    """Per-engine tunables.

    The defaults reproduce the plain correction chain: the raw
    ``target / detected`` ratio, PSOLA resynthesis, compression, exciter
    and peak normalisation with unity gain.

    Attributes
    ----------
    analysis_ms : float
        Analysis duration used to size the FFT.
    min_ratio, max_ratio : float
        Accepted shift-ratio range; anything outside is treated as a
        spurious detection and replaced by ``1.0``.
    dead_zone_cents : float
        Corrections smaller than this are skipped entirely.
    max_correction_cents : float | None
        Cap on the correction size (``None`` = no cap).
    strength : float
        Exponent applied to the ratio, ``0`` = off, ``1`` = full snap.
    shifter : str
        ``"psola"`` or ``"phase_vocoder"``.
    smoothing : float
        Block-level smoothing, ``ratio = 1 + smoothing * (ratio - 1)``;
        ``1`` leaves the ratio untouched.
    bypass_eps : float
        Resynthesis is skipped when ``|ratio - 1| <= bypass_eps``.  With the
        default ``0`` only an exact ``1.0`` is passed through.
    echo : bool
        Enable the dual feedback echo before normalisation.
    makeup_gain : bool
        Restore the pre-shift RMS level (times ``MAKEUP_COMPENSATION``)
        before the compressor.
    soft_limit : bool
        Run the tanh soft limiter after normalisation.
    """

    analysis_ms: float = ANALYSIS_MS
    min_ratio: float = MIN_RATIO
    max_ratio: float = MAX_RATIO
    dead_zone_cents: float = 0.0
    max_correction_cents: float | None = None
    strength: float = 1.0
    smoothing: float = 1.0
    bypass_eps: float = 0.0
    shifter: str = "psola"
    window_size: int = WINDOW_SIZE
    hop_size: int = HOP_SIZE
    compressor_threshold: float = COMPRESSOR_THRESHOLD
    compressor_ratio: float = COMPRESSOR_RATIO
    exciter_threshold: float = EXCITER_THRESHOLD
    exciter_drive: float = EXCITER_DRIVE
    exciter_mix: float = EXCITER_MIX
    echo: bool = False
    echo_gain_in: float = 0.5
    echo_gain_out: float = 0.18
    echo_delays_ms: tuple[float, float] = (85.0, 125.0)
    echo_feedback: tuple[float, float] = (0.10, 0.08)
    makeup_gain: bool = False
    soft_limit: bool = False
    limiter_ceiling: float = LIMITER_CEILING
    gain: float = OUTPUT_GAIN

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.analysis_ms <= 0:
            raise EnhancerConstructionError(
                f"analysis_ms must be positive, got {self.analysis_ms}"
            )
        if not 0 < self.min_ratio <= 1.0 <= self.max_ratio:
            raise EnhancerConstructionError(
                f"ratio bounds must satisfy 0 < min <= 1 <= max, "
                f"got ({self.min_ratio}, {self.max_ratio})"
            )
        if self.dead_zone_cents < 0:
            raise EnhancerConstructionError(
                f"dead_zone_cents must be non-negative, got {self.dead_zone_cents}"
            )
        if self.max_correction_cents is not None and self.max_correction_cents <= 0:
            raise EnhancerConstructionError(
                f"max_correction_cents must be positive, got {self.max_correction_cents}"
            )
        if not 0.0 <= self.strength <= 1.0:
            raise EnhancerConstructionError(
                f"strength must be in [0, 1], got {self.strength}"
            )
        if not 0.0 <= self.smoothing <= 1.0:
            raise EnhancerConstructionError(
                f"smoothing must be in [0, 1], got {self.smoothing}"
            )
        if self.bypass_eps < 0:
            raise EnhancerConstructionError(
                f"bypass_eps must be non-negative, got {self.bypass_eps}"
            )
        if self.shifter not in SHIFTERS:
            raise EnhancerConstructionError(
                f"shifter must be one of {SHIFTERS}, got {self.shifter!r}"
            )
        if self.window_size < 4 or self.hop_size <= 0 or self.hop_size > self.window_size:
            raise EnhancerConstructionError(
                f"invalid window/hop ({self.window_size}, {self.hop_size})"
            )
        if self.compressor_ratio < 1.0:
            raise EnhancerConstructionError(
                f"compressor_ratio must be >= 1, got {self.compressor_ratio}"
            )
        if not 0.0 <= self.exciter_mix <= 1.0:
            raise EnhancerConstructionError(
                f"exciter_mix must be in [0, 1], got {self.exciter_mix}"
            )
        if not 0.1 <= self.limiter_ceiling < 1.0:
            raise EnhancerConstructionError(
                f"limiter_ceiling must be in [0.1, 1), got {self.limiter_ceiling}"
            )
        if self.gain < 0:
            raise EnhancerConstructionError(f"gain must be non-negative, got {self.gain}")
        if any(d <= 0 for d in self.echo_delays_ms):
            raise EnhancerConstructionError(
                f"echo delays must be positive, got {self.echo_delays_ms}"
            )
