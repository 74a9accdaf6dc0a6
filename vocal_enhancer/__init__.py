"""
vocal_enhancer
~~~~~~~~~~~~~~

Offline vocal pitch correction and enhancement for raw PCM takes.

Quick-start::

    import vocal_enhancer as ve

    # Full pipeline on 16-bit mono PCM
    engine = ve.VocalEnhancer(sample_rate=44100)
    tuned_pcm = engine.enhance(raw_pcm)

    # Individual stages
    x = ve.decode(raw_pcm)
    hz = ve.SpectrumAnalyzer(44100).detect_pitch(x)
    note = ve.nearest_note(hz)
    y = ve.shift_pitch(x, note / hz)

Subpackages
-----------
data      PCM codec (bytes ↔ normalised floats).
theory    Equal-tempered note table and quantisation.
dsp       Spectral analysis, resampling, PSOLA / phase vocoder, dynamics.
"""

from __future__ import annotations

__version__: str = "0.1.0"

# ── Core pipeline ────────────────────────────────────────────────────
from vocal_enhancer.core import PitchAnalysis, VocalEnhancer, compute_shift_ratio, enhance

# ── Data ─────────────────────────────────────────────────────────────
from vocal_enhancer.data.pcm import apply_volume, decode, encode

# ── Theory ───────────────────────────────────────────────────────────
from vocal_enhancer.theory.notes import (
    NOTE_FREQUENCIES,
    NOTE_NAMES,
    nearest_note,
    nearest_note_index,
    note_name,
)

# ── DSP ──────────────────────────────────────────────────────────────
from vocal_enhancer.dsp.dynamics import compress, excite, normalize, process_dynamics
from vocal_enhancer.dsp.psola import hann_window, shift_pitch
from vocal_enhancer.dsp.resample import cubic_interpolate, resample
from vocal_enhancer.dsp.spectrum import PitchEstimate, SpectrumAnalyzer, analysis_length
from vocal_enhancer.dsp.vocoder import shift_pitch_vocoder

# ── Config (re-export constants for convenience) ─────────────────────
from vocal_enhancer.config import (
    HOP_SIZE,
    WINDOW_SIZE,
    EnhancerConfig,
    EnhancerConstructionError,
)

__all__: list[str] = [
    # pipeline
    "VocalEnhancer",
    "PitchAnalysis",
    "compute_shift_ratio",
    "enhance",
    # data
    "decode",
    "encode",
    "apply_volume",
    # theory
    "NOTE_FREQUENCIES",
    "NOTE_NAMES",
    "nearest_note",
    "nearest_note_index",
    "note_name",
    # dsp
    "SpectrumAnalyzer",
    "PitchEstimate",
    "analysis_length",
    "cubic_interpolate",
    "resample",
    "hann_window",
    "shift_pitch",
    "shift_pitch_vocoder",
    "compress",
    "excite",
    "normalize",
    "process_dynamics",
    # config
    "EnhancerConfig",
    "EnhancerConstructionError",
    "WINDOW_SIZE",
    "HOP_SIZE",
]
