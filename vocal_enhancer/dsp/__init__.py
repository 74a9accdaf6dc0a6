"""vocal_enhancer.dsp — Pitch analysis, resynthesis and dynamics."""

from vocal_enhancer.dsp.dynamics import (
    compress,
    echo,
    excite,
    makeup_gain,
    normalize,
    process_dynamics,
    rms,
    soft_limit,
)
from vocal_enhancer.dsp.psola import frame_count, hann_window, shift_pitch
from vocal_enhancer.dsp.resample import cubic_interpolate, resample, resample_to_length
from vocal_enhancer.dsp.spectrum import (
    PitchEstimate,
    SpectrumAnalyzer,
    SpectrumPlan,
    analysis_length,
)
from vocal_enhancer.dsp.vocoder import shift_pitch_vocoder

__all__: list[str] = [
    "PitchEstimate",
    "SpectrumAnalyzer",
    "SpectrumPlan",
    "analysis_length",
    "cubic_interpolate",
    "resample",
    "resample_to_length",
    "hann_window",
    "frame_count",
    "shift_pitch",
    "shift_pitch_vocoder",
    "compress",
    "excite",
    "echo",
    "normalize",
    "makeup_gain",
    "soft_limit",
    "rms",
    "process_dynamics",
]
