"""
vocal_enhancer.theory.notes
~~~~~~~~~~~~~~~~~~~~~~~~~~~

Equal-tempered note table and nearest-note quantisation.

The table covers MIDI notes 0–127 (C-1 ≈ 8.18 Hz up to G9 ≈ 12543 Hz) in
standard 12-tone equal temperament anchored at A4 = 440 Hz.  It is built
once at import time and marked read-only; every lookup is a linear scan,
which keeps tie-breaking trivially "lowest index wins".

Keeps all *musical* logic (what *is* the nearest note?) isolated from the
signal-processing code.
"""

from __future__ import annotations

from typing import Final

import librosa
import numpy as np

from vocal_enhancer.config import N_NOTES

# ── Note table (built once at import time) ───────────────────────────
NOTE_FREQUENCIES: Final[np.ndarray] = librosa.midi_to_hz(np.arange(N_NOTES))
"""128 note frequencies in Hz, index = MIDI note number, strictly increasing."""
NOTE_FREQUENCIES.setflags(write=False)

NOTE_NAMES: Final[tuple[str, ...]] = tuple(
    str(name) for name in librosa.midi_to_note(np.arange(N_NOTES), unicode=False)
)
"""Scientific pitch names matching :data:`NOTE_FREQUENCIES` (``'A4'`` at 69)."""


def nearest_note_index(frequency: float) -> int:
    """Return the table index whose frequency is closest to *frequency*.

    Ties (a frequency exactly half-way between two entries) resolve to the
    lower index.

    Parameters
    ----------
    frequency : float
        Frequency in Hz.

    Returns
    -------
    int
        MIDI note number in ``0 … 127``.
    """
    # argmin returns the first minimum, i.e. the lowest index on ties
    return int(np.argmin(np.abs(NOTE_FREQUENCIES - frequency)))


def nearest_note(frequency: float) -> float:
    """Snap *frequency* to the nearest equal-tempered note frequency.

    >>> nearest_note(436.0)
    440.0
    """
    return float(NOTE_FREQUENCIES[nearest_note_index(frequency)])


def note_name(frequency: float) -> str:
    """Name of the nearest note, e.g. ``'A4'`` or ``'C#5'``."""
    return NOTE_NAMES[nearest_note_index(frequency)]


def midi_to_frequency(index: int) -> float:
    """Look up the frequency of MIDI note *index*.

    Raises
    ------
    IndexError
        If *index* is outside ``0 … 127``.
    """
    if not 0 <= index < N_NOTES:
        raise IndexError(f"note index must be in [0, {N_NOTES}), got {index}")
    return float(NOTE_FREQUENCIES[index])


def cents_between(frequency: float, reference: float) -> float:
    """Signed distance from *reference* to *frequency* in cents."""
    return 1200.0 * float(np.log2(frequency / reference))
