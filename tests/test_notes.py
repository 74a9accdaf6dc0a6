"""
Tests for vocal_enhancer/theory/notes.py — note table and quantiser.
"""

from __future__ import annotations

import numpy as np
import pytest

from vocal_enhancer.theory import notes
from vocal_enhancer.theory.notes import (
    NOTE_FREQUENCIES,
    NOTE_NAMES,
    cents_between,
    midi_to_frequency,
    nearest_note,
    nearest_note_index,
    note_name,
)


class TestNoteTable:
    def test_size_and_anchor(self) -> None:
        assert NOTE_FREQUENCIES.shape == (128,)
        assert NOTE_FREQUENCIES[69] == 440.0
        assert NOTE_NAMES[69] == "A4"
        assert NOTE_NAMES[60] == "C4"

    def test_strictly_increasing(self) -> None:
        assert np.all(np.diff(NOTE_FREQUENCIES) > 0)

    def test_semitone_spacing(self) -> None:
        ratios = NOTE_FREQUENCIES[1:] / NOTE_FREQUENCIES[:-1]
        np.testing.assert_allclose(ratios, 2.0 ** (1.0 / 12.0))

    def test_read_only(self) -> None:
        with pytest.raises(ValueError):
            NOTE_FREQUENCIES[0] = 1.0


class TestNearestNote:
    @pytest.mark.parametrize(
        "frequency, expected_index",
        [(436.0, 69), (430.0, 69), (420.0, 68), (261.0, 60), (880.0, 81)],
    )
    def test_snaps_to_closest(self, frequency: float, expected_index: int) -> None:
        assert nearest_note_index(frequency) == expected_index
        assert nearest_note(frequency) == NOTE_FREQUENCIES[expected_index]

    def test_out_of_range_clamps_to_table_ends(self) -> None:
        assert nearest_note_index(1.0) == 0
        assert nearest_note_index(30000.0) == 127

    def test_between_adjacent_entries(self) -> None:
        lo, hi = NOTE_FREQUENCIES[57], NOTE_FREQUENCIES[58]
        assert nearest_note(lo + 0.4 * (hi - lo)) == lo
        assert nearest_note(lo + 0.6 * (hi - lo)) == hi

    def test_tie_resolves_to_lower_index(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(notes, "NOTE_FREQUENCIES", np.array([100.0, 200.0, 300.0]))
        assert notes.nearest_note_index(150.0) == 0
        assert notes.nearest_note_index(250.0) == 1

    def test_note_name(self) -> None:
        assert note_name(436.0) == "A4"
        assert note_name(262.0) == "C4"


class TestHelpers:
    def test_midi_to_frequency(self) -> None:
        assert midi_to_frequency(69) == 440.0
        with pytest.raises(IndexError):
            midi_to_frequency(128)

    def test_cents_between(self) -> None:
        assert cents_between(880.0, 440.0) == pytest.approx(1200.0)
        assert cents_between(440.0, 880.0) == pytest.approx(-1200.0)
