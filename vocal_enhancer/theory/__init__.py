"""vocal_enhancer.theory — Equal-tempered note table and quantisation."""

from vocal_enhancer.theory.notes import (
    NOTE_FREQUENCIES,
    NOTE_NAMES,
    cents_between,
    midi_to_frequency,
    nearest_note,
    nearest_note_index,
    note_name,
)

__all__: list[str] = [
    "NOTE_FREQUENCIES",
    "NOTE_NAMES",
    "cents_between",
    "midi_to_frequency",
    "nearest_note",
    "nearest_note_index",
    "note_name",
]
