from __future__ import annotations

import pytest

from it2carousel.domain.keybinds import ChordParseError, KeyChord


def test_parse_and_display_chord() -> None:
    chord = KeyChord.parse("shift CTRL I")
    assert chord == KeyChord("i", frozenset({"ctrl", "shift"}))
    assert str(chord) == "Ctrl Shift i"


def test_parse_keeps_named_keys() -> None:
    assert KeyChord.parse("Alt Enter") == KeyChord("Enter", frozenset({"alt"}))
    assert str(KeyChord.parse("F5")) == "F5"


@pytest.mark.parametrize("text", ["", "   ", "Hyper x"])
def test_parse_rejects_bad_chords(text: str) -> None:
    with pytest.raises(ChordParseError):
        KeyChord.parse(text)
