from __future__ import annotations

from dataclasses import dataclass, field

MODIFIER_ORDER = ("ctrl", "alt", "shift", "super")
_MODIFIER_ALIASES = {
    "ctrl": "ctrl",
    "control": "ctrl",
    "alt": "alt",
    "option": "alt",
    "shift": "shift",
    "super": "super",
    "cmd": "super",
    "command": "super",
}


class ChordParseError(ValueError):
    pass


@dataclass(frozen=True)
class KeyChord:
    key: str
    modifiers: frozenset[str] = frozenset()

    @classmethod
    def parse(cls, text: str) -> KeyChord:
        parts = text.split()
        if not parts:
            raise ChordParseError("Empty key chord")
        *mods, key = parts
        modifiers: set[str] = set()
        for mod in mods:
            name = _MODIFIER_ALIASES.get(mod.lower())
            if name is None:
                raise ChordParseError(f"Unknown modifier {mod!r} in key chord {text!r}")
            modifiers.add(name)
        if len(key) == 1:
            key = key.lower()
        return cls(key=key, modifiers=frozenset(modifiers))

    def __str__(self) -> str:
        mods = [m.capitalize() for m in MODIFIER_ORDER if m in self.modifiers]
        return " ".join([*mods, self.key])


DEFAULT_BIND_MODE = "normal"
DEFAULT_MARK_PANE = KeyChord("i", frozenset({"ctrl", "shift"}))
DEFAULT_SHOW_SELF = KeyChord("o", frozenset({"ctrl", "shift"}))


@dataclass
class Keybinds:
    mark_pane_shortcut: KeyChord = DEFAULT_MARK_PANE
    show_self_shortcut: KeyChord = DEFAULT_SHOW_SELF
    mode: str = DEFAULT_BIND_MODE
    bound_key: bool = field(default=False, compare=False)
