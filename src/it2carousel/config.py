from __future__ import annotations

import copy
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import platformdirs

from it2carousel.domain.keybinds import ChordParseError, KeyChord, Keybinds

APP_NAME = "it2carousel"
CONFIG_PATH = Path(platformdirs.user_config_dir(APP_NAME)) / "config.toml"

DEFAULT_CONFIG: dict[str, Any] = {
    "keybinds": {
        "mode": "normal",
        "mark_pane": "Ctrl Shift i",
        "show_self": "Ctrl Shift o",
    },
    "logging": {
        "level": "INFO",
        "file": True,
    },
}


@dataclass(frozen=True)
class ConfigError(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover
        return self.message


@dataclass(frozen=True)
class CarouselConfig:
    bind_mode: str
    mark_pane_shortcut: KeyChord
    show_self_shortcut: KeyChord
    log_level: str = "INFO"
    log_to_file: bool = True

    def keybinds(self) -> Keybinds:
        return Keybinds(
            mark_pane_shortcut=self.mark_pane_shortcut,
            show_self_shortcut=self.show_self_shortcut,
            mode=self.bind_mode,
        )


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _chord(value: Any, name: str) -> KeyChord:
    if not isinstance(value, str):
        raise ConfigError(f"keybinds.{name} must be a string, got {type(value).__name__}")
    try:
        return KeyChord.parse(value)
    except ChordParseError as e:
        raise ConfigError(f"keybinds.{name}: {e}") from e


def config_from_mapping(data: Mapping[str, Any]) -> CarouselConfig:
    merged = _deep_merge(DEFAULT_CONFIG, data)
    keybinds = merged["keybinds"]
    logging_section = merged["logging"]
    return CarouselConfig(
        bind_mode=str(keybinds["mode"]),
        mark_pane_shortcut=_chord(keybinds["mark_pane"], "mark_pane"),
        show_self_shortcut=_chord(keybinds["show_self"], "show_self"),
        log_level=str(logging_section["level"]).upper(),
        log_to_file=bool(logging_section["file"]),
    )


def load_config(path: Optional[Path] = None) -> CarouselConfig:
    config_path = path or CONFIG_PATH
    if not config_path.exists():
        return config_from_mapping({})
    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to read config {config_path}: {e}") from e
    return config_from_mapping(data)
