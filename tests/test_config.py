from __future__ import annotations

from pathlib import Path

import pytest

from it2carousel.config import ConfigError, config_from_mapping, load_config
from it2carousel.domain.keybinds import KeyChord


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "missing.toml")
    assert config.bind_mode == "normal"
    assert str(config.mark_pane_shortcut) == "Ctrl Shift i"
    assert str(config.show_self_shortcut) == "Ctrl Shift o"
    assert config.log_level == "INFO"
    assert config.log_to_file is True


def test_file_overrides_are_merged_over_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('[keybinds]\nmark_pane = "Alt m"\n\n[logging]\nlevel = "debug"\n')
    config = load_config(path)
    assert config.mark_pane_shortcut == KeyChord("m", frozenset({"alt"}))
    assert str(config.show_self_shortcut) == "Ctrl Shift o"
    assert config.log_level == "DEBUG"

    keybinds = config.keybinds()
    assert keybinds.mark_pane_shortcut == config.mark_pane_shortcut
    assert keybinds.bound_key is False


def test_invalid_toml_raises_config_error(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[keybinds\n")
    with pytest.raises(ConfigError):
        load_config(path)


def test_bad_chord_raises_config_error() -> None:
    with pytest.raises(ConfigError):
        config_from_mapping({"keybinds": {"show_self": "Meta x"}})
    with pytest.raises(ConfigError):
        config_from_mapping({"keybinds": {"show_self": 5}})
