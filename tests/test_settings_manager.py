from __future__ import annotations

import json
from pathlib import Path

from observable_history.history import ObservableHistory
from observable_history.memory_history import MemoryHistory
from observable_history.search_params import percent_encode, raw_encode
from observable_history.settings_manager import SettingsManager


def test_defaults_without_file(tmp_path: Path) -> None:
    sm = SettingsManager(str(tmp_path / "settings.json"))
    opts = sm.search_params_options()
    assert opts.skip_empty_values is True
    assert opts.join_arrays is True
    assert opts.join_arrays_with == ","
    assert opts.encoder is percent_encode


def test_set_persists_and_reloads(tmp_path: Path) -> None:
    settings_path = tmp_path / "nested" / "settings.json"
    sm = SettingsManager(str(settings_path))
    sm.set("search_params", {"join_arrays_with": "|", "encoder": "raw"})

    reloaded = SettingsManager(str(settings_path))
    assert reloaded.has("search_params")
    opts = reloaded.search_params_options()
    assert opts.join_arrays_with == "|"
    assert opts.encoder is raw_encode
    assert opts.join_arrays is True


def test_invalid_file_falls_back_to_defaults(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text("{not json", encoding="utf-8")
    sm = SettingsManager(str(settings_path))
    assert sm.data == {}
    assert sm.search_params_options().join_arrays_with == ","


def test_invalid_options_fall_back_to_defaults(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"search_params": {"encoder": "rot13"}}), encoding="utf-8")
    sm = SettingsManager(str(settings_path))
    assert sm.search_params_options().encoder is percent_encode


def test_history_uses_settings_options(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"search_params": {"joinArrays": False}}), encoding="utf-8")
    history = ObservableHistory(MemoryHistory(), settings=SettingsManager(str(settings_path)))

    history.search_params.append("x", "1")
    history.search_params.append("x", "2")

    assert history.location.search == "?x=1&x=2"
    history.destroy()
