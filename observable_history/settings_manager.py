from __future__ import annotations

import json
import os
from typing import Any

from .logger import get_logger
from .search_params import SearchParamsOptions

_logger = get_logger("settings")


class SettingsManager:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "search_params": {
            "skip_empty_values": True,
            "join_arrays": True,
            "join_arrays_with": ",",
            "encoder": "percent",
        },
    }

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except (OSError, ValueError) as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            os.makedirs(os.path.dirname(self.settings_path) or ".", exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except OSError as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    def search_params_options(self) -> SearchParamsOptions:
        section = self.get("search_params")
        values = dict(self.DEFAULTS["search_params"])
        if isinstance(section, dict):
            values.update(section)
        else:
            _logger.warning("search_params setting is not an object: %r", section)
        try:
            return SearchParamsOptions.from_mapping(values)
        except ValueError as e:
            _logger.warning("invalid search_params settings: %s", e)
            return SearchParamsOptions()
