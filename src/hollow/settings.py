"""Persistent hollow preferences stored as JSON under the user's config home."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from hollow.core.scanner import DEFAULT_BUNDLE_SUFFIXES

log = logging.getLogger(__name__)


class SettingsError(ValueError):
    """Raised for an unknown option or a value of the wrong shape."""


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _is_suffix_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(s, str) and s.startswith(".") for s in value)


@dataclass(frozen=True, slots=True)
class _Option:
    default: Any
    check: Callable[[Any], bool]
    description: str


OPTIONS: dict[str, _Option] = {
    "scan.include_hidden": _Option(True, _is_bool, "a boolean"),
    "scan.bundle_suffixes": _Option(
        list(DEFAULT_BUNDLE_SUFFIXES), _is_suffix_list, 'a list of suffixes such as [".app"]'
    ),
    "clean.ask_for_elevation": _Option(True, _is_bool, "a boolean"),
    "clean.confirm": _Option(True, _is_bool, "a boolean"),
}


def settings_file() -> Path:
    """Location of settings.json, honouring ``$XDG_CONFIG_HOME`` when set and non-empty."""
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "hollow" / "settings.json"


def _option(key: str) -> _Option:
    try:
        return OPTIONS[key]
    except KeyError:
        known = ", ".join(OPTIONS)
        raise SettingsError(f"Unknown setting {key!r} (known: {known})") from None


def _validate(key: str, value: Any) -> None:
    option = _option(key)
    if not option.check(value):
        raise SettingsError(f"{key} must be {option.description}, got {value!r}")


class Settings:
    """Hollow preferences backed by a JSON file.

    Options are addressed with dot-notation keys (``scan.include_hidden``)
    and stored nested by section.  Only keys in ``OPTIONS`` are accepted;
    values are checked on ``set`` and on load, and anything invalid in the
    file falls back to its default.
    """

    _instance: Settings | None = None

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or settings_file()
        self._values: dict[str, Any] = {}
        self._load()

    @classmethod
    def instance(cls) -> Settings:
        """Return the singleton settings instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def path(self) -> Path:
        return self._path

    @property
    def include_hidden(self) -> bool:
        return self.get("scan.include_hidden")

    @property
    def bundle_suffixes(self) -> tuple[str, ...]:
        return tuple(self.get("scan.bundle_suffixes"))

    @property
    def ask_for_elevation(self) -> bool:
        return self.get("clean.ask_for_elevation")

    @property
    def confirm(self) -> bool:
        return self.get("clean.confirm")

    def get(self, key: str) -> Any:
        """Current value of *key*, or its default when unset."""
        option = _option(key)
        return self._values.get(key, option.default)

    def set(self, key: str, value: Any) -> None:
        """Validate and store *value*, then persist to disk.

        Raises:
            SettingsError: *key* is unknown or *value* has the wrong shape.
        """
        _validate(key, value)
        self._values[key] = value
        self._save()

    def effective(self) -> dict[str, Any]:
        """All known keys with their current values."""
        return {key: self.get(key) for key in OPTIONS}

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            return
        if not isinstance(data, dict):
            log.warning("Ignoring settings in %s: expected a JSON object", self._path)
            return

        for key, value in _flatten(data):
            try:
                _validate(key, value)
            except SettingsError as e:
                log.warning("Ignoring setting in %s: %s", self._path, e)
                continue
            self._values[key] = value

    def _save(self) -> None:
        data: dict[str, dict[str, Any]] = {}
        for key, value in self._values.items():
            section, name = key.split(".", 1)
            data.setdefault(section, {})[name] = value
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(data, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            log.warning("Could not save settings to %s: %s", self._path, e)


def _flatten(data: dict[str, Any]) -> list[tuple[str, Any]]:
    """Turn ``{"scan": {"include_hidden": x}}`` into ``[("scan.include_hidden", x)]``."""
    items: list[tuple[str, Any]] = []
    for section, values in data.items():
        if not isinstance(values, dict):
            items.append((section, values))
            continue
        for name, value in values.items():
            items.append((f"{section}.{name}", value))
    return items
