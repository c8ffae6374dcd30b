"""User settings store (settings.json)."""

from __future__ import annotations

from pathlib import Path

from gixt.schemas.settings import UserSettings
from gixt.storage.json_store import JsonFile


class SettingsStore:
    def __init__(self, path: Path) -> None:
        self.file = JsonFile(path)

    def load(self) -> UserSettings:
        """Read settings.json (defaults if missing)."""
        data = self.file.read()
        if data is None:
            return UserSettings()
        return UserSettings.model_validate(data)

    def save(self, settings: UserSettings) -> None:
        self.file.save(settings.model_dump(mode='json'))
