"""Alias store (aliases.json): name -> gist id."""

from __future__ import annotations

from pathlib import Path

from gixt.storage.json_store import JsonFile


class AliasStore:
    def __init__(self, path: Path) -> None:
        self.file = JsonFile(path)

    def load(self) -> dict[str, str]:
        data = self.file.read()
        if not data:
            return {}
        return {str(name): str(gist_id) for name, gist_id in data.items()}

    def save(self, aliases: dict[str, str]) -> None:
        self.file.save(dict(sorted(aliases.items())))

    def set(self, name: str, gist_id: str) -> None:
        with self.file.locked():
            aliases = self.load()
            aliases[name] = gist_id
            self.file.write(dict(sorted(aliases.items())))

    def remove(self, name: str) -> bool:
        """Remove an alias; False if it did not exist."""
        with self.file.locked():
            aliases = self.load()
            if name not in aliases:
                return False
            del aliases[name]
            self.file.write(dict(sorted(aliases.items())))
            return True
