"""
Description override store (index_descriptions.json).

Local, per-user descriptions that replace the gist's own description when
matching by description and when displaying.
"""

from __future__ import annotations

from pathlib import Path

from gixt.storage.json_store import JsonFile


def normalize_description(desc: str) -> str:
    return desc.strip()


class DescriptionOverrideStore:
    def __init__(self, path: Path) -> None:
        self.file = JsonFile(path)

    def load(self) -> dict[str, str]:
        data = self.file.read()
        if not data:
            return {}
        return {str(gist_id): str(desc) for gist_id, desc in data.items()}

    def set(self, gist_id: str, desc: str) -> None:
        with self.file.locked():
            overrides = self.load()
            overrides[gist_id] = normalize_description(desc)
            self.file.write(dict(sorted(overrides.items())))

    def remove(self, gist_id: str) -> bool:
        with self.file.locked():
            overrides = self.load()
            if gist_id not in overrides:
                return False
            del overrides[gist_id]
            self.file.write(dict(sorted(overrides.items())))
            return True


def apply_override(overrides: dict[str, str], gist_id: str, description: str) -> str:
    """Effective description for display and matching."""
    if gist_id in overrides:
        return normalize_description(overrides[gist_id])
    return description.strip()
