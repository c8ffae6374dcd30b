"""Gist index store (index.json)."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from gixt.schemas.index import Index, IndexEntry
from gixt.storage.json_store import JsonFile


def sort_entries(entries: Iterable[IndexEntry]) -> list[IndexEntry]:
    """Sort by (owner, description), the order index.json is kept in."""
    return sorted(entries, key=lambda e: (e.owner, e.description))


def dedupe_entries(entries: Iterable[IndexEntry]) -> list[IndexEntry]:
    """Keep the last entry seen for each id."""
    by_id: dict[str, IndexEntry] = {}
    for entry in entries:
        by_id[entry.id] = entry
    return list(by_id.values())


class IndexStore:
    def __init__(self, path: Path) -> None:
        self.file = JsonFile(path)

    @property
    def path(self) -> Path:
        return self.file.path

    def load(self) -> Index:
        """Read index.json (empty index if missing)."""
        data = self.file.read()
        if data is None:
            return Index()
        return Index.model_validate(data)

    def save(self, entries: Iterable[IndexEntry]) -> Index:
        """Replace the index with the given entries (sorted, stamped now)."""
        index = Index(generated_at=datetime.now(UTC), entries=sort_entries(entries))
        self.file.save(index.model_dump(mode='json'))
        return index

    def clear(self) -> bool:
        return self.file.remove()
