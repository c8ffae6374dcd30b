"""
Whole-file JSON persistence shared by every store.

Each store reads its entire file and writes it back. Writes hold a
filelock for cross-process safety and land atomically via temp file +
os.replace.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from filelock import FileLock

__all__ = ['JsonFile']


class JsonFile:
    """A JSON document on disk with locked, atomic writes."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.lock_file = path.with_name(path.name + '.lock')

    def read(self) -> Any | None:
        """Parsed JSON, or None when the file is missing."""
        if not self.path.exists():
            return None
        with self.path.open(encoding='utf-8') as f:
            return json.load(f)

    def write(self, data: Any) -> None:
        """Write atomically (caller holds the lock or doesn't need one)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self.path.with_name(f'.{self.path.name}.{os.getpid()}.tmp')

        with tmp_file.open('w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, default=str)
            f.write('\n')

        # Atomic rename (replaces on Windows too)
        os.replace(tmp_file, self.path)

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the file lock for a read-modify-write cycle."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with FileLock(self.lock_file):
            yield

    def save(self, data: Any) -> None:
        with self.locked():
            self.write(data)

    def remove(self) -> bool:
        """Delete the file; True if something was removed."""
        with self.locked():
            try:
                self.path.unlink()
            except FileNotFoundError:
                return False
            return True
