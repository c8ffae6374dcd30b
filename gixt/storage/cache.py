"""
Cache layout helpers.

    <cache>/<gist_id>/<sha>/<files...>
    <cache>/<gist_id>/<sha>/.gixt-manifest.json

Persistent revision directories are never removed automatically; only
clean-cache, remove and --clear-cache delete them.
"""

from __future__ import annotations

import json
import shutil
from collections.abc import Iterator
from pathlib import Path

import pydantic

from gixt.constants import CACHE_MANIFEST_FILENAME
from gixt.schemas.cache import CacheManifest
from gixt.storage.json_store import JsonFile

__all__ = [
    'cache_dir',
    'clear',
    'iter_cached_gists',
    'latest_manifest',
    'load_manifest',
    'manifest_path',
    'remove_gist',
    'save_manifest',
]


def cache_dir(root: Path, gist_id: str, sha: str) -> Path:
    return root / gist_id / sha


def manifest_path(work_dir: Path) -> Path:
    return work_dir / CACHE_MANIFEST_FILENAME


def load_manifest(work_dir: Path) -> CacheManifest | None:
    """Cache manifest of a work dir, or None if missing or unreadable."""
    path = manifest_path(work_dir)
    if not path.is_file():
        return None
    try:
        with path.open(encoding='utf-8') as f:
            return CacheManifest.model_validate(json.load(f))
    except (OSError, json.JSONDecodeError, pydantic.ValidationError):
        return None


def save_manifest(work_dir: Path, manifest: CacheManifest) -> None:
    JsonFile(manifest_path(work_dir)).write(manifest.model_dump(mode='json'))


def latest_manifest(root: Path, gist_id: str) -> tuple[CacheManifest, Path] | None:
    """Most recently written manifest among a gist's cached revisions."""
    gist_root = root / gist_id
    if not gist_root.is_dir():
        return None

    latest: tuple[CacheManifest, Path] | None = None
    latest_mtime = -1.0
    for sha_dir in gist_root.iterdir():
        if not sha_dir.is_dir():
            continue
        manifest = load_manifest(sha_dir)
        if manifest is None:
            continue
        mtime = manifest_path(sha_dir).stat().st_mtime
        if mtime > latest_mtime:
            latest = (manifest, sha_dir)
            latest_mtime = mtime
    return latest


def iter_cached_gists(root: Path) -> Iterator[tuple[CacheManifest, Path]]:
    """Latest manifest for every gist directory under the cache root."""
    if not root.is_dir():
        return
    for gist_root in sorted(root.iterdir()):
        if not gist_root.is_dir():
            continue
        found = latest_manifest(root, gist_root.name)
        if found is not None:
            yield found


def remove_gist(root: Path, gist_id: str) -> bool:
    """Delete every cached revision of a gist."""
    gist_root = root / gist_id
    if not gist_root.is_dir():
        return False
    shutil.rmtree(gist_root)
    return True


def clear(root: Path) -> None:
    """Delete the whole cache root."""
    if root.exists():
        shutil.rmtree(root)
