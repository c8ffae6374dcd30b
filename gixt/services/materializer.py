"""
Gist file materialization.

Writes a gist's files into a work directory. Names are sanitized before any
I/O, contents are gathered before any write (a failed download leaves the
directory untouched), and an existing materialization is reused when its
cache manifest still describes files that are all present.
"""

from __future__ import annotations

import posixpath
from collections.abc import Mapping
from pathlib import Path, PurePosixPath, PureWindowsPath

from gixt.constants import CACHE_MANIFEST_FILENAME, IS_WINDOWS, executable_extensions
from gixt.exceptions import DuplicateFileNameError, InvalidFileNameError, NetworkFailureError
from gixt.protocols import LoggerProtocol, NullLogger
from gixt.remote.protocol import GistApi
from gixt.schemas.gist import GistFile
from gixt.schemas.operations import MaterializeResult
from gixt.storage.cache import load_manifest

__all__ = ['FileMaterializer', 'file_mode', 'sanitize_gist_path']


def sanitize_gist_path(name: str) -> str:
    """
    Normalize a gist file name to a safe relative POSIX path.

    Backslashes are treated as separators so that Windows-style names cannot
    smuggle traversal past the checks.

    Raises:
        InvalidFileNameError: Empty, '.', absolute, drive/UNC-prefixed,
            containing '..', or colliding with the cache manifest
    """
    if not name.strip():
        raise InvalidFileNameError(name, 'empty name')

    normalized = name.replace('\\', '/')
    if PureWindowsPath(name).drive:
        raise InvalidFileNameError(name, 'drive-prefixed paths are not allowed')
    if posixpath.isabs(normalized):
        raise InvalidFileNameError(name, 'absolute paths are not allowed')
    if '..' in normalized.split('/'):
        raise InvalidFileNameError(name, 'parent traversal is not allowed')

    cleaned = posixpath.normpath(normalized)
    if cleaned in ('', '.'):
        raise InvalidFileNameError(name, 'empty name')
    if cleaned == CACHE_MANIFEST_FILENAME:
        raise InvalidFileNameError(name, 'reserved for the cache manifest')
    return cleaned


def file_mode(name: str, is_windows: bool = IS_WINDOWS) -> int:
    """Permission bits for a materialized file."""
    if PurePosixPath(name).suffix.lower() in executable_extensions(is_windows):
        return 0o755
    return 0o644


class FileMaterializer:
    """Writes gist files under a work dir (usually <cache>/<gist_id>/<sha>/)."""

    def __init__(
        self,
        api: GistApi,
        is_windows: bool = IS_WINDOWS,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self.api = api
        self.is_windows = is_windows
        self.logger = logger or NullLogger()

    async def materialize(
        self,
        files: Mapping[str, GistFile],
        dest_dir: Path,
        force_update: bool = False,
    ) -> MaterializeResult:
        """
        Materialize gist files into dest_dir.

        Args:
            files: Gist files keyed by their original names
            dest_dir: Target directory (created if missing)
            force_update: Rewrite even if a valid earlier materialization exists

        Returns:
            MaterializeResult with sorted sanitized names

        Raises:
            InvalidFileNameError: A name fails sanitization
            DuplicateFileNameError: Two names sanitize to the same path
            NetworkFailureError: A truncated file could not be downloaded
        """
        sanitized: dict[str, GistFile] = {}
        for name, info in files.items():
            clean = sanitize_gist_path(name)
            if clean in sanitized:
                raise DuplicateFileNameError(clean)
            sanitized[clean] = info
        filenames = sorted(sanitized)

        if not force_update:
            reused = self._reusable_files(dest_dir)
            if reused is not None:
                await self.logger.info(f'reusing materialized files in {dest_dir}')
                return MaterializeResult(filenames=reused, reused_from_cache=True)

        # Gather everything first so that a failed download writes nothing
        contents: dict[str, bytes] = {}
        for name in filenames:
            info = sanitized[name]
            if info.needs_download:
                if not info.raw_url:
                    raise NetworkFailureError(f'download {name}: no inline content and no raw_url')
                await self.logger.info(f'downloading {name}')
                contents[name] = await self.api.fetch_raw(info.raw_url)
            else:
                contents[name] = (info.content or '').encode('utf-8')

        dest_dir.mkdir(parents=True, exist_ok=True)
        for name in filenames:
            target = dest_dir / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(contents[name])
            target.chmod(file_mode(name, self.is_windows))

        return MaterializeResult(filenames=filenames, reused_from_cache=False)

    def _reusable_files(self, dest_dir: Path) -> list[str] | None:
        """Files listed by a still-valid cache manifest, else None."""
        manifest = load_manifest(dest_dir)
        if manifest is None:
            return None
        try:
            for name in manifest.files:
                sanitize_gist_path(name)
        except InvalidFileNameError:
            return None
        if not all((dest_dir / name).is_file() for name in manifest.files):
            return None
        return list(manifest.files)
