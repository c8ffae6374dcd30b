"""
Gist clone and fork.

Clone checks a gist out as a git repository through the GitHub CLI
(`gh gist clone`). Fork copies a gist's files into a new gist owned by the
authenticated user and adds it to the index.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from gixt.exceptions import ExecutionError, InvalidInputError, NetworkFailureError
from gixt.paths import GixtPaths
from gixt.protocols import LoggerProtocol, NullLogger
from gixt.remote.protocol import GistApi
from gixt.schemas.gist import Gist, GistFile
from gixt.services.index import IndexService
from gixt.services.process import ProcessRunner
from gixt.services.resolver import IdentifierResolver
from gixt.storage.aliases import AliasStore

__all__ = ['CloneService', 'gather_contents']


async def gather_contents(api: GistApi, files: Mapping[str, GistFile]) -> dict[str, str]:
    """
    Full text of every file, downloading truncated ones.

    Raises:
        NetworkFailureError: A file has neither content nor a raw_url, or the download failed
    """
    contents: dict[str, str] = {}
    for name, info in files.items():
        if not info.needs_download:
            contents[name] = info.content or ''
            continue
        if not info.raw_url:
            raise NetworkFailureError(f'gist file {name} has no content or raw_url')
        contents[name] = (await api.fetch_raw(info.raw_url)).decode('utf-8', errors='replace')
    return contents


class CloneService:
    """Service for `gixt clone` and `gixt fork`."""

    def __init__(
        self,
        paths: GixtPaths,
        api: GistApi,
        logger: LoggerProtocol | None = None,
        runner: ProcessRunner | None = None,
        cwd: Path | None = None,
    ) -> None:
        self.paths = paths
        self.api = api
        self.logger = logger or NullLogger()
        self.runner = runner or ProcessRunner()
        self.cwd = cwd or Path.cwd()
        self.resolver = IdentifierResolver(paths, api, logger=self.logger)

    async def _resolve(self, target: str) -> str:
        aliases = AliasStore(self.paths.alias_file).load()
        identity = await self.resolver.resolve(target, aliases, description_lookup=True)
        return identity.id

    async def clone(self, target: str, dest: str | None = None) -> tuple[str, Path]:
        """
        Clone a gist repository with `gh gist clone`.

        Args:
            target: Gist id, URL, alias, name or owner/name
            dest: Destination directory (default: the gist id, in cwd)

        Returns:
            (gist id, destination path)

        Raises:
            InvalidInputError: The destination already exists
            ProcessLaunchError: gh is not installed
            ExecutionError: gh exited non-zero
        """
        if not target.strip():
            raise InvalidInputError('usage: gixt clone <gist-id|url|alias|name|owner/name> [--dir <path>]')
        gist_id = await self._resolve(target)

        destination = Path(dest.strip() if dest and dest.strip() else gist_id).expanduser()
        if not destination.is_absolute():
            destination = self.cwd / destination
        if destination.exists():
            raise InvalidInputError(f'target path {destination} already exists')

        await self.logger.info(f'cloning gist {gist_id} into {destination}')
        exit_code = await self.runner.run(['gh', 'gist', 'clone', gist_id, str(destination)], self.cwd)
        if exit_code != 0:
            raise ExecutionError(f'gh gist clone failed: exit status {exit_code}')
        return gist_id, destination

    async def fork(self, target: str, public: bool = False, description: str | None = None) -> tuple[str, Gist]:
        """
        Copy a gist into a new gist of your own.

        The copy keeps the source description unless one is given, and is
        added to the index.

        Returns:
            (source gist id, the new gist)
        """
        if not target.strip():
            raise InvalidInputError(
                'usage: gixt fork <gist-id|url|alias|name|owner/name> [--public] [--description <desc>]'
            )
        gist_id = await self._resolve(target)

        source = await self.api.fetch(gist_id)
        contents = await gather_contents(self.api, source.files)
        new_description = (description or '').strip() or (source.description or '')

        created = await self.api.create_gist(contents, new_description, public)
        await IndexService(self.paths, self.api, self.logger).refresh_index_and_cache(created, force_update=False)
        return gist_id, created
