"""
Gist descriptions: show, set remotely, and override locally.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from gixt.base_model import StrictModel
from gixt.constants import DEFAULT_DETAILS
from gixt.exceptions import InvalidInputError, OwnershipError, RunManifestError
from gixt.paths import GixtPaths
from gixt.protocols import LoggerProtocol, NullLogger
from gixt.remote.protocol import GistApi
from gixt.schemas.manifest import load_run_manifest
from gixt.services.index import IndexService
from gixt.services.resolver import IdentifierResolver
from gixt.storage import cache
from gixt.storage.aliases import AliasStore
from gixt.storage.descriptions import DescriptionOverrideStore, normalize_description
from gixt.storage.index import IndexStore

__all__ = ['DescribeService', 'GistDescription', 'find_manifest_file']

NO_DESCRIPTION = '(no description)'
MANIFEST_CANDIDATES = ('gixt.json', 'manifest.json')


class GistDescription(StrictModel):
    id: str
    owner: str
    description: str
    manifest_version: str
    manifest_details: str


def find_manifest_file(work_dir: Path, files: list[str]) -> Path | None:
    """Locate a run manifest in a cached revision."""
    for name in MANIFEST_CANDIDATES:
        path = work_dir / name
        if path.is_file():
            return path
    for name in files:
        if PurePosixPath(name).name.lower() == 'gixt.json' and (work_dir / name).is_file():
            return work_dir / name
    return None


class DescribeService:
    """Service for reading and writing gist descriptions."""

    def __init__(self, paths: GixtPaths, api: GistApi, logger: LoggerProtocol | None = None) -> None:
        self.paths = paths
        self.api = api
        self.logger = logger or NullLogger()
        self.resolver = IdentifierResolver(paths, api, logger=self.logger)
        self.overrides = DescriptionOverrideStore(paths.index_desc_file)

    async def _resolve(self, target: str, description_lookup: bool) -> tuple[str, str]:
        target = target.strip()
        if not target:
            raise InvalidInputError('a gist id, url, alias or name is required')
        aliases = AliasStore(self.paths.alias_file).load()
        identity = await self.resolver.resolve(target, aliases, description_lookup=description_lookup)
        return identity.id, identity.owner_hint or ''

    async def describe(self, target: str) -> GistDescription:
        """
        Gather what is known about a gist, cheapest source first.

        Order: index entry, description override, latest cached revision
        (and its run manifest), then a live fetch.
        """
        gist_id, owner = await self._resolve(target, description_lookup=False)
        overrides = self.overrides.load()

        description = ''
        for entry in IndexStore(self.paths.index_file).load().entries:
            if entry.id == gist_id:
                description = entry.description.strip()
                owner = owner or entry.owner
                break
        if gist_id in overrides:
            description = normalize_description(overrides[gist_id])

        details = ''
        version = ''
        latest = cache.latest_manifest(self.paths.cache_dir, gist_id)
        if latest is not None:
            manifest, work_dir = latest
            description = description or manifest.description.strip()
            owner = owner or manifest.owner
            manifest_path = find_manifest_file(work_dir, manifest.files)
            if manifest_path is not None:
                try:
                    run_manifest = load_run_manifest(manifest_path)
                except RunManifestError as e:
                    await self.logger.warning(f'ignoring invalid run manifest {manifest_path}: {e}')
                else:
                    details = run_manifest.details
                    version = run_manifest.version.strip()
                    description = description or details.strip()

        if not description or not owner:
            gist = await self.api.fetch(gist_id)
            description = description or (gist.description or '').strip()
            owner = owner or gist.owner_login.strip()

        return GistDescription(
            id=gist_id,
            owner=owner,
            description=description or NO_DESCRIPTION,
            manifest_version=version,
            manifest_details=details or DEFAULT_DETAILS,
        )

    async def set_description(self, target: str, description: str) -> str:
        """
        Change the description of a gist you own.

        Returns:
            The gist id

        Raises:
            OwnershipError: The gist belongs to someone else
        """
        description = description.strip()
        if not description:
            raise InvalidInputError('description cannot be empty')

        gist_id, _ = await self._resolve(target, description_lookup=True)
        current_user = await self.api.current_user()
        gist = await self.api.fetch(gist_id)
        owner = gist.owner_login.strip()
        if not owner or owner.lower() != current_user.lower():
            raise OwnershipError(f'gist {gist_id} is not owned by {current_user}')

        updated = await self.api.update_description(gist_id, description)
        await IndexService(self.paths, self.api, self.logger).refresh_index_and_cache(updated, force_update=False)
        return gist_id

    def list_overrides(self) -> dict[str, str]:
        return dict(sorted(self.overrides.load().items()))

    async def add_override(self, target: str, description: str) -> str:
        """Store a local description for a gist; returns the gist id."""
        description = normalize_description(description)
        if not description:
            raise InvalidInputError('description cannot be empty')
        gist_id, _ = await self._resolve(target, description_lookup=True)
        self.overrides.set(gist_id, description)
        return gist_id

    async def remove_override(self, target: str) -> str:
        if target in self.overrides.load():
            gist_id = target
        else:
            gist_id, _ = await self._resolve(target, description_lookup=True)
        self.overrides.remove(gist_id)
        return gist_id
