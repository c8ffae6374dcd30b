"""
Index maintenance service.

Builds and refreshes the local gist index (index.json), keeps cached
revisions in step with remote edits, and assembles the merged index/cache
view shown by `gixt list`.
"""

from __future__ import annotations

from datetime import UTC, datetime

from gixt.base_model import StrictModel
from gixt.constants import GITHUB_PAGE_SIZE, INDEX_PAGES
from gixt.exceptions import GistNotFoundError
from gixt.paths import GixtPaths
from gixt.protocols import LoggerProtocol, NullLogger
from gixt.remote.protocol import GistApi
from gixt.schemas.cache import CacheManifest
from gixt.schemas.gist import Gist
from gixt.schemas.index import IndexEntry
from gixt.schemas.operations import ListRow
from gixt.services.materializer import FileMaterializer
from gixt.storage import cache
from gixt.storage.aliases import AliasStore
from gixt.storage.descriptions import DescriptionOverrideStore, apply_override
from gixt.storage.index import IndexStore, dedupe_entries

__all__ = ['IndexRefreshResult', 'IndexService', 'OwnerIndexResult']


class IndexRefreshResult(StrictModel):
    """Result of rebuilding the index."""

    stored: int  # Entries now in the index
    removed: int  # Entries dropped because the gist is gone


class OwnerIndexResult(StrictModel):
    """Result of indexing another user's gists."""

    owner: str
    fetched: int
    added: int
    total: int


class IndexService:
    """Service for index.json maintenance and the list view."""

    def __init__(
        self,
        paths: GixtPaths,
        api: GistApi,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self.paths = paths
        self.api = api
        self.logger = logger or NullLogger()
        self.store = IndexStore(paths.index_file)

    async def update_index(self) -> IndexRefreshResult:
        """
        Refresh every indexed gist individually.

        Gists that no longer exist are dropped and counted; any other error
        aborts the refresh with the index untouched.
        """
        entries = self.store.load().entries
        if not entries:
            await self.logger.warning(
                'index is empty; nothing to refresh (add entries via index-mine, index-owner, or register)'
            )
            return IndexRefreshResult(stored=0, removed=0)

        refreshed: list[IndexEntry] = []
        removed = 0
        for entry in entries:
            await self.logger.info(f'refreshing {entry.id}')
            try:
                gist = await self.api.fetch(entry.id)
            except GistNotFoundError:
                await self.logger.warning(f'skip missing gist {entry.id} (removed from index)')
                removed += 1
                continue
            refreshed.append(IndexEntry.from_gist(gist))

        index = self.store.save(dedupe_entries(refreshed))
        return IndexRefreshResult(stored=len(index.entries), removed=removed)

    async def index_mine(self) -> int:
        """
        Index the authenticated user's gists.

        Existing entries of the owners seen in the fresh listing are replaced
        wholesale, so gists deleted remotely disappear.

        Returns:
            Total number of entries in the index
        """
        items = await self.api.list_mine(GITHUB_PAGE_SIZE, INDEX_PAGES)
        fresh = [IndexEntry.from_gist(item) for item in items]
        owners = {e.owner.strip().lower() for e in fresh if e.owner.strip()}

        kept = [e for e in self.store.load().entries if e.owner.strip().lower() not in owners]
        index = self.store.save(dedupe_entries([*kept, *fresh]))
        return len(index.entries)

    async def index_owner(self, owner: str) -> OwnerIndexResult:
        """Add another user's public gists (entries already present are kept as-is)."""
        items = await self.api.list_for_owner(owner, GITHUB_PAGE_SIZE, INDEX_PAGES)

        entries = list(self.store.load().entries)
        existing = {e.id for e in entries}
        added = 0
        for item in items:
            if item.id in existing:
                continue
            entries.append(IndexEntry.from_gist(item))
            existing.add(item.id)
            added += 1

        index = self.store.save(entries)
        return OwnerIndexResult(owner=owner, fetched=len(items), added=added, total=len(index.entries))

    def clear_index(self) -> bool:
        """Delete index.json (cache untouched)."""
        return self.store.clear()

    async def refresh_index_and_cache(self, gist: Gist, force_update: bool) -> None:
        """
        Bring local state in line with a gist just edited remotely.

        The index entry is replaced (or added). The cache revision for the new
        sha is rewritten when it already exists or force_update is set.
        """
        entries = [e for e in self.store.load().entries if e.id != gist.id]
        entries.append(IndexEntry.from_gist(gist))
        self.store.save(entries)

        sha = gist.latest_version()
        if sha is None:
            return
        work_dir = cache.cache_dir(self.paths.cache_dir, gist.id, sha)
        if not (force_update or work_dir.exists()):
            return

        materializer = FileMaterializer(self.api, logger=self.logger)
        result = await materializer.materialize(gist.files, work_dir, force_update=True)
        cache.save_manifest(
            work_dir,
            CacheManifest(
                gist_id=gist.id,
                sha=sha,
                description=gist.description or '',
                owner=gist.owner_login,
                files=list(result.filenames),
                source=gist.html_url,
                created_at=datetime.now(UTC),
            ),
        )

    def gather_list_rows(self, cache_only: bool = False, owner: str | None = None) -> list[ListRow]:
        """
        Merge index entries and cached gists into display rows.

        Description overrides win everywhere. For gists that are both indexed
        and cached, the latest cache manifest supplies files, owner and
        description.

        Args:
            cache_only: Only rows with a cached revision
            owner: Only rows owned by this login (case-insensitive)

        Returns:
            Rows sorted by (owner, description)
        """
        overrides = DescriptionOverrideStore(self.paths.index_desc_file).load()
        aliases_by_id: dict[str, list[str]] = {}
        for name, gist_id in sorted(AliasStore(self.paths.alias_file).load().items()):
            aliases_by_id.setdefault(gist_id, []).append(name)

        rows: dict[str, dict[str, object]] = {}
        for entry in self.store.load().entries:
            rows[entry.id] = {
                'id': entry.id,
                'owner': entry.owner,
                'description': apply_override(overrides, entry.id, entry.description),
                'files': list(entry.filenames),
                'cached': False,
                'indexed': True,
            }

        for manifest, _ in cache.iter_cached_gists(self.paths.cache_dir):
            row = rows.setdefault(manifest.gist_id, {'id': manifest.gist_id, 'indexed': False})
            row['cached'] = True
            if manifest.files or 'files' not in row:
                row['files'] = list(manifest.files)
            if manifest.owner or 'owner' not in row:
                row['owner'] = manifest.owner
            if manifest.description.strip() or 'description' not in row:
                row['description'] = manifest.description.strip()
            row['description'] = apply_override(overrides, manifest.gist_id, str(row['description']))

        result = [
            ListRow.model_validate({**row, 'aliases': aliases_by_id.get(gist_id, [])}) for gist_id, row in rows.items()
        ]
        if cache_only:
            result = [r for r in result if r.cached]
        if owner:
            result = [r for r in result if r.owner.lower() == owner.lower()]
        return sorted(result, key=lambda r: (r.owner, r.description))
