"""
Selective removal from the index and the cache.

Targets may be ids, URLs, aliases or friendly names; owners remove every
gist of that login.
"""

from __future__ import annotations

from collections.abc import Sequence

from gixt.base_model import StrictModel
from gixt.exceptions import InvalidInputError
from gixt.paths import GixtPaths
from gixt.schemas.index import Index
from gixt.services.resolver import IdentifierResolver, extract_id
from gixt.storage import cache
from gixt.storage.aliases import AliasStore
from gixt.storage.index import IndexStore


class RemoveResult(StrictModel):
    index_removed: int
    cache_removed: int


def _owner_matches(owners: Sequence[str], owner: str) -> bool:
    return any(o.strip().lower() == owner.strip().lower() for o in owners)


class RemoveService:
    def __init__(self, paths: GixtPaths, resolver: IdentifierResolver) -> None:
        self.paths = paths
        self.resolver = resolver
        self.index_store = IndexStore(paths.index_file)

    async def remove(
        self,
        cache_targets: Sequence[str] = (),
        index_targets: Sequence[str] = (),
        both_targets: Sequence[str] = (),
        owners: Sequence[str] = (),
    ) -> RemoveResult:
        """
        Remove gists from the index, the cache, or both.

        Raises:
            InvalidInputError: Nothing to remove was given
            ResolutionError: A target does not resolve
        """
        owners = [o.strip() for o in owners if o.strip()]
        if not (cache_targets or index_targets or both_targets or owners):
            raise InvalidInputError(
                'nothing to remove (use --cache, --index, --cache-index or --owner with an id or name)'
            )

        index = self.index_store.load()
        cache_ids = await self._resolve_all(cache_targets, index)
        index_ids = await self._resolve_all(index_targets, index)
        both_ids = await self._resolve_all(both_targets, index)

        index_removed = 0
        if index_ids or both_ids or owners:
            index_removed = self._remove_from_index(index, {*index_ids, *both_ids}, owners)

        cache_removed = 0
        if cache_ids or both_ids or owners:
            cache_removed = self._remove_from_cache({*cache_ids, *both_ids}, owners)

        return RemoveResult(index_removed=index_removed, cache_removed=cache_removed)

    async def _resolve_all(self, targets: Sequence[str], index: Index) -> list[str]:
        known_ids = {e.id for e in index.entries}
        aliases = AliasStore(self.paths.alias_file).load()
        ids = []
        for target in targets:
            if target in known_ids:
                ids.append(target)
                continue
            identity = await self.resolver.resolve(target, aliases, description_lookup=True)
            ids.append(extract_id(identity.id))
        return ids

    def _remove_from_index(self, index: Index, ids: set[str], owners: Sequence[str]) -> int:
        id_keys = {i.strip().lower() for i in ids}
        kept = [
            e for e in index.entries if e.id.strip().lower() not in id_keys and not _owner_matches(owners, e.owner)
        ]
        removed = len(index.entries) - len(kept)
        if removed:
            self.index_store.save(kept)
        return removed

    def _remove_from_cache(self, ids: set[str], owners: Sequence[str]) -> int:
        id_keys = {i.strip().lower() for i in ids}
        root = self.paths.cache_dir
        if not root.is_dir():
            return 0

        removed = 0
        for gist_root in sorted(root.iterdir()):
            if not gist_root.is_dir():
                continue
            gist_id = gist_root.name
            if gist_id.lower() in id_keys:
                removed += cache.remove_gist(root, gist_id)
                continue
            if not owners:
                continue
            latest = cache.latest_manifest(root, gist_id)
            if latest is not None and _owner_matches(owners, latest[0].owner):
                removed += cache.remove_gist(root, gist_id)
        return removed
