"""
Identifier resolution.

Turns whatever the user typed (alias, gist id, URL, file name, owner/name,
description) into exactly one gist id. Stages run in order and the first
success wins:

1. alias (exact, un-normalized)
2. gist id / URL extraction (accepted when hex-like)
3. index, owner-qualified (owner/name)
4. index, bare name across all owners
5. live owner/name lookup against the API (opt-in)
6. otherwise UnresolvedIdentifierError

Shell-script variants of the same script (deploy.sh / deploy.ps1) are
narrowed to the one native to the host platform before ambiguity is
reported.
"""

from __future__ import annotations

import posixpath
import re
import string
from collections.abc import Iterable, Mapping, Sequence
from urllib.parse import urlsplit

import attrs

from gixt.constants import GITHUB_PAGE_SIZE, IS_WINDOWS, SHELL_SCRIPT_EXTENSIONS, preferred_extensions
from gixt.exceptions import AmbiguousIdentifierError, UnresolvedIdentifierError
from gixt.paths import GixtPaths
from gixt.protocols import LoggerProtocol, NullLogger
from gixt.remote.protocol import GistApi
from gixt.schemas.index import IndexEntry
from gixt.schemas.operations import GistIdentity
from gixt.storage.descriptions import DescriptionOverrideStore, apply_override
from gixt.storage.index import IndexStore

__all__ = [
    'Candidate',
    'IdentifierResolver',
    'extract_id',
    'filename_matches',
    'is_likely_gist_id',
    'match_entries',
    'prefer_platform',
    'split_owner_name',
]

GIST_URL_RE = re.compile(r'gist\.github\.com/[^/]+/([a-fA-F0-9]+)')
_HEX_DIGITS = frozenset(string.hexdigits)


def extract_id(raw: str) -> str:
    """
    Pull a gist id candidate out of a URL or bare token.

    Examples:
        >>> extract_id('https://gist.github.com/alice/0123abcd')
        '0123abcd'
        >>> extract_id('https://example.com/raw/deadbeef99?x=1')
        'deadbeef99'
        >>> extract_id('  hello  ')
        'hello'
    """
    match = GIST_URL_RE.search(raw)
    if match:
        return match.group(1)

    trimmed = raw.strip()
    if not trimmed:
        return ''
    trimmed = trimmed.removesuffix('/')

    parts = urlsplit(trimmed)
    if parts.netloc:
        segments = parts.path.strip('/').split('/')
        last = segments[-1].split('#', 1)[0].split('?', 1)[0]
        if last:
            return last
    return trimmed


def is_likely_gist_id(value: str) -> bool:
    """At least 8 characters, all hexadecimal."""
    trimmed = value.strip()
    return len(trimmed) >= 8 and all(c in _HEX_DIGITS for c in trimmed)


def split_owner_name(raw: str) -> tuple[str, str] | None:
    """Split 'owner/name' (URLs excluded)."""
    if '/' not in raw or '://' in raw:
        return None
    owner, name = raw.split('/', 1)
    return owner, name


def _file_parts(filename: str) -> tuple[str, str, str]:
    """(full name, base name, extension), all lowercased."""
    full = posixpath.basename(filename).lower()
    base, ext = posixpath.splitext(full)
    return full, base, ext


def filename_matches(target_lower: str, filename: str) -> bool:
    """Target equals the file's base name (without extension) or its full name."""
    full, base, _ = _file_parts(filename)
    return target_lower in (base, full)


@attrs.define(frozen=True)
class Candidate:
    """An index entry that matched, plus how it matched."""

    entry: IndexEntry
    matched_extensions: tuple[str, ...]  # Extensions of the files that matched by name

    @property
    def description_only(self) -> bool:
        return not self.matched_extensions


def match_entries(
    entries: Iterable[IndexEntry],
    name: str,
    *,
    description_lookup: bool,
    overrides: Mapping[str, str],
) -> list[Candidate]:
    """
    Entries matching a friendly name, deduplicated by id in first-seen order.

    File-name matches come first, then description matches (when enabled)
    compared against the override-applied, trimmed description.
    """
    target = name.strip().lower()
    if not target:
        return []

    entries = list(entries)
    found: dict[str, Candidate] = {}

    for entry in entries:
        exts = tuple(_file_parts(f)[2] for f in entry.filenames if filename_matches(target, f))
        if exts and entry.id not in found:
            found[entry.id] = Candidate(entry, exts)

    if description_lookup:
        for entry in entries:
            description = apply_override(overrides, entry.id, entry.description).lower()
            if description == target and entry.id not in found:
                found[entry.id] = Candidate(entry, ())

    return list(found.values())


def prefer_platform(candidates: Sequence[Candidate], is_windows: bool = IS_WINDOWS) -> list[Candidate]:
    """
    Narrow shell-script variants to the host-native one.

    Applies only when every matched extension is a shell-script extension
    and no candidate matched by description alone. The narrowed list is
    returned only when exactly one candidate has a host-preferred extension.
    """
    if len(candidates) <= 1:
        return list(candidates)
    if any(c.description_only for c in candidates):
        return list(candidates)
    if any(ext not in SHELL_SCRIPT_EXTENSIONS for c in candidates for ext in c.matched_extensions):
        return list(candidates)

    preferred = preferred_extensions(is_windows)
    hits = [c for c in candidates if any(ext in preferred for ext in c.matched_extensions)]
    if len(hits) == 1:
        return hits
    return list(candidates)


class IdentifierResolver:
    """Resolves raw identifiers against aliases, the local index and (optionally) the API."""

    def __init__(
        self,
        paths: GixtPaths,
        api: GistApi | None = None,
        is_windows: bool = IS_WINDOWS,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self.paths = paths
        self.api = api
        self.is_windows = is_windows
        self.logger = logger or NullLogger()

    async def resolve(
        self,
        raw: str,
        aliases: Mapping[str, str],
        *,
        live_lookup: bool = False,
        description_lookup: bool = False,
        max_pages: int = 2,
    ) -> GistIdentity:
        """
        Resolve an identifier to a single gist.

        Args:
            raw: User input, unmodified
            aliases: Alias map (name -> gist id)
            live_lookup: Allow listing the owner's gists via the API (-u)
            description_lookup: Also match descriptions (--desc-lookup)
            max_pages: Pages of 100 to scan during live lookup

        Returns:
            GistIdentity for the single match

        Raises:
            AmbiguousIdentifierError: More than one gist matches after narrowing
            UnresolvedIdentifierError: Nothing matched
            NetworkFailureError: Live lookup failed
        """
        tried = ['alias']
        if raw in aliases:
            await self.logger.info(f'resolved alias {raw!r} -> {aliases[raw]}')
            return GistIdentity(id=aliases[raw])

        tried.append('gist id/URL')
        candidate_id = extract_id(raw)
        if is_likely_gist_id(candidate_id):
            return GistIdentity(id=candidate_id)

        owner_name = split_owner_name(raw)

        index = IndexStore(self.paths.index_file).load()
        if index.entries:
            overrides = DescriptionOverrideStore(self.paths.index_desc_file).load()

            if owner_name is not None:
                tried.append('index owner/name')
                owner, name = owner_name
                owned = [e for e in index.entries if e.owner.lower() == owner.lower()]
                matches = match_entries(owned, name, description_lookup=description_lookup, overrides=overrides)
                identity = self._pick(raw, matches, from_index=True)
                if identity is not None:
                    return identity

            tried.append('index name')
            matches = match_entries(index.entries, raw, description_lookup=description_lookup, overrides=overrides)
            identity = self._pick(raw, matches, from_index=True)
            if identity is not None:
                return identity

        if live_lookup and owner_name is not None and self.api is not None:
            tried.append('live owner/name')
            owner, name = owner_name
            await self.logger.info(f'listing gists of {owner} (up to {max_pages} pages)')
            items = await self.api.list_for_owner(owner, GITHUB_PAGE_SIZE, max_pages)
            entries = [IndexEntry.from_gist(item) for item in items]
            overrides = DescriptionOverrideStore(self.paths.index_desc_file).load()
            matches = match_entries(entries, name, description_lookup=description_lookup, overrides=overrides)
            identity = self._pick(raw, matches, from_index=False)
            if identity is not None:
                return identity

        raise UnresolvedIdentifierError(raw, tried)

    def _pick(self, raw: str, matches: Sequence[Candidate], *, from_index: bool) -> GistIdentity | None:
        """Single match after platform narrowing, None for no match."""
        narrowed = prefer_platform(matches, self.is_windows)
        if not narrowed:
            return None
        if len(narrowed) > 1:
            raise AmbiguousIdentifierError(raw, [c.entry for c in narrowed])
        entry = narrowed[0].entry
        return GistIdentity(id=entry.id, owner_hint=entry.owner or None, from_index=from_index)
