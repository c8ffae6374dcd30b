"""
Pydantic models for gixt.

- gist: GitHub API payloads
- index: local name index (index.json)
- cache: per-revision cache manifest (.gixt-manifest.json)
- manifest: run manifest shipped inside a gist (gixt.json)
- settings: persisted user preferences (settings.json)
- operations: results passed between services
"""

from __future__ import annotations

from gixt.schemas.cache import CacheManifest
from gixt.schemas.gist import Gist, GistFile, GistHistoryEntry, GistOwner, GistSummary, Release, ReleaseAsset
from gixt.schemas.index import Index, IndexEntry
from gixt.schemas.manifest import RunManifest
from gixt.schemas.operations import (
    AbortedByUser,
    CommandPlan,
    Completed,
    Failed,
    GistIdentity,
    ListRow,
    MaterializeResult,
    RunOutcome,
)
from gixt.schemas.settings import UserSettings

__all__ = [
    # Cache
    'CacheManifest',
    # Gist API
    'Gist',
    'GistFile',
    'GistHistoryEntry',
    'GistOwner',
    'GistSummary',
    'Release',
    'ReleaseAsset',
    # Index
    'Index',
    'IndexEntry',
    # Run manifest
    'RunManifest',
    # Operations
    'AbortedByUser',
    'CommandPlan',
    'Completed',
    'Failed',
    'GistIdentity',
    'ListRow',
    'MaterializeResult',
    'RunOutcome',
    # Settings
    'UserSettings',
]
