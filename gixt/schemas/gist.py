"""
GitHub Gist API payload models.

Only the fields gixt reads are declared; everything else in the API
response is ignored.
"""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import Field

from gixt.base_model import ApiModel
from gixt.types import JsonDatetime


class GistFile(ApiModel):
    """One file entry of a gist (content may be truncated or absent in listings)."""

    filename: str = ''
    type: str | None = None
    language: str | None = None
    raw_url: str | None = None
    size: int = 0
    truncated: bool = False
    content: str | None = None

    @property
    def needs_download(self) -> bool:
        """Inline content is unusable when truncated or missing."""
        return self.truncated or not self.content


class GistOwner(ApiModel):
    login: str = ''


class GistHistoryEntry(ApiModel):
    version: str = ''
    committed_at: JsonDatetime | None = None


class GistSummary(ApiModel):
    """Gist as returned by the list endpoints (no history)."""

    id: str
    description: str | None = None
    files: dict[str, GistFile] = Field(default_factory=dict)
    owner: GistOwner | None = None
    updated_at: JsonDatetime | None = None
    html_url: str = ''

    @property
    def owner_login(self) -> str:
        """Owner login, or '' for anonymous gists."""
        return self.owner.login if self.owner else ''

    @property
    def filenames(self) -> list[str]:
        return sorted(self.files)


class Gist(GistSummary):
    """Gist as returned by GET /gists/{id}[/{sha}]."""

    history: Sequence[GistHistoryEntry] = ()

    def latest_version(self) -> str | None:
        """Revision sha of the newest history entry, if any."""
        if self.history and self.history[0].version:
            return self.history[0].version
        return None


class ReleaseAsset(ApiModel):
    name: str
    browser_download_url: str


class Release(ApiModel):
    """Latest GitHub release (used by check-updates)."""

    tag_name: str
    html_url: str = ''
    assets: Sequence[ReleaseAsset] = ()
