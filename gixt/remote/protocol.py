"""
GitHub Gist API protocol.

Defines the interface the services depend on. GistClient (httpx) implements
it for real; tests supply an in-memory fake.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from gixt.schemas.gist import Gist, GistSummary, Release


@runtime_checkable
class GistApi(Protocol):
    """Protocol for gist hosting backends."""

    async def fetch(self, gist_id: str, ref: str | None = None) -> Gist:
        """
        Fetch a gist, optionally at a specific revision.

        Raises:
            GistNotFoundError: If the gist (or revision) does not exist
            NetworkFailureError: On any other transport or API failure
        """
        ...

    async def list_mine(self, per_page: int, max_pages: int) -> list[GistSummary]:
        """List the authenticated user's gists (stops early on a short page)."""
        ...

    async def list_for_owner(self, owner: str, per_page: int, max_pages: int) -> list[GistSummary]:
        """List a user's public gists (stops early on a short page)."""
        ...

    async def update_files(self, gist_id: str, files: Mapping[str, str]) -> Gist:
        """Create or overwrite files in a gist the caller owns."""
        ...

    async def create_gist(self, files: Mapping[str, str], description: str, public: bool) -> Gist:
        """Create a new gist owned by the authenticated user."""
        ...

    async def update_description(self, gist_id: str, description: str) -> Gist:
        ...

    async def current_user(self) -> str:
        """Login of the authenticated user."""
        ...

    async def fetch_raw(self, url: str) -> bytes:
        """Download a raw file body (used for truncated gist files)."""
        ...

    async def latest_release(self, repo: str) -> Release:
        ...
