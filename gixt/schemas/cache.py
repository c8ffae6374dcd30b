"""
Cache manifest model.

One manifest per materialized (gist_id, sha) directory, stored next to the
files as .gixt-manifest.json and always replaced wholesale.
"""

from __future__ import annotations

from pydantic import Field

from gixt.base_model import StrictModel
from gixt.types import JsonDatetime


class CacheManifest(StrictModel):
    """Record of one materialized gist revision."""

    # Identity
    gist_id: str
    sha: str

    # Display
    description: str = ''
    owner: str = ''

    # Contents (sanitized relative paths, sorted)
    files: list[str] = Field(default_factory=list)

    # Provenance
    source: str = ''  # html_url of the gist
    created_at: JsonDatetime
