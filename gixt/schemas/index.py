"""
Local gist index models (index.json).

The index maps friendly names (file names, descriptions) to gist ids so
that `gixt run hello` works without a network round trip.
"""

from __future__ import annotations

from pydantic import Field, field_validator

from gixt.base_model import StrictModel
from gixt.schemas.gist import GistSummary
from gixt.types import JsonDatetime


class IndexEntry(StrictModel):
    """One indexed gist."""

    id: str
    description: str = ''
    filenames: list[str] = Field(default_factory=list)  # Sorted, unique
    updated_at: JsonDatetime | None = None
    owner: str = ''

    @field_validator('filenames')
    @classmethod
    def sort_filenames(cls, v: list[str]) -> list[str]:
        return sorted(set(v))

    @field_validator('description', mode='before')
    @classmethod
    def null_description(cls, v: object) -> object:
        return '' if v is None else v

    @classmethod
    def from_gist(cls, gist: GistSummary) -> IndexEntry:
        return cls(
            id=gist.id,
            description=(gist.description or '').strip(),
            filenames=gist.filenames,
            updated_at=gist.updated_at,
            owner=gist.owner_login,
        )


class Index(StrictModel):
    """The index.json file structure."""

    generated_at: JsonDatetime | None = None
    entries: list[IndexEntry] = Field(default_factory=list)
