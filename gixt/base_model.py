"""
Shared Pydantic base models.

StrictModel is used for documents gixt owns (run manifests, cache manifests,
index files). ApiModel is used for GitHub API payloads, which carry many
fields gixt does not care about.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Base model with strict validation settings."""

    model_config = ConfigDict(
        extra='forbid',  # Raise error on unexpected fields
        strict=True,  # Strict type validation
        frozen=True,  # Immutable (cannot modify after creation)
    )


class ApiModel(BaseModel):
    """Base model for GitHub API responses (unknown fields ignored)."""

    model_config = ConfigDict(
        extra='ignore',
        frozen=True,
    )
