"""
Persisted user preferences (settings.json).

This model is NOT frozen: commands toggle fields and save it back.
"""

from __future__ import annotations

from typing import get_args

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from gixt.types import CacheMode, ExecMode, TrustMode


class UserSettings(BaseModel):
    """Trust, cache and execution-directory preferences."""

    model_config = ConfigDict(extra='ignore', validate_assignment=True)

    mode: TrustMode = 'never'
    trusted_owners: set[str] = Field(default_factory=set)  # Lowercased logins
    trusted_gists: set[str] = Field(default_factory=set)
    cache_mode: CacheMode = 'never'
    exec_mode: ExecMode | None = None  # None until the user has chosen

    @field_validator('trusted_owners', 'trusted_gists', mode='before')
    @classmethod
    def accept_legacy_maps(cls, v: object) -> object:
        """Older files stored {"name": true} maps instead of lists."""
        if v is None:
            return set()
        if isinstance(v, dict):
            return {key for key, enabled in v.items() if enabled}
        return v

    @field_validator('trusted_owners')
    @classmethod
    def lowercase_owners(cls, v: set[str]) -> set[str]:
        return {owner.strip().lower() for owner in v if owner.strip()}

    @field_validator('mode', 'cache_mode', mode='before')
    @classmethod
    def empty_means_never(cls, v: object) -> object:
        return 'never' if v in (None, '') else v

    @field_validator('exec_mode', mode='before')
    @classmethod
    def normalize_exec_mode(cls, v: object) -> object:
        """Unset stays None; unknown stored values fall back to isolate."""
        if v in (None, ''):
            return None
        if v not in get_args(ExecMode):
            return 'isolate'
        return v

    @field_serializer('trusted_owners', 'trusted_gists')
    def sorted_list(self, v: set[str]) -> list[str]:
        return sorted(v)

    @property
    def effective_exec_mode(self) -> ExecMode:
        return self.exec_mode or 'isolate'
