"""
Operation result models.

Values produced by the resolver, materializer, planner and run service.
Outcomes carry exception objects, so they are attrs classes rather than
pydantic models.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import attrs
from pydantic import Field

from gixt.base_model import StrictModel
from gixt.exceptions import GixtError


class GistIdentity(StrictModel):
    """A resolved gist (never persisted)."""

    id: str
    owner_hint: str | None = None  # Owner known from the index or live lookup
    from_index: bool = False


class MaterializeResult(StrictModel):
    """Files present in the work dir after materialization."""

    filenames: Sequence[str]  # Sanitized relative paths, sorted
    reused_from_cache: bool


class CommandPlan(StrictModel):
    """How to execute a materialized gist."""

    argv: Sequence[str]
    env: dict[str, str] = Field(default_factory=dict)  # Overlay on the inherited environment
    reason: str  # 'manifest', 'shebang', 'extension .py', ...

    def display(self) -> str:
        return ' '.join(self.argv)


class ListRow(StrictModel):
    """One row of `gixt list` (merged from index and cache)."""

    id: str
    owner: str
    description: str
    files: Sequence[str]
    cached: bool
    indexed: bool
    aliases: Sequence[str] = ()

    @property
    def source(self) -> str:
        if self.cached and self.indexed:
            return 'cache+index'
        return 'cache' if self.cached else 'index'


@attrs.define(frozen=True)
class Completed:
    """The pipeline finished (ran, viewed, or printed a dry-run command)."""

    exit_code: int = 0
    plan: CommandPlan | None = None
    work_dir: Path | None = None
    viewed: bool = False
    dry_run: bool = False


@attrs.define(frozen=True)
class AbortedByUser:
    """The user declined a prompt (trust, view-only answer)."""

    reason: str


@attrs.define(frozen=True)
class Failed:
    """The pipeline stopped with an error."""

    error: GixtError

    @property
    def exit_code(self) -> int:
        return getattr(self.error, 'exit_code', 1)


RunOutcome = Completed | AbortedByUser | Failed
