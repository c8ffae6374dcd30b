"""
Shared fixtures: an in-memory GitHub, scripted prompts, and isolated dirs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest

from gixt.exceptions import GistNotFoundError, NetworkFailureError
from gixt.paths import GixtPaths
from gixt.schemas.cache import CacheManifest
from gixt.schemas.gist import Gist, GistSummary, Release
from gixt.schemas.index import IndexEntry
from gixt.schemas.operations import CommandPlan
from gixt.types import ExecMode, TrustAnswer


def make_gist(
    gist_id: str,
    files: Mapping[str, str | None],
    *,
    owner: str = 'alice',
    description: str | None = '',
    sha: str | None = 'c0ffee01',
    truncated: frozenset[str] = frozenset(),
) -> Gist:
    """Build a Gist payload the way the API would return it."""
    data: dict[str, Any] = {
        'id': gist_id,
        'description': description,
        'owner': {'login': owner} if owner else None,
        'html_url': f'https://gist.github.com/{owner}/{gist_id}',
        'updated_at': '2024-05-01T12:00:00Z',
        'files': {
            name: {
                'filename': name,
                'content': content,
                'truncated': name in truncated,
                'raw_url': f'https://gist.githubusercontent.com/{owner}/{gist_id}/raw/{name}',
            }
            for name, content in files.items()
        },
        'history': [{'version': sha}] if sha else [],
    }
    return Gist.model_validate(data)


def make_entry(gist_id: str, filenames: list[str], owner: str = 'alice', description: str = '') -> IndexEntry:
    return IndexEntry(id=gist_id, filenames=filenames, owner=owner, description=description)


class FakeGistApi:
    """In-memory GistApi."""

    def __init__(self, gists: list[Gist] | None = None, login: str | None = 'alice') -> None:
        self.gists: dict[str, Gist] = {g.id: g for g in gists or ()}
        self.raw: dict[str, bytes] = {}
        self.login = login
        self.release: Release | None = None
        self.calls: list[tuple[str, str]] = []
        self._revision = 0
        self._created = 0
        self.created_public: list[bool] = []

    def add(self, gist: Gist) -> None:
        self.gists[gist.id] = gist

    async def fetch(self, gist_id: str, ref: str | None = None) -> Gist:
        self.calls.append(('fetch', gist_id))
        if gist_id not in self.gists:
            raise GistNotFoundError(gist_id)
        return self.gists[gist_id]

    async def list_mine(self, per_page: int, max_pages: int) -> list[GistSummary]:
        self.calls.append(('list_mine', ''))
        return [g for g in self.gists.values() if g.owner_login == self.login]

    async def list_for_owner(self, owner: str, per_page: int, max_pages: int) -> list[GistSummary]:
        self.calls.append(('list_for_owner', owner))
        return [g for g in self.gists.values() if g.owner_login.lower() == owner.lower()]

    def _bump(self, gist: Gist, **changes: Any) -> Gist:
        self._revision += 1
        data = gist.model_dump(mode='json')
        data.update(changes)
        data['history'] = [{'version': f'rev{self._revision:04d}'}]
        updated = Gist.model_validate(data)
        self.gists[gist.id] = updated
        return updated

    async def update_files(self, gist_id: str, files: Mapping[str, str]) -> Gist:
        self.calls.append(('update_files', gist_id))
        gist = await self.fetch(gist_id)
        merged = gist.model_dump(mode='json')['files']
        for name, content in files.items():
            merged[name] = {'filename': name, 'content': content, 'truncated': False, 'raw_url': None}
        return self._bump(gist, files=merged)

    async def create_gist(self, files: Mapping[str, str], description: str, public: bool) -> Gist:
        self.calls.append(('create_gist', description))
        self._created += 1
        gist = make_gist(f'f0f0{self._created:04d}', dict(files), owner=self.login or '', description=description)
        self.created_public.append(public)
        self.gists[gist.id] = gist
        return gist

    async def update_description(self, gist_id: str, description: str) -> Gist:
        self.calls.append(('update_description', gist_id))
        return self._bump(await self.fetch(gist_id), description=description)

    async def current_user(self) -> str:
        self.calls.append(('current_user', ''))
        if self.login is None:
            raise NetworkFailureError('not authenticated')
        return self.login

    async def fetch_raw(self, url: str) -> bytes:
        self.calls.append(('fetch_raw', url))
        if url not in self.raw:
            raise NetworkFailureError(f'download {url}: 404')
        return self.raw[url]

    async def latest_release(self, repo: str) -> Release:
        if self.release is None:
            raise NetworkFailureError(f'no releases for {repo}')
        return self.release


class ScriptedInteraction:
    """InteractionProtocol with canned answers; records what was shown."""

    def __init__(
        self,
        confirm: bool = True,
        exec_mode: ExecMode = 'isolate',
        trust: TrustAnswer = 'yes',
    ) -> None:
        self.confirm_answer = confirm
        self.exec_mode = exec_mode
        self.trust = trust
        self.prompts: list[str] = []
        self.exec_mode_asked = 0
        self.trust_asked: list[CacheManifest] = []
        self.shown_files: list[tuple[str, ...]] = []
        self.shown_commands: list[CommandPlan] = []

    def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.confirm_answer

    def choose_exec_mode(self) -> ExecMode:
        self.exec_mode_asked += 1
        return self.exec_mode

    def confirm_trust(self, manifest: CacheManifest) -> TrustAnswer:
        self.trust_asked.append(manifest)
        return self.trust

    def show_files(self, manifest: CacheManifest, work_dir: Path) -> None:
        self.shown_files.append(tuple(manifest.files))

    def show_command(self, plan: CommandPlan) -> None:
        self.shown_commands.append(plan)


class RecordingRunner:
    """ProcessRunner stand-in that records commands instead of running them."""

    def __init__(self, exit_code: int = 0) -> None:
        self.exit_code = exit_code
        self.calls: list[tuple[list[str], Path, dict[str, str]]] = []
        self.existed: list[bool] = []

    async def run(
        self,
        argv: Sequence[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> int:
        self.calls.append((list(argv), cwd, dict(env or {})))
        self.existed.append(Path(argv[-1]).exists())
        return self.exit_code


@pytest.fixture
def paths(tmp_path: Path) -> GixtPaths:
    """Config and cache dirs under tmp_path."""
    return GixtPaths(config_dir=tmp_path / 'config', cache_dir=tmp_path / 'cache').ensure()


@pytest.fixture
def api() -> FakeGistApi:
    return FakeGistApi()


@pytest.fixture
def interaction() -> ScriptedInteraction:
    return ScriptedInteraction()
