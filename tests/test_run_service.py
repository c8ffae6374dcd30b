"""Tests for the run pipeline."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

import pytest

from gixt.exceptions import GistNotFoundError, InvalidInputError, ProcessExitError
from gixt.paths import GixtPaths
from gixt.schemas.operations import AbortedByUser, Completed, Failed, RunOutcome
from gixt.services.run import RunOptions, RunService, decide_exec_mode, resolve_user_args
from gixt.storage import cache
from gixt.storage.index import IndexStore
from gixt.storage.settings import SettingsStore
from tests.conftest import FakeGistApi, RecordingRunner, ScriptedInteraction, make_entry, make_gist

SCRIPT = f'#!{sys.executable}\nimport pathlib, sys\npathlib.Path(sys.argv[1]).write_text(str(pathlib.Path.cwd()))\n'


def _run(
    paths: GixtPaths,
    api: FakeGistApi,
    interaction: ScriptedInteraction,
    options: RunOptions | None = None,
    identifier: str = 'aaaa0001',
    forwarded: Sequence[str] = (),
    runner: RecordingRunner | None = None,
    original_cwd: Path | None = None,
) -> RunOutcome:
    service = RunService(
        paths, api, interaction, runner=runner, is_windows=False, original_cwd=original_cwd or paths.config_dir
    )
    return asyncio.run(service.run(options or RunOptions(), identifier, forwarded))


@pytest.mark.skipif(sys.platform == 'win32', reason='shebang execution')
def test_runs_script_inside_cache_dir(paths: GixtPaths, tmp_path: Path) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': SCRIPT})])
    interaction = ScriptedInteraction()
    marker = tmp_path / 'marker.txt'

    outcome = _run(paths, api, interaction, forwarded=[str(marker)])

    assert isinstance(outcome, Completed)
    assert outcome.exit_code == 0
    work_dir = cache.cache_dir(paths.cache_dir, 'aaaa0001', 'c0ffee01')
    assert Path(marker.read_text()).resolve() == work_dir.resolve()
    assert interaction.exec_mode_asked == 1
    assert len(interaction.trust_asked) == 1
    assert SettingsStore(paths.settings_file).load().exec_mode == 'isolate'
    assert cache.load_manifest(work_dir) is not None


@pytest.mark.skipif(sys.platform == 'win32', reason='shebang execution')
def test_non_zero_exit_is_reported(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': f'#!{sys.executable}\nraise SystemExit(3)\n'})])

    outcome = _run(paths, api, ScriptedInteraction(), RunOptions(yes=True))

    assert isinstance(outcome, Failed)
    assert isinstance(outcome.error, ProcessExitError)
    assert outcome.exit_code == 3


def test_dry_run_shows_command_without_running(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': 'print(1)'})])
    interaction = ScriptedInteraction()
    runner = RecordingRunner()

    outcome = _run(paths, api, interaction, RunOptions(dry_run=True, yes=True), forwarded=['x'], runner=runner)

    assert isinstance(outcome, Completed)
    assert outcome.dry_run
    assert runner.calls == []
    [plan] = interaction.shown_commands
    assert plan.argv[0] == 'python'
    assert plan.argv[-1] == 'x'


def test_view_skips_trust_and_execution(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'a.py': '', 'b.py': ''})])
    interaction = ScriptedInteraction()
    runner = RecordingRunner()

    outcome = _run(paths, api, interaction, RunOptions(view=True), runner=runner)

    assert isinstance(outcome, Completed)
    assert outcome.viewed
    assert interaction.shown_files == [('a.py', 'b.py')]
    assert interaction.trust_asked == []
    assert runner.calls == []


@pytest.mark.parametrize(
    ('answer', 'reason', 'viewed'), [('no', 'aborted by user', 0), ('view', 'aborted after view', 1)]
)
def test_trust_prompt_declined(paths: GixtPaths, answer: str, reason: str, viewed: int) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': ''})])
    interaction = ScriptedInteraction(trust=answer)  # type: ignore[arg-type]
    runner = RecordingRunner()

    outcome = _run(paths, api, interaction, runner=runner)

    assert outcome == AbortedByUser(reason)
    assert len(interaction.shown_files) == viewed
    assert runner.calls == []


def test_trust_always_persists_gist(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': ''})])
    interaction = ScriptedInteraction()
    runner = RecordingRunner()

    _run(paths, api, interaction, RunOptions(trust_always=True), runner=runner)
    outcome = _run(paths, api, interaction, runner=runner)

    assert isinstance(outcome, Completed)
    assert interaction.trust_asked == []
    assert SettingsStore(paths.settings_file).load().trusted_gists == {'aaaa0001'}
    assert len(runner.calls) == 2


def test_trust_all_switches_mode(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': ''})])
    interaction = ScriptedInteraction()

    _run(paths, api, interaction, RunOptions(trust_all=True), runner=RecordingRunner())

    assert SettingsStore(paths.settings_file).load().mode == 'all'
    assert interaction.trust_asked == []


def test_no_cache_uses_a_temporary_dir(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': ''})])
    runner = RecordingRunner()

    outcome = _run(paths, api, ScriptedInteraction(), RunOptions(no_cache=True, yes=True), runner=runner)

    assert isinstance(outcome, Completed)
    assert outcome.work_dir is not None
    assert outcome.work_dir.parent == paths.cache_dir
    assert runner.existed == [True]
    assert not outcome.work_dir.exists()
    assert cache.latest_manifest(paths.cache_dir, 'aaaa0001') is None


def test_cwd_mode_runs_in_callers_dir(paths: GixtPaths, tmp_path: Path) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': ''})])
    runner = RecordingRunner()

    _run(paths, api, ScriptedInteraction(), RunOptions(cwd=True, yes=True), runner=runner, original_cwd=tmp_path)

    [(argv, cwd, _)] = runner.calls
    assert cwd == tmp_path
    assert argv[-1] == str(cache.cache_dir(paths.cache_dir, 'aaaa0001', 'c0ffee01') / 'main.py')


def test_manifest_env_reaches_the_runner(paths: GixtPaths) -> None:
    manifest = '{"run": "python app.py", "env": {"K": "v"}}'
    api = FakeGistApi([make_gist('aaaa0001', {'app.py': '', 'gixt.json': manifest})])
    runner = RecordingRunner()

    _run(paths, api, ScriptedInteraction(), RunOptions(yes=True), runner=runner)

    [(argv, _, env)] = runner.calls
    assert argv[:2] == ['sh', '-c']
    assert env == {'K': 'v'}


def test_index_hits_skip_exec_mode_prompt(paths: GixtPaths) -> None:
    IndexStore(paths.index_file).save([make_entry('aaaa0001', ['hello.py'])])
    api = FakeGistApi([make_gist('aaaa0001', {'hello.py': ''})])
    interaction = ScriptedInteraction()

    outcome = _run(paths, api, interaction, RunOptions(yes=True), identifier='hello', runner=RecordingRunner())

    assert isinstance(outcome, Completed)
    assert interaction.exec_mode_asked == 0
    assert SettingsStore(paths.settings_file).load().exec_mode is None


def test_errors_become_failed_outcomes(paths: GixtPaths) -> None:
    outcome = _run(paths, FakeGistApi(), ScriptedInteraction(), runner=RecordingRunner())
    assert isinstance(outcome, Failed)
    assert isinstance(outcome.error, GistNotFoundError)

    outcome = _run(paths, FakeGistApi(), ScriptedInteraction(), RunOptions(isolate=True, cwd=True))
    assert isinstance(outcome, Failed)
    assert isinstance(outcome.error, InvalidInputError)


def test_register_caches_without_running(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': 'print(1)'}, owner='bob')])
    service = RunService(paths, api, ScriptedInteraction())

    manifest, work_dir = asyncio.run(service.register('https://gist.github.com/bob/aaaa0001'))

    assert manifest.owner == 'bob'
    assert (work_dir / 'main.py').read_text() == 'print(1)'
    assert cache.load_manifest(work_dir) == manifest


def test_cached_rerun_keeps_manifest(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': 'print(1)'})])
    runner = RecordingRunner()
    work_dir = cache.cache_dir(paths.cache_dir, 'aaaa0001', 'c0ffee01')

    _run(paths, api, ScriptedInteraction(), RunOptions(yes=True), runner=runner)
    before = cache.manifest_path(work_dir).read_text()
    outcome = _run(paths, api, ScriptedInteraction(), RunOptions(yes=True), runner=runner)

    assert isinstance(outcome, Completed)
    assert len(runner.calls) == 2
    assert cache.manifest_path(work_dir).read_text() == before


def test_register_reuses_cached_manifest(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': 'print(1)'})])
    service = RunService(paths, api, ScriptedInteraction())

    first, work_dir = asyncio.run(service.register('aaaa0001'))
    second, _ = asyncio.run(service.register('aaaa0001'))

    assert second == first
    assert cache.load_manifest(work_dir) == first


def test_register_requires_target(paths: GixtPaths) -> None:
    with pytest.raises(InvalidInputError):
        asyncio.run(RunService(paths, FakeGistApi(), ScriptedInteraction()).register('  '))


def test_decide_exec_mode() -> None:
    assert decide_exec_mode(None, False, False) == 'isolate'
    assert decide_exec_mode('cwd', False, False) == 'cwd'
    assert decide_exec_mode('cwd', True, False) == 'isolate'
    assert decide_exec_mode('isolate', False, True) == 'cwd'
    with pytest.raises(InvalidInputError):
        decide_exec_mode(None, True, True)


def test_resolve_user_args(tmp_path: Path) -> None:
    (tmp_path / 'data.txt').write_text('')

    resolved = resolve_user_args(['data.txt', 'missing.txt', '--flag', ''], tmp_path)

    assert resolved == [str(tmp_path / 'data.txt'), 'missing.txt', '--flag', '']
