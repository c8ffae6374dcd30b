"""Tests for gist clone and fork."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from gixt.exceptions import ExecutionError, InvalidInputError, NetworkFailureError
from gixt.paths import GixtPaths
from gixt.services.clone import CloneService, gather_contents
from gixt.storage.index import IndexStore
from tests.conftest import FakeGistApi, RecordingRunner, make_entry, make_gist


def _service(paths: GixtPaths, api: FakeGistApi, runner: RecordingRunner, cwd: Path) -> CloneService:
    return CloneService(paths, api, runner=runner, cwd=cwd)


def test_clone_defaults_to_gist_id_in_cwd(paths: GixtPaths, tmp_path: Path) -> None:
    runner = RecordingRunner()

    gist_id, destination = asyncio.run(_service(paths, FakeGistApi(), runner, tmp_path).clone('aaaa0001'))

    assert gist_id == 'aaaa0001'
    assert destination == tmp_path / 'aaaa0001'
    [(argv, cwd, _)] = runner.calls
    assert argv == ['gh', 'gist', 'clone', 'aaaa0001', str(tmp_path / 'aaaa0001')]
    assert cwd == tmp_path


def test_clone_into_relative_dir(paths: GixtPaths, tmp_path: Path) -> None:
    runner = RecordingRunner()

    _, destination = asyncio.run(_service(paths, FakeGistApi(), runner, tmp_path).clone('aaaa0001', 'checkout'))

    assert destination == tmp_path / 'checkout'
    assert runner.calls[0][0][-1] == str(tmp_path / 'checkout')


def test_clone_refuses_existing_destination(paths: GixtPaths, tmp_path: Path) -> None:
    (tmp_path / 'aaaa0001').mkdir()
    runner = RecordingRunner()

    with pytest.raises(InvalidInputError, match='already exists'):
        asyncio.run(_service(paths, FakeGistApi(), runner, tmp_path).clone('aaaa0001'))

    assert runner.calls == []


def test_clone_reports_gh_failure(paths: GixtPaths, tmp_path: Path) -> None:
    runner = RecordingRunner(exit_code=1)

    with pytest.raises(ExecutionError, match='exit status 1'):
        asyncio.run(_service(paths, FakeGistApi(), runner, tmp_path).clone('aaaa0001'))


def test_clone_resolves_index_names(paths: GixtPaths, tmp_path: Path) -> None:
    IndexStore(paths.index_file).save([make_entry('aaaa0002', ['tool.py'], description='Handy tool')])
    runner = RecordingRunner()
    service = _service(paths, FakeGistApi(), runner, tmp_path)

    assert asyncio.run(service.clone('tool'))[0] == 'aaaa0002'
    assert asyncio.run(service.clone('handy tool', 'by-desc'))[0] == 'aaaa0002'


@pytest.mark.parametrize('target', ['', '   '])
def test_blank_target_is_a_usage_error(paths: GixtPaths, tmp_path: Path, target: str) -> None:
    service = _service(paths, FakeGistApi(), RecordingRunner(), tmp_path)

    with pytest.raises(InvalidInputError, match='usage'):
        asyncio.run(service.clone(target))
    with pytest.raises(InvalidInputError, match='usage'):
        asyncio.run(service.fork(target))


def test_gather_contents_downloads_truncated_files() -> None:
    gist = make_gist('aaaa0001', {'small.py': 'x = 1', 'big.py': 'part'}, truncated=frozenset({'big.py'}))
    api = FakeGistApi()
    api.raw[gist.files['big.py'].raw_url or ''] = b'x = 1\n' * 3

    contents = asyncio.run(gather_contents(api, gist.files))

    assert contents == {'small.py': 'x = 1', 'big.py': 'x = 1\n' * 3}


def test_gather_contents_fails_on_missing_download() -> None:
    gist = make_gist('aaaa0001', {'big.py': 'part'}, truncated=frozenset({'big.py'}))

    with pytest.raises(NetworkFailureError):
        asyncio.run(gather_contents(FakeGistApi(), gist.files))


def test_fork_copies_files_and_description(paths: GixtPaths, tmp_path: Path) -> None:
    source = make_gist('aaaa0001', {'main.py': 'print(1)'}, owner='bob', description='Greeter')
    api = FakeGistApi([source], login='alice')

    source_id, created = asyncio.run(_service(paths, api, RecordingRunner(), tmp_path).fork('aaaa0001'))

    assert source_id == 'aaaa0001'
    assert created.id != 'aaaa0001'
    assert created.owner_login == 'alice'
    assert created.description == 'Greeter'
    assert created.files['main.py'].content == 'print(1)'
    assert api.created_public == [False]


def test_fork_with_public_and_new_description(paths: GixtPaths, tmp_path: Path) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': ''}, description='Greeter')], login='alice')

    _, created = asyncio.run(
        _service(paths, api, RecordingRunner(), tmp_path).fork('aaaa0001', public=True, description='  Mine  ')
    )

    assert created.description == 'Mine'
    assert api.created_public == [True]


def test_fork_is_added_to_index(paths: GixtPaths, tmp_path: Path) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': ''}, owner='bob')], login='alice')

    _, created = asyncio.run(_service(paths, api, RecordingRunner(), tmp_path).fork('aaaa0001'))

    [entry] = IndexStore(paths.index_file).load().entries
    assert entry.id == created.id
    assert entry.owner == 'alice'
    assert entry.filenames == ['main.py']
