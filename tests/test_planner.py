"""Tests for command planning."""

from __future__ import annotations

import json
import shlex
from pathlib import Path

import pytest

from gixt.exceptions import InvalidInputError, RunManifestError, UnknownRunStrategyError
from gixt.schemas.operations import CommandPlan
from gixt.services.planner import (
    CommandPlanner,
    choose_platform_specific,
    rebase_run,
    select_main_file,
    shell_command,
)


def _write(work_dir: Path, files: dict[str, str]) -> list[str]:
    for name, content in files.items():
        path = work_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return sorted(files)


def _plan(
    work_dir: Path,
    filenames: list[str],
    args: list[str] | None = None,
    exec_dir: Path | None = None,
    is_windows: bool = False,
) -> CommandPlan:
    return CommandPlanner(is_windows=is_windows).plan(
        work_dir, 'gixt.json', filenames, args or [], exec_dir or work_dir
    )


def test_select_main_file_prefers_main_then_index() -> None:
    assert select_main_file(['a.py', 'index.js', 'main.py'], is_windows=False) == 'main.py'
    assert select_main_file(['a.py', 'index.js'], is_windows=False) == 'index.js'
    assert select_main_file(['b.py', 'a.py'], is_windows=False) == 'b.py'


def test_select_main_file_prefers_native_shell_variant() -> None:
    files = ['main.ps1', 'main.sh']
    assert select_main_file(files, is_windows=False) == 'main.sh'
    assert select_main_file(files, is_windows=True) == 'main.ps1'


def test_select_main_file_empty() -> None:
    with pytest.raises(InvalidInputError):
        select_main_file([], is_windows=False)


def test_choose_platform_specific_needs_single_hit() -> None:
    # .sh and .bash are both POSIX-preferred: no unique winner
    assert choose_platform_specific(['run.sh', 'run.bash'], is_windows=False) is None
    assert choose_platform_specific(['run.sh', 'run.py'], is_windows=False) is None
    assert choose_platform_specific(['go.bat', 'go.sh'], is_windows=True) == 'go.bat'


def test_rebase_run_rewrites_first_existing_file(tmp_path: Path) -> None:
    (tmp_path / 'app.py').write_text('')

    rebased = rebase_run('python -u app.py --flag app.py', tmp_path, is_windows=False)

    assert rebased == f'python -u {shlex.quote(str(tmp_path / "app.py"))} --flag app.py'


def test_rebase_run_leaves_unknown_tokens(tmp_path: Path) -> None:
    assert rebase_run('python missing.py', tmp_path, is_windows=False) == 'python missing.py'


def test_rebase_run_ignores_files_outside_work_dir(tmp_path: Path) -> None:
    work = tmp_path / 'work'
    work.mkdir()
    (tmp_path / 'outside.py').write_text('')
    (work / 'app.py').write_text('')

    rebased = rebase_run('python ../outside.py app.py', work, is_windows=False)

    assert rebased == f'python ../outside.py {shlex.quote(str(work / "app.py"))}'


def test_shell_command_forwards_args() -> None:
    assert shell_command('echo hi', [], is_windows=False) == ['sh', '-c', 'echo hi']
    assert shell_command('echo', ['a b'], is_windows=False) == ['sh', '-c', 'echo "$@"', 'gixt', 'a b']
    assert shell_command('echo', ['x'], is_windows=True) == ['cmd', '/C', 'echo', 'x']


def test_manifest_strategy(tmp_path: Path) -> None:
    files = _write(
        tmp_path,
        {'gixt.json': json.dumps({'run': 'python app.py', 'env': {'MODE': 'demo'}}), 'app.py': 'print(1)'},
    )

    plan = _plan(tmp_path, files, ['--fast'])

    assert plan.reason == 'manifest'
    assert plan.argv == ['sh', '-c', 'python app.py "$@"', 'gixt', '--fast']
    assert plan.env == {'MODE': 'demo'}


def test_manifest_rebased_when_running_elsewhere(tmp_path: Path) -> None:
    work = tmp_path / 'work'
    work.mkdir()
    files = _write(work, {'gixt.json': json.dumps({'run': 'python app.py'}), 'app.py': ''})

    plan = _plan(work, files, exec_dir=tmp_path)

    assert plan.argv == ['sh', '-c', f'python {shlex.quote(str(work / "app.py"))}']


def test_invalid_manifest_is_an_error(tmp_path: Path) -> None:
    files = _write(tmp_path, {'gixt.json': json.dumps({'run': ''}), 'main.py': ''})

    with pytest.raises(RunManifestError):
        _plan(tmp_path, files)


def test_shebang_strategy(tmp_path: Path) -> None:
    files = _write(tmp_path, {'main': '\ufeff#!/usr/bin/env python3 -u\nprint(1)\n'})

    plan = _plan(tmp_path, files, ['x'])

    assert plan.reason == 'shebang'
    assert plan.argv == ['/usr/bin/env', 'python3', '-u', str(tmp_path / 'main'), 'x']


@pytest.mark.parametrize(
    ('filename', 'is_windows', 'prefix'),
    [
        ('main.py', False, ['python']),
        ('main.js', False, ['node']),
        ('main.ts', False, ['npx', 'ts-node']),
        ('main.go', False, ['go', 'run']),
        ('main.ps1', False, ['pwsh', '-File']),
        ('main.ps1', True, ['powershell', '-ExecutionPolicy', 'Bypass', '-File']),
        ('main.bat', True, ['cmd', '/C']),
        ('main.cmd', False, []),
    ],
)
def test_extension_strategy(tmp_path: Path, filename: str, is_windows: bool, prefix: list[str]) -> None:
    files = _write(tmp_path, {filename: 'x = 1\n'})

    plan = _plan(tmp_path, files, ['arg'], is_windows=is_windows)

    assert plan.argv == [*prefix, str(tmp_path / filename), 'arg']
    assert plan.reason == f'extension {Path(filename).suffix}'


def test_unknown_extension(tmp_path: Path) -> None:
    files = _write(tmp_path, {'data.csv': 'a,b'})

    with pytest.raises(UnknownRunStrategyError):
        _plan(tmp_path, files)
