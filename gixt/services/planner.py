"""
Command planning.

Decides the argv (plus environment overlay) that runs a materialized gist.
Strategies are tried in order and the first one that produces a plan wins:

1. ManifestStrategy  - gist ships a run manifest (gixt.json)
2. ShebangStrategy   - main file starts with #!
3. ExtensionStrategy - interpreter chosen by the main file's extension

Forwarded arguments are appended verbatim in every case.
"""

from __future__ import annotations

import posixpath
import re
import shlex
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

import attrs

from gixt.constants import IS_WINDOWS, SHELL_SCRIPT_EXTENSIONS, TOOL_NAME, preferred_extensions
from gixt.exceptions import InvalidInputError, UnknownRunStrategyError
from gixt.schemas.manifest import load_run_manifest
from gixt.schemas.operations import CommandPlan

__all__ = [
    'CommandPlanner',
    'ExtensionStrategy',
    'ManifestStrategy',
    'PlanRequest',
    'RunStrategy',
    'ShebangStrategy',
    'choose_platform_specific',
    'rebase_run',
    'select_main_file',
    'shell_command',
]

# Interpreters that do not depend on the host platform
EXTENSION_COMMANDS: dict[str, tuple[str, ...]] = {
    '.py': ('python',),
    '.js': ('node',),
    '.ts': ('npx', 'ts-node'),
    '.sh': ('sh',),
    '.bash': ('bash',),
    '.zsh': ('zsh',),
    '.go': ('go', 'run'),
    '.rb': ('ruby',),
    '.pl': ('perl',),
    '.php': ('php',),
}

_TOKEN_RE = re.compile(r'\S+')


def _split_name(filename: str) -> tuple[str, str]:
    """(lowercased base name without extension, lowercased extension)."""
    base, ext = posixpath.splitext(posixpath.basename(filename).lower())
    return base, ext


def choose_platform_specific(files: Sequence[str], is_windows: bool = IS_WINDOWS) -> str | None:
    """
    Pick the host-native variant among shell-script siblings.

    Files are grouped by base name in first-seen order. The first group whose
    extensions are all shell-script extensions and which has exactly one
    host-preferred file wins.
    """
    preferred = preferred_extensions(is_windows)
    groups: dict[str, list[str]] = {}
    for f in files:
        groups.setdefault(_split_name(f)[0], []).append(f)

    for members in groups.values():
        exts = [_split_name(f)[1] for f in members]
        if not all(ext in SHELL_SCRIPT_EXTENSIONS for ext in exts):
            continue
        hits = [f for f, ext in zip(members, exts, strict=True) if ext in preferred]
        if len(hits) == 1:
            return hits[0]
    return None


def select_main_file(files: Sequence[str], is_windows: bool = IS_WINDOWS) -> str:
    """
    Choose the file to run: main.*, then index.*, then anything.

    Within each pass a host-native shell-script variant beats the first file.
    """
    if not files:
        raise InvalidInputError('no files in gist to run')

    for prefix in ('main.', 'index.'):
        group = [f for f in files if posixpath.basename(f).lower().startswith(prefix)]
        chosen = choose_platform_specific(group, is_windows)
        if chosen:
            return chosen
        if group:
            return group[0]

    return choose_platform_specific(files, is_windows) or files[0]


def _quote(path: str, is_windows: bool) -> str:
    if is_windows:
        return f'"{path}"' if ' ' in path else path
    return shlex.quote(path)


def rebase_run(run: str, work_dir: Path, is_windows: bool = IS_WINDOWS) -> str:
    """
    Make the first relative file token of a run command absolute.

    Only the first token that is not a flag, not absolute, and names an
    existing file under work_dir is rewritten; the rest of the string is
    left byte-for-byte intact. Tokens escaping work_dir (../x) are skipped.
    """
    root = work_dir.resolve()
    for match in _TOKEN_RE.finditer(run):
        token = match.group()
        if token.startswith('-') or Path(token).is_absolute():
            continue
        candidate = work_dir / token
        if candidate.is_file() and candidate.resolve().is_relative_to(root):
            return run[: match.start()] + _quote(str(candidate), is_windows) + run[match.end() :]
    return run


def shell_command(run: str, forwarded_args: Sequence[str], is_windows: bool = IS_WINDOWS) -> list[str]:
    """Wrap a run string in the platform shell, forwarding arguments."""
    if is_windows:
        return ['cmd', '/C', run, *forwarded_args]
    if forwarded_args:
        # $0 is the tool name so that forwarded args land in "$@"
        return ['sh', '-c', f'{run} "$@"', TOOL_NAME, *forwarded_args]
    return ['sh', '-c', run]


@attrs.define(frozen=True)
class PlanRequest:
    """Everything a strategy may look at."""

    work_dir: Path
    manifest_filename: str | None
    filenames: Sequence[str]
    forwarded_args: Sequence[str]
    exec_dir: Path
    is_windows: bool = IS_WINDOWS

    @property
    def main_file(self) -> str:
        return select_main_file(self.filenames, self.is_windows)

    @property
    def main_path(self) -> Path:
        return self.work_dir / self.main_file


class RunStrategy(Protocol):
    def plan(self, request: PlanRequest) -> CommandPlan | None: ...


class ManifestStrategy:
    """Run whatever the gist's run manifest says."""

    def plan(self, request: PlanRequest) -> CommandPlan | None:
        if not request.manifest_filename:
            return None
        path = request.work_dir / request.manifest_filename
        if not path.is_file():
            return None

        manifest = load_run_manifest(path)
        run = manifest.run
        if request.exec_dir != request.work_dir:
            run = rebase_run(run, request.work_dir, request.is_windows)

        return CommandPlan(
            argv=shell_command(run, request.forwarded_args, request.is_windows),
            env=dict(manifest.env),
            reason='manifest',
        )


class ShebangStrategy:
    """Honor a #! line in the main file."""

    def plan(self, request: PlanRequest) -> CommandPlan | None:
        path = request.main_path
        try:
            with path.open('rb') as f:
                first_line = f.readline().decode('utf-8', errors='replace')
        except OSError:
            return None

        first_line = first_line.removeprefix('\ufeff')
        if not first_line.startswith('#!'):
            return None
        tokens = first_line[2:].split()
        if not tokens:
            return None

        return CommandPlan(argv=[*tokens, str(path), *request.forwarded_args], reason='shebang')


class ExtensionStrategy:
    """Map the main file's extension to an interpreter."""

    def plan(self, request: PlanRequest) -> CommandPlan | None:
        path = request.main_path
        ext = path.suffix.lower()
        target = str(path)

        if ext in EXTENSION_COMMANDS:
            prefix: list[str] = [*EXTENSION_COMMANDS[ext], target]
        elif ext == '.ps1':
            if request.is_windows:
                prefix = ['powershell', '-ExecutionPolicy', 'Bypass', '-File', target]
            else:
                prefix = ['pwsh', '-File', target]
        elif ext in ('.bat', '.cmd'):
            prefix = ['cmd', '/C', target] if request.is_windows else [target]
        else:
            return None

        return CommandPlan(argv=[*prefix, *request.forwarded_args], reason=f'extension {ext}')


class CommandPlanner:
    """Runs the strategy chain over a materialized work dir."""

    def __init__(self, is_windows: bool = IS_WINDOWS, strategies: Sequence[RunStrategy] | None = None) -> None:
        self.is_windows = is_windows
        self.strategies: Sequence[RunStrategy] = strategies or (
            ManifestStrategy(),
            ShebangStrategy(),
            ExtensionStrategy(),
        )

    def plan(
        self,
        work_dir: Path,
        manifest_filename: str | None,
        filenames: Sequence[str],
        forwarded_args: Sequence[str],
        exec_dir: Path,
    ) -> CommandPlan:
        """
        Produce the command for a materialized gist.

        Raises:
            RunManifestError: The run manifest exists but is invalid
            InvalidInputError: No manifest and no files
            UnknownRunStrategyError: No strategy recognizes the main file
        """
        request = PlanRequest(
            work_dir=work_dir,
            manifest_filename=manifest_filename,
            filenames=list(filenames),
            forwarded_args=list(forwarded_args),
            exec_dir=exec_dir,
            is_windows=self.is_windows,
        )
        for strategy in self.strategies:
            plan = strategy.plan(request)
            if plan is not None:
                return plan
        raise UnknownRunStrategyError(request.main_file)
