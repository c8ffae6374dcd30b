"""
Terminal prompts (implements InteractionProtocol).

Prompts go to stderr. File listings (--view) and planned commands
(--dry-run, --print-cmd) are command output and go to stdout.
"""

from __future__ import annotations

from pathlib import Path

import typer

from gixt.constants import shorten
from gixt.schemas.cache import CacheManifest
from gixt.schemas.operations import CommandPlan
from gixt.types import ExecMode, TrustAnswer


class TerminalInteraction:
    """Interactive prompts on the controlling terminal."""

    def _ask(self, text: str) -> str:
        """Read one answer; end of input counts as an empty answer."""
        try:
            answer = typer.prompt(text, default='', show_default=False, err=True)
        except typer.Abort:
            return ''
        return str(answer).strip().lower()

    def confirm(self, prompt: str) -> bool:
        return self._ask(f'{prompt} [y/N]') in ('y', 'yes')

    def choose_exec_mode(self) -> ExecMode:
        typer.secho('Choose execution directory', bold=True, err=True)
        typer.echo('  [i] isolate (run from temp/cache dir; safer default)', err=True)
        typer.echo('  [c] cwd     (run in current directory; can modify your files)', err=True)
        return 'cwd' if self._ask('Choice [i/c]') in ('c', 'cwd') else 'isolate'

    def confirm_trust(self, manifest: CacheManifest) -> TrustAnswer:
        typer.secho(
            f'About to run gist {shorten(manifest.gist_id)} (owner: {manifest.owner})', bold=True, err=True
        )
        typer.echo(f'Description: {manifest.description.strip()}', err=True)
        typer.echo(f'Commit: {shorten(manifest.sha)}', err=True)
        typer.echo(f'Files: {", ".join(manifest.files)}', err=True)
        typer.secho(
            'Tip: manage trust defaults with `gixt config-trust --mode mine|all --owner <name>`.',
            fg=typer.colors.CYAN,
            err=True,
        )
        answer = self._ask('Proceed? [y/N/v]')
        if answer in ('y', 'yes'):
            return 'yes'
        if answer in ('v', 'view'):
            return 'view'
        return 'no'

    def show_files(self, manifest: CacheManifest, work_dir: Path) -> None:
        typer.secho('Viewing files (cached):', bold=True)
        for name in manifest.files:
            try:
                content = (work_dir / name).read_text(encoding='utf-8', errors='replace')
            except OSError as e:
                typer.secho(f'  {name}: [error reading: {e}]', fg=typer.colors.YELLOW)
                continue
            typer.secho(f'== {name} ==', fg=typer.colors.CYAN)
            typer.secho(content, dim=True)
            typer.echo()

    def show_command(self, plan: CommandPlan) -> None:
        typer.secho(f'Command ({plan.reason}): {plan.display()}', fg=typer.colors.CYAN)
        for key, value in sorted(plan.env.items()):
            typer.echo(f'  env {key}={value}')
