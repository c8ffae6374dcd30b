#!/usr/bin/env python3
"""
Command-line interface for gixt.

Run code straight from GitHub gists, and manage the local index, aliases,
cache and trust settings that make that convenient. Any first argument that
is not a command runs a gist:

    gixt hello-world -- --name you
"""

from __future__ import annotations

import asyncio
import re
import sys
from collections.abc import Sequence
from typing import NoReturn, get_args

import typer

from gixt import __version__
from gixt.cli.interaction import TerminalInteraction
from gixt.cli.logger import CLILogger
from gixt.config import get_settings
from gixt.constants import DEFAULT_RUN_MANIFEST, TOOL_NAME, shorten
from gixt.exceptions import GixtError, InvalidInputError, ProcessExitError
from gixt.paths import GixtPaths
from gixt.remote.client import GistClient
from gixt.schemas.operations import AbortedByUser, Failed, ListRow
from gixt.services.clone import CloneService
from gixt.services.describe import DescribeService
from gixt.services.index import IndexService
from gixt.services.manifest import ManifestOptions, ManifestService, apply_manifest_args
from gixt.services.remove import RemoveService
from gixt.services.resolver import IdentifierResolver, extract_id
from gixt.services.run import RunOptions, RunService
from gixt.services.updates import UpdateResult, check_for_updates
from gixt.storage import cache
from gixt.storage.aliases import AliasStore
from gixt.storage.settings import SettingsStore
from gixt.types import CacheMode, ExecMode, TrustMode

app = typer.Typer(
    name=TOOL_NAME,
    help='Run code directly from GitHub gists',
    add_completion=False,
    no_args_is_help=True,
    context_settings={'help_option_names': ['-h', '--help']},
)
alias_app = typer.Typer(help='Manage aliases (name -> gist id)', no_args_is_help=True)
desc_app = typer.Typer(help='Manage local description overrides')
app.add_typer(alias_app, name='alias')
app.add_typer(desc_app, name='index-description')

_DURATION_RE = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)')
_DURATION_UNITS = {'ns': 1e-9, 'us': 1e-6, 'µs': 1e-6, 'ms': 1e-3, 's': 1.0, 'm': 60.0, 'h': 3600.0}


def parse_duration(value: str) -> float:
    """
    Parse a duration such as 30s, 2m, 1h30m or 500ms into seconds.

    A bare 0 is accepted (no timeout).
    """
    text = value.strip()
    if text == '0':
        return 0.0
    pos = 0
    total = 0.0
    for match in _DURATION_RE.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if not text or pos != len(text):
        raise typer.BadParameter(f'invalid duration {value!r} (use e.g. 30s, 2m, 1h30m, 500ms)')
    return total


def _paths(cache_dir: str | None = None) -> GixtPaths:
    return GixtPaths.discover(cache_dir, get_settings()).ensure()


def _client() -> GistClient:
    return GistClient.from_settings(get_settings())


def _fail(error: Exception) -> NoReturn:
    typer.secho(f'Error: {error}', fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


def _abort(reason: str) -> NoReturn:
    typer.secho(reason, fg=typer.colors.YELLOW, err=True)
    raise typer.Exit(1)


# ---------------------------------------------------------------------------
# run / register
# ---------------------------------------------------------------------------


def forwarded_args(extra: Sequence[str]) -> list[str]:
    """Arguments after the identifier, minus one leading `--` separator."""
    args = list(extra)
    if args[:1] == ['--']:
        return args[1:]
    return args


@app.command(
    'run',
    context_settings={'allow_extra_args': True, 'ignore_unknown_options': True, 'allow_interspersed_args': False},
)
def run_command(
    ctx: typer.Context,
    identifier: str = typer.Argument(..., help='Gist id, URL, alias, name or owner/name'),
    ref: str | None = typer.Option(None, '--ref', help='Pin to a specific gist revision'),
    no_cache: bool = typer.Option(False, '--no-cache', help='Use a temporary dir instead of the cache'),
    update: bool = typer.Option(False, '--update', help='Re-download even if cached'),
    update_index: bool = typer.Option(False, '--update-index', help='Refresh the index before resolving'),
    cache_dir: str | None = typer.Option(None, '--cache-dir', help='Override the cache dir'),
    manifest: str = typer.Option(DEFAULT_RUN_MANIFEST, '--manifest', help='Run manifest file name'),
    print_cmd: bool = typer.Option(False, '--print-cmd', help='Print the command before running it'),
    dry_run: bool = typer.Option(False, '--dry-run', help='Print the command without running it'),
    view: bool = typer.Option(False, '--view', help='Show the gist files without running'),
    clear_cache: bool = typer.Option(False, '--clear-cache', help='Wipe the cache before running'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
    user_lookup: bool = typer.Option(False, '--user-lookup', '-u', help="Search the owner's gists live"),
    user_pages: int = typer.Option(2, '--user-pages', '-p', help='Pages of 100 gists for --user-lookup'),
    desc_lookup: bool = typer.Option(False, '--desc-lookup', help='Also match gist descriptions'),
    isolate: bool = typer.Option(False, '--isolate', help='Run inside the gist dir for this run'),
    cwd: bool = typer.Option(False, '--cwd', '--here', help='Run in the current dir for this run'),
    timeout: str | None = typer.Option(None, '--timeout', help='Kill the gist after e.g. 30s, 2m, 1h30m'),
    yes: bool = typer.Option(False, '--yes', '-y', help='Skip the trust prompt for this run'),
    trust_always: bool = typer.Option(False, '--trust-always', help='Trust this gist from now on'),
    trust_all: bool = typer.Option(False, '--trust-all', help='Trust every gist from now on'),
) -> None:
    """Run a gist (default command).

    gixt options go before the identifier. Everything after it is passed to
    the gist untouched, including arguments that look like gixt flags:

        gixt run --dry-run hello --verbose -p 3
    """
    seconds = parse_duration(timeout) if timeout else 0.0
    options = RunOptions(
        ref=ref,
        no_cache=no_cache,
        update=update,
        update_index=update_index,
        manifest_filename=manifest,
        print_cmd=print_cmd,
        dry_run=dry_run,
        view=view,
        clear_cache=clear_cache,
        user_lookup=user_lookup,
        user_pages=user_pages,
        desc_lookup=desc_lookup,
        isolate=isolate,
        cwd=cwd,
        timeout=seconds if seconds > 0 else None,
        yes=yes,
        trust_always=trust_always,
        trust_all=trust_all,
    )
    asyncio.run(_run_async(identifier, forwarded_args(ctx.args), options, cache_dir, verbose))


async def _run_async(
    identifier: str,
    forwarded: Sequence[str],
    options: RunOptions,
    cache_dir: str | None,
    verbose: bool,
) -> None:
    """Async implementation of run command."""
    paths = _paths(cache_dir)
    service = RunService(paths, _client(), TerminalInteraction(), CLILogger(verbose=verbose))
    outcome = await service.run(options, identifier, forwarded)

    if isinstance(outcome, Failed):
        if isinstance(outcome.error, ProcessExitError):
            raise typer.Exit(outcome.exit_code)
        _fail(outcome.error)
    if isinstance(outcome, AbortedByUser):
        _abort(outcome.reason)


@app.command('register')
def register_command(
    target: str = typer.Argument(..., help='Gist id or URL'),
    ref: str | None = typer.Option(None, '--ref', help='Pin to a specific revision when caching'),
    update: bool = typer.Option(False, '--update', help='Force re-download even if cached'),
    cache_dir: str | None = typer.Option(None, '--cache-dir', help='Override the cache dir'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Cache a gist without running it."""
    asyncio.run(_register_async(target, ref, update, cache_dir, verbose))


async def _register_async(target: str, ref: str | None, update: bool, cache_dir: str | None, verbose: bool) -> None:
    try:
        paths = _paths(cache_dir)
        service = RunService(paths, _client(), TerminalInteraction(), CLILogger(verbose=verbose))
        manifest, work_dir = await service.register(target, ref, update)
    except GixtError as e:
        _fail(e)

    typer.secho(f'✓ Cached gist {manifest.gist_id} ({shorten(manifest.sha)})', fg=typer.colors.GREEN)
    typer.echo(f'  Path: {work_dir}')
    typer.echo(f'  Files: {", ".join(manifest.files)}')


# ---------------------------------------------------------------------------
# aliases
# ---------------------------------------------------------------------------


@alias_app.command('add')
def alias_add(
    name: str = typer.Argument(..., help='Alias name'),
    target: str = typer.Argument(..., help='Gist id or URL'),
) -> None:
    """Save an alias for a gist."""
    gist_id = extract_id(target)
    if not gist_id:
        _fail(InvalidInputError(f'cannot extract a gist id from {target!r}'))
    AliasStore(_paths().alias_file).set(name, gist_id)
    typer.secho(f'alias {name} -> {gist_id} saved', fg=typer.colors.GREEN)


@alias_app.command('list')
def alias_list() -> None:
    """List aliases."""
    aliases = AliasStore(_paths().alias_file).load()
    if not aliases:
        typer.echo('no aliases defined')
        return
    width = max(len(name) for name in aliases)
    for name, gist_id in sorted(aliases.items()):
        typer.echo(f'{name.ljust(width)}  {gist_id}')


@alias_app.command('remove')
def alias_remove(name: str = typer.Argument(..., help='Alias name')) -> None:
    """Remove an alias."""
    if not AliasStore(_paths().alias_file).remove(name):
        _fail(InvalidInputError(f'alias {name} not found'))
    typer.secho(f'alias {name} removed', fg=typer.colors.GREEN)


# ---------------------------------------------------------------------------
# index
# ---------------------------------------------------------------------------


@app.command('update-index')
def update_index_command(verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output')) -> None:
    """Refresh every indexed gist (missing gists are dropped)."""
    asyncio.run(_update_index_async(verbose))


async def _update_index_async(verbose: bool) -> None:
    paths = _paths()
    try:
        result = await IndexService(paths, _client(), CLILogger(verbose=verbose)).update_index()
    except GixtError as e:
        _fail(e)
    if result.removed:
        typer.secho(f'removed {result.removed} missing gists from index', fg=typer.colors.YELLOW)
    typer.secho(f'stored {result.stored} gists in index {paths.index_file}', fg=typer.colors.GREEN)


@app.command('index-mine')
def index_mine_command(verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output')) -> None:
    """Index your own gists (requires GITHUB_TOKEN)."""
    asyncio.run(_index_mine_async(verbose))


async def _index_mine_async(verbose: bool) -> None:
    paths = _paths()
    try:
        total = await IndexService(paths, _client(), CLILogger(verbose=verbose)).index_mine()
    except GixtError as e:
        _fail(e)
    typer.secho(f'stored {total} gists in index {paths.index_file}', fg=typer.colors.GREEN)


@app.command('index-owner')
def index_owner_command(
    login: str | None = typer.Argument(None, help='Owner login'),
    owner: str | None = typer.Option(None, '--owner', help='Owner login whose gists to index'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Index another user's public gists."""
    target = owner or login
    if not target:
        _fail(InvalidInputError('usage: gixt index-owner --owner <login>'))
    asyncio.run(_index_owner_async(target, verbose))


async def _index_owner_async(owner: str, verbose: bool) -> None:
    try:
        result = await IndexService(_paths(), _client(), CLILogger(verbose=verbose)).index_owner(owner)
    except GixtError as e:
        _fail(e)
    typer.secho(
        f'indexed {result.fetched} gists for owner {result.owner} '
        f'({result.added} new, total {result.total} entries)',
        fg=typer.colors.GREEN,
    )


@app.command('clear-index')
def clear_index_command() -> None:
    """Delete the index file (cache untouched)."""
    paths = _paths()
    IndexService(paths, _client()).clear_index()
    typer.secho(f'removed index file {paths.index_file} (cache untouched)', fg=typer.colors.GREEN)


@app.command('clean-cache')
def clean_cache_command(
    cache_dir: str | None = typer.Option(None, '--cache-dir', help='Override the cache dir'),
) -> None:
    """Delete the whole cache directory."""
    paths = _paths(cache_dir)
    typer.echo(f'removing cache at {paths.cache_dir}...')
    cache.clear(paths.cache_dir)
    typer.secho('cache cleared', fg=typer.colors.GREEN)


@app.command('list')
def list_command(
    cache_only: bool = typer.Option(False, '--cache', '-c', help='Show cached gists only'),
    mine: bool = typer.Option(False, '--mine', help='Only gists owned by the authenticated user'),
) -> None:
    """List indexed and cached gists."""
    asyncio.run(_list_async(cache_only, mine))


async def _list_async(cache_only: bool, mine: bool) -> None:
    paths = _paths()
    api = _client()
    owner = None
    try:
        if mine:
            owner = await api.current_user()
    except GixtError as e:
        _fail(e)

    rows = IndexService(paths, api).gather_list_rows(cache_only=cache_only, owner=owner)
    if not rows:
        typer.echo('no gists indexed or cached (try `gixt index-mine` or `gixt register <id>`)')
        return
    _print_table(rows)


def _print_table(rows: Sequence[ListRow]) -> None:
    header = ('DESCRIPTION', 'OWNER', 'FILES', 'ALIASES', 'SOURCE', 'ID')
    table = [
        (
            row.description or '-',
            row.owner or '-',
            ', '.join(row.files) or '-',
            ', '.join(row.aliases) or '-',
            row.source,
            row.id,
        )
        for row in rows
    ]
    widths = [min(max(len(r[i]) for r in [header, *table]), 60) for i in range(len(header))]

    def fmt(cells: Sequence[str]) -> str:
        clipped = [c if len(c) <= w else c[: w - 3] + '...' for c, w in zip(cells, widths, strict=True)]
        return '  '.join(c.ljust(w) for c, w in zip(clipped, widths, strict=True)).rstrip()

    typer.secho(fmt(header), bold=True)
    for cells in table:
        typer.echo(fmt(cells))


# ---------------------------------------------------------------------------
# descriptions
# ---------------------------------------------------------------------------


@app.command('describe')
def describe_command(target: str = typer.Argument(..., help='Gist id, URL, alias, name or owner/name')) -> None:
    """Show what is known about a gist."""
    asyncio.run(_describe_async(target))


async def _describe_async(target: str) -> None:
    try:
        info = await DescribeService(_paths(), _client()).describe(target)
    except GixtError as e:
        _fail(e)

    typer.echo(f'ID: {info.id}')
    if info.owner:
        typer.echo(f'Owner: {info.owner}')
    if info.manifest_version:
        typer.echo(f'Manifest version: {info.manifest_version}')
    typer.echo(f'Manifest details: {info.manifest_details}')
    typer.echo(f'Description: {info.description}')


@app.command('set-description')
def set_description_command(
    target: str = typer.Argument(..., help='Gist id, URL, alias or name'),
    description: list[str] = typer.Argument(..., help='New description'),
) -> None:
    """Change the description of a gist you own."""
    asyncio.run(_set_description_async(target, ' '.join(description)))


async def _set_description_async(target: str, description: str) -> None:
    try:
        gist_id = await DescribeService(_paths(), _client()).set_description(target, description)
    except GixtError as e:
        _fail(e)
    typer.secho(f'updated description of gist {gist_id}', fg=typer.colors.GREEN)


@desc_app.callback(invoke_without_command=True)
def desc_default(ctx: typer.Context) -> None:
    """Manage local description overrides (default: list)."""
    if ctx.invoked_subcommand is None:
        desc_list()


@desc_app.command('list')
def desc_list() -> None:
    """List description overrides."""
    overrides = DescribeService(_paths(), _client()).list_overrides()
    if not overrides:
        typer.echo('no description overrides set')
        return
    for gist_id, description in overrides.items():
        typer.echo(f'{gist_id} -> {description}')


@desc_app.command('add')
def desc_add(
    target: str = typer.Argument(..., help='Gist id, alias or name'),
    description: list[str] = typer.Argument(..., help='Local description'),
) -> None:
    """Set a local description override."""
    asyncio.run(_desc_add_async(target, ' '.join(description)))


async def _desc_add_async(target: str, description: str) -> None:
    try:
        gist_id = await DescribeService(_paths(), _client()).add_override(target, description)
    except GixtError as e:
        _fail(e)
    typer.secho(f'set description override for {gist_id}', fg=typer.colors.GREEN)


@desc_app.command('remove')
def desc_remove(target: str = typer.Argument(..., help='Gist id, alias or name')) -> None:
    """Remove a local description override."""
    asyncio.run(_desc_remove_async(target))


async def _desc_remove_async(target: str) -> None:
    try:
        gist_id = await DescribeService(_paths(), _client()).remove_override(target)
    except GixtError as e:
        _fail(e)
    typer.secho(f'removed description override for {gist_id}', fg=typer.colors.GREEN)


# ---------------------------------------------------------------------------
# configuration
# ---------------------------------------------------------------------------


@app.command('config-trust')
def config_trust_command(
    mode: str | None = typer.Option(None, '--mode', help='Trust mode: never|mine|all'),
    owners: list[str] | None = typer.Option(None, '--owner', '--trust-owner', help='Trust this owner'),
    remove_owners: list[str] | None = typer.Option(None, '--remove-owner', help='Stop trusting this owner'),
    remove_gists: list[str] | None = typer.Option(None, '--remove-gist', help='Stop trusting this gist id'),
    clear_owners: bool = typer.Option(False, '--clear-owners', help='Clear trusted owners'),
    clear_gists: bool = typer.Option(False, '--clear-gists', help='Clear per-gist trust'),
    reset: bool = typer.Option(False, '--reset', help='Clear all trust and return to mode=never'),
    show: bool = typer.Option(False, '--show', help='Show the current trust configuration'),
) -> None:
    """Configure the trust policy."""
    if mode is not None and mode.lower() not in get_args(TrustMode):
        _fail(InvalidInputError(f'unknown mode {mode} (expected never|mine|all)'))

    store = SettingsStore(_paths().settings_file)
    settings = store.load()
    if reset:
        settings.mode = 'never'
        settings.trusted_owners = set()
        settings.trusted_gists = set()
        typer.secho('cleared stored trust decisions (mode=never).', fg=typer.colors.YELLOW)
    if clear_owners:
        settings.trusted_owners = set()
    if clear_gists:
        settings.trusted_gists = set()
    settings.trusted_owners |= {o.strip().lower() for o in owners or () if o.strip()}
    settings.trusted_owners -= {o.strip().lower() for o in remove_owners or ()}
    settings.trusted_gists -= set(remove_gists or ())
    if mode is not None:
        settings.mode = mode.lower()  # type: ignore[assignment]
    store.save(settings)

    changed = mode is not None or owners or remove_owners or remove_gists or clear_owners or clear_gists or reset
    if show or changed:
        typer.secho('Trust configuration:', bold=True)
        typer.echo(f'  mode: {settings.mode}')
        typer.echo(f'  trusted owners: {", ".join(sorted(settings.trusted_owners)) or "(none)"}')
        gists = f'{len(settings.trusted_gists)} stored' if settings.trusted_gists else '(none)'
        typer.echo(f'  trusted gists: {gists}')


@app.command('config-cache')
def config_cache_command(
    mode: str | None = typer.Option(None, '--mode', help='cache|never'),
    show: bool = typer.Option(False, '--show', help='Show the current cache mode'),
) -> None:
    """Configure whether gists are cached between runs."""
    if mode is not None and mode.lower() not in get_args(CacheMode):
        _fail(InvalidInputError(f'unknown cache mode {mode} (expected cache|never)'))

    store = SettingsStore(_paths().settings_file)
    settings = store.load()
    if mode is not None:
        settings.cache_mode = mode.lower()  # type: ignore[assignment]
        store.save(settings)
    if show or mode is not None:
        typer.echo(f'Cache mode: {settings.cache_mode}')


@app.command('config-exec')
def config_exec_command(
    mode: str | None = typer.Option(None, '--mode', help='isolate|cwd'),
    show: bool = typer.Option(False, '--show', help='Show the current execution mode'),
) -> None:
    """Configure the directory gists run in."""
    if mode is not None and mode.lower() not in get_args(ExecMode):
        _fail(InvalidInputError(f'unknown execution mode {mode} (expected isolate|cwd)'))

    store = SettingsStore(_paths().settings_file)
    settings = store.load()
    if mode is not None:
        settings.exec_mode = mode.lower()  # type: ignore[assignment]
        store.save(settings)
    if show or mode is not None:
        typer.echo(f'Execution mode: {settings.effective_exec_mode}')


# ---------------------------------------------------------------------------
# manifest
# ---------------------------------------------------------------------------


@app.command('manifest')
def manifest_command(
    args: list[str] | None = typer.Argument(None, help='Optional key value pairs, e.g. version 0.0.2'),
    name: str | None = typer.Option(None, '--name', help=f'Manifest file name (default {DEFAULT_RUN_MANIFEST})'),
    create: bool = typer.Option(False, '--create', help='Create a new manifest'),
    edit: bool = typer.Option(False, '--edit', help='Edit an existing manifest'),
    upload: bool = typer.Option(False, '--upload', help='Upload the manifest to a gist you own'),
    view: bool = typer.Option(False, '--view', help="Show a remote gist's manifest"),
    gist: str | None = typer.Option(None, '--gist', help='Target gist for --upload/--view'),
    run: str | None = typer.Option(None, '--run', help='Command to run'),
    env: list[str] | None = typer.Option(None, '--env', help='KEY=VAL (repeatable)'),
    details: str | None = typer.Option(None, '--details', help='Free-form description'),
    version: str | None = typer.Option(None, '--version', help='Manifest version label'),
    force: bool = typer.Option(False, '--force', help='Overwrite without asking'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Create, edit, upload or view a run manifest.

        gixt manifest --create --run "python app.py" --env DEBUG=1
        gixt manifest --edit version 0.0.2
        gixt manifest --upload --gist my-tool
        gixt manifest --view --gist owner/my-tool
    """
    options = ManifestOptions(
        name=name,
        create=create,
        edit=edit,
        upload=upload,
        view=view,
        gist=gist,
        run=run,
        env=tuple(env or ()),
        details=details,
        version=version,
        force=force,
    )
    asyncio.run(_manifest_async(args or [], options, verbose))


async def _manifest_async(args: Sequence[str], options: ManifestOptions, verbose: bool) -> None:
    try:
        options = apply_manifest_args(args, options)
        service = ManifestService(_paths(), _client(), TerminalInteraction(), CLILogger(verbose=verbose))
        result = await service.execute(options)
    except GixtError as e:
        _fail(e)

    if result.aborted:
        _abort('aborted')
    if result.written_to:
        typer.secho(f'✓ Wrote {result.written_to}', fg=typer.colors.GREEN)
    if result.uploaded_to:
        typer.secho(f'✓ Uploaded manifest to gist {result.uploaded_to}', fg=typer.colors.GREEN)
    if options.view and result.manifest is not None:
        typer.echo(f'Run: {result.manifest.run}')
        typer.echo(f'Details: {result.manifest.details}')
        if result.manifest.version:
            typer.echo(f'Version: {result.manifest.version}')
        for key, value in sorted(result.manifest.env.items()):
            typer.echo(f'Env: {key}={value}')


# ---------------------------------------------------------------------------
# clone / fork
# ---------------------------------------------------------------------------


@app.command('clone')
def clone_command(
    target: str = typer.Argument(..., help='Gist id, URL, alias, name or owner/name'),
    directory: str | None = typer.Option(None, '--dir', help='Destination directory (default: gist id)'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Clone a gist repository with the GitHub CLI (gh)."""
    asyncio.run(_clone_async(target, directory, verbose))


async def _clone_async(target: str, directory: str | None, verbose: bool) -> None:
    try:
        service = CloneService(_paths(), _client(), CLILogger(verbose=verbose))
        gist_id, destination = await service.clone(target, directory)
    except GixtError as e:
        _fail(e)
    typer.secho(f'cloned gist {shorten(gist_id)} into {destination}', fg=typer.colors.GREEN)


@app.command('fork')
def fork_command(
    target: str = typer.Argument(..., help='Gist id, URL, alias, name or owner/name'),
    public: bool = typer.Option(False, '--public', help='Make the new gist public'),
    description: str | None = typer.Option(None, '--description', help='Description for the new gist'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Copy a gist into a new gist of your own (requires GITHUB_TOKEN)."""
    asyncio.run(_fork_async(target, public, description, verbose))


async def _fork_async(target: str, public: bool, description: str | None, verbose: bool) -> None:
    try:
        service = CloneService(_paths(), _client(), CLILogger(verbose=verbose))
        source_id, created = await service.fork(target, public, description)
    except GixtError as e:
        _fail(e)
    typer.secho(
        f'forked gist {shorten(source_id)} -> {shorten(created.id)} ({created.html_url})', fg=typer.colors.GREEN
    )


# ---------------------------------------------------------------------------
# remove
# ---------------------------------------------------------------------------


@app.command('remove')
def remove_command(
    cache_targets: list[str] | None = typer.Option(None, '--cache', help='Remove cached revisions of this gist'),
    index_targets: list[str] | None = typer.Option(None, '--index', help='Remove this gist from the index'),
    both_targets: list[str] | None = typer.Option(None, '--cache-index', help='Remove from index and cache'),
    owners: list[str] | None = typer.Option(None, '--owner', help='Remove every gist of this owner'),
) -> None:
    """Remove gists from the index and/or the cache."""
    asyncio.run(_remove_async(cache_targets or [], index_targets or [], both_targets or [], owners or []))


async def _remove_async(
    cache_targets: Sequence[str],
    index_targets: Sequence[str],
    both_targets: Sequence[str],
    owners: Sequence[str],
) -> None:
    paths = _paths()
    try:
        service = RemoveService(paths, IdentifierResolver(paths))
        result = await service.remove(cache_targets, index_targets, both_targets, owners)
    except GixtError as e:
        _fail(e)

    if index_targets or both_targets or owners:
        if result.index_removed:
            typer.secho(f'removed {result.index_removed} entries from index', fg=typer.colors.GREEN)
        else:
            typer.echo('no matching entries removed from index')
    if cache_targets or both_targets or owners:
        if result.cache_removed:
            typer.secho(f'removed cache for {result.cache_removed} gist(s)', fg=typer.colors.GREEN)
        else:
            typer.echo('no matching cache entries removed')


# ---------------------------------------------------------------------------
# updates
# ---------------------------------------------------------------------------


@app.command('check-updates')
def check_updates_command(
    output_json: bool = typer.Option(False, '--json', help='Machine-readable output'),
) -> None:
    """Check GitHub for a newer gixt release."""
    asyncio.run(_check_updates_async(output_json))


async def _check_updates_async(output_json: bool) -> None:
    settings = get_settings()
    try:
        result = await check_for_updates(_client(), settings.GIXT_UPDATE_REPO)
    except GixtError as e:
        if output_json:
            typer.echo(UpdateResult(current=__version__, error=str(e)).model_dump_json(indent=2))
        _fail(e)

    if output_json:
        typer.echo(result.model_dump_json(indent=2, exclude_none=True))
        return

    typer.echo(f'current version: {result.current}')
    typer.echo(f'latest version:  {result.latest}')
    if not result.update_available:
        typer.secho('gixt is up to date.', fg=typer.colors.GREEN)
        return

    typer.secho('update available!', fg=typer.colors.GREEN)
    typer.echo(f'release page: {result.release_url}')
    if result.download_url:
        typer.echo(f'direct download: {result.download_url} ({result.asset_name})')
    typer.echo('Suggested commands (copy/paste):')
    for command in result.suggested_commands:
        typer.secho(f'  {command}', fg=typer.colors.CYAN)


@app.command('version')
def version_command() -> None:
    """Print the installed gixt version."""
    typer.echo(f'{TOOL_NAME} {__version__}')


def _command_names() -> set[str]:
    names = {cmd.name for cmd in app.registered_commands if cmd.name}
    names |= {group.name for group in app.registered_groups if group.name}
    return names


def route_default_command(argv: Sequence[str]) -> list[str]:
    """Dispatch anything that is not a command (or a top-level help flag) to `run`."""
    args = list(argv)
    if not args or args[0] in ('--help', '-h'):
        return args
    if args[0] == '--version':
        return ['version']
    if args[0] in _command_names():
        return args
    return ['run', *args]


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI."""
    args = route_default_command(sys.argv[1:] if argv is None else argv)
    app(args=args, prog_name=TOOL_NAME)


if __name__ == '__main__':
    main()
