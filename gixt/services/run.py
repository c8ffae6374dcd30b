"""
Execution orchestrator.

Runs the full pipeline for `gixt run`: resolve, fetch, pick a version,
prepare a work dir, materialize, (view), trust, plan, (dry-run), execute.
Every path ends in an explicit RunOutcome; the user declining a prompt is
AbortedByUser, not an exception.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Sequence
from contextlib import ExitStack
from datetime import UTC, datetime
from pathlib import Path

import attrs

from gixt.constants import DEFAULT_RUN_MANIFEST, IS_WINDOWS, normalize_user_pages, shorten
from gixt.exceptions import GixtError, InvalidInputError, ProcessExitError, VersionUnavailableError
from gixt.paths import GixtPaths
from gixt.protocols import InteractionProtocol, LoggerProtocol, NullLogger
from gixt.remote.protocol import GistApi
from gixt.schemas.cache import CacheManifest
from gixt.schemas.gist import Gist
from gixt.schemas.operations import AbortedByUser, Completed, Failed, GistIdentity, RunOutcome
from gixt.schemas.settings import UserSettings
from gixt.services.index import IndexService
from gixt.services.materializer import FileMaterializer
from gixt.services.planner import CommandPlanner
from gixt.services.process import ProcessRunner
from gixt.services.resolver import IdentifierResolver, extract_id
from gixt.services.trust import evaluate_trust
from gixt.storage import cache
from gixt.storage.aliases import AliasStore
from gixt.storage.settings import SettingsStore
from gixt.types import ExecMode

__all__ = ['RunOptions', 'RunService', 'decide_exec_mode', 'resolve_user_args']


@attrs.define(frozen=True)
class RunOptions:
    """Per-invocation flags of `gixt run`."""

    ref: str | None = None
    no_cache: bool = False
    update: bool = False
    update_index: bool = False
    manifest_filename: str = DEFAULT_RUN_MANIFEST
    print_cmd: bool = False
    dry_run: bool = False
    view: bool = False
    clear_cache: bool = False
    user_lookup: bool = False
    user_pages: int = 2
    desc_lookup: bool = False
    isolate: bool = False
    cwd: bool = False
    timeout: float | None = None  # Seconds, child process only
    yes: bool = False
    trust_always: bool = False
    trust_all: bool = False


def decide_exec_mode(stored: ExecMode | None, force_isolate: bool, force_cwd: bool) -> ExecMode:
    """Per-run flags beat the stored preference; nothing stored means isolate."""
    if force_isolate and force_cwd:
        raise InvalidInputError('cannot use --isolate and --cwd together')
    if force_isolate:
        return 'isolate'
    if force_cwd:
        return 'cwd'
    return stored or 'isolate'


def resolve_user_args(args: Sequence[str], original_cwd: Path) -> list[str]:
    """Relative arguments naming existing paths (from the user's cwd) become absolute."""
    resolved = []
    for arg in args:
        if not arg or os.path.isabs(arg):
            resolved.append(arg)
            continue
        candidate = os.path.normpath(original_cwd / arg)
        resolved.append(candidate if os.path.exists(candidate) else arg)
    return resolved


class RunService:
    """Service for fetching, caching and executing gists."""

    def __init__(
        self,
        paths: GixtPaths,
        api: GistApi,
        interaction: InteractionProtocol,
        logger: LoggerProtocol | None = None,
        runner: ProcessRunner | None = None,
        is_windows: bool = IS_WINDOWS,
        original_cwd: Path | None = None,
    ) -> None:
        self.paths = paths
        self.api = api
        self.interaction = interaction
        self.logger = logger or NullLogger()
        self.runner = runner or ProcessRunner()
        self.is_windows = is_windows
        self.original_cwd = original_cwd or Path.cwd()

        self.settings_store = SettingsStore(paths.settings_file)
        self.resolver = IdentifierResolver(paths, api, is_windows, self.logger)
        self.materializer = FileMaterializer(api, is_windows, self.logger)
        self.planner = CommandPlanner(is_windows)

    async def run(self, options: RunOptions, identifier: str, forwarded: Sequence[str] = ()) -> RunOutcome:
        """
        Resolve, materialize and execute a gist.

        Args:
            options: Flags for this invocation
            identifier: Alias, id, URL, name or owner/name
            forwarded: Arguments passed through to the gist

        Returns:
            Completed, AbortedByUser, or Failed (never raises GixtError)
        """
        try:
            return await self._run(options, identifier, forwarded)
        except GixtError as e:
            return Failed(e)

    async def _run(self, options: RunOptions, identifier: str, forwarded: Sequence[str]) -> RunOutcome:
        if options.isolate and options.cwd:
            raise InvalidInputError('cannot use --isolate and --cwd together')

        self.paths.ensure()
        settings = self.settings_store.load()

        if options.trust_all:
            settings.mode = 'all'
            self.settings_store.save(settings)
            await self.logger.warning('all gists trusted (prompt disabled globally)')

        if options.clear_cache:
            await self.logger.warning(f'clearing cache at {self.paths.cache_dir}')
            cache.clear(self.paths.cache_dir)
            self.paths.ensure()

        aliases = AliasStore(self.paths.alias_file).load()

        if options.update_index:
            refreshed = await IndexService(self.paths, self.api, self.logger).update_index()
            await self.logger.info(f'index refreshed: {refreshed.stored} stored, {refreshed.removed} removed')

        identity = await self.resolver.resolve(
            identifier,
            aliases,
            live_lookup=options.user_lookup,
            description_lookup=options.desc_lookup,
            max_pages=normalize_user_pages(options.user_pages),
        )
        await self.logger.info(f'fetching gist {identity.id}')
        gist = await self.api.fetch(identity.id, options.ref)
        sha = gist.latest_version() or options.ref
        if not sha:
            raise VersionUnavailableError(identity.id)
        owner = identity.owner_hint or gist.owner_login

        temporary = options.no_cache or settings.cache_mode == 'never'
        with ExitStack() as stack:
            work_dir = self._prepare_work_dir(stack, identity.id, sha, temporary)

            self._maybe_prompt_exec_mode(settings, identity, options)
            exec_mode = decide_exec_mode(settings.exec_mode, options.isolate, options.cwd)
            exec_dir = work_dir if exec_mode == 'isolate' else self.original_cwd
            await self.logger.info(f'executing in dir: {exec_dir} (mode={exec_mode})')

            result = await self.materializer.materialize(gist.files, work_dir, force_update=options.update)
            manifest = _cache_manifest(gist, sha, owner, result.filenames)
            if not (temporary or result.reused_from_cache):
                cache.save_manifest(work_dir, manifest)
            await self.logger.info(f'working dir: {work_dir} (cache reused: {result.reused_from_cache})')

            if options.view:
                self.interaction.show_files(manifest, work_dir)
                return Completed(work_dir=work_dir, viewed=True)

            trusted = await evaluate_trust(
                settings, owner, identity.id, options.yes or options.trust_always, self.api, self.logger
            )
            if not trusted:
                answer = self.interaction.confirm_trust(manifest)
                if answer == 'view':
                    self.interaction.show_files(manifest, work_dir)
                    return AbortedByUser('aborted after view')
                if answer != 'yes':
                    return AbortedByUser('aborted by user')

            if options.trust_always:
                settings.trusted_gists.add(identity.id)
                self.settings_store.save(settings)
                await self.logger.warning(f'trusted gist {identity.id} permanently')

            plan = self.planner.plan(
                work_dir,
                options.manifest_filename,
                result.filenames,
                resolve_user_args(forwarded, self.original_cwd),
                exec_dir,
            )
            if options.print_cmd or options.dry_run:
                self.interaction.show_command(plan)
            if options.dry_run:
                return Completed(plan=plan, work_dir=work_dir, dry_run=True)

            exit_code = await self.runner.run(plan.argv, exec_dir, plan.env, options.timeout)
            if exit_code != 0:
                raise ProcessExitError(exit_code)
            return Completed(exit_code=exit_code, plan=plan, work_dir=work_dir)

    async def register(self, target: str, ref: str | None = None, update: bool = False) -> tuple[CacheManifest, Path]:
        """
        Cache a gist revision without running it.

        Returns:
            (cache manifest, persistent work dir)
        """
        gist_id = extract_id(target)
        if not gist_id:
            raise InvalidInputError('usage: gixt register <gist-id|url> [--ref <sha>]')

        self.paths.ensure()
        await self.logger.info(f'fetching gist {gist_id}')
        gist = await self.api.fetch(gist_id, ref)
        sha = gist.latest_version() or ref
        if not sha:
            raise VersionUnavailableError(gist_id)

        work_dir = cache.cache_dir(self.paths.cache_dir, gist_id, sha)
        result = await self.materializer.materialize(gist.files, work_dir, force_update=update)
        existing = cache.load_manifest(work_dir) if result.reused_from_cache else None
        if existing is not None:
            manifest = existing
        else:
            manifest = _cache_manifest(gist, sha, gist.owner_login, result.filenames)
            cache.save_manifest(work_dir, manifest)
        await self.logger.info(f'cached gist {shorten(gist_id)} ({sha}) at {work_dir}')
        return manifest, work_dir

    def _prepare_work_dir(self, stack: ExitStack, gist_id: str, sha: str, temporary: bool) -> Path:
        """Temp dir under the cache root (removed on exit) or the persistent revision dir."""
        if temporary:
            tmp = stack.enter_context(
                tempfile.TemporaryDirectory(prefix='gixt-', dir=self.paths.cache_dir, ignore_cleanup_errors=True)
            )
            return Path(tmp)

        work_dir = cache.cache_dir(self.paths.cache_dir, gist_id, sha)
        work_dir.mkdir(parents=True, exist_ok=True)
        return work_dir

    def _maybe_prompt_exec_mode(self, settings: UserSettings, identity: GistIdentity, options: RunOptions) -> None:
        """Ask once for the exec-mode preference, for gists not picked from the index."""
        if settings.exec_mode is not None:
            return
        if identity.from_index and not options.user_lookup:
            return
        settings.exec_mode = 'isolate' if options.yes else self.interaction.choose_exec_mode()
        self.settings_store.save(settings)


def _cache_manifest(gist: Gist, sha: str, owner: str, filenames: Sequence[str]) -> CacheManifest:
    return CacheManifest(
        gist_id=gist.id,
        sha=sha,
        description=gist.description or '',
        owner=owner,
        files=list(filenames),
        source=gist.html_url,
        created_at=datetime.now(UTC),
    )
