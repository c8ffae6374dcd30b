"""
Run manifest authoring.

Backs `gixt manifest`: create or edit a local gixt.json, upload it into a
gist you own, or view the manifest a remote gist ships.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path, PurePosixPath
from typing import Any

import attrs
import pydantic

from gixt.base_model import StrictModel
from gixt.constants import DEFAULT_RUN_MANIFEST, shorten
from gixt.exceptions import InvalidInputError, NetworkFailureError, OwnershipError, RunManifestError
from gixt.paths import GixtPaths
from gixt.protocols import InteractionProtocol, LoggerProtocol, NullLogger
from gixt.remote.protocol import GistApi
from gixt.schemas.manifest import RunManifest, dump_run_manifest, load_run_manifest, load_run_manifest_bytes
from gixt.services.index import IndexService
from gixt.services.resolver import IdentifierResolver
from gixt.storage.aliases import AliasStore

__all__ = [
    'ManifestOptions',
    'ManifestResult',
    'ManifestService',
    'apply_manifest_args',
    'parse_env',
]

MANIFEST_ARG_KEYS = ('version', 'run', 'details', 'name', 'env')


@attrs.define(frozen=True)
class ManifestOptions:
    """Flags of `gixt manifest`."""

    name: str | None = None
    create: bool = False
    edit: bool = False
    upload: bool = False
    view: bool = False
    gist: str | None = None
    run: str | None = None
    env: tuple[str, ...] = ()
    details: str | None = None
    version: str | None = None
    force: bool = False

    @property
    def filename(self) -> str:
        return self.name or DEFAULT_RUN_MANIFEST


class ManifestResult(StrictModel):
    """What `gixt manifest` did."""

    manifest: RunManifest | None = None
    written_to: str | None = None
    uploaded_to: str | None = None  # Gist id
    aborted: bool = False


def parse_env(values: Sequence[str], base: Mapping[str, str] | None = None) -> dict[str, str]:
    """
    Merge KEY=VAL pairs into base.

    Entries without '=' or with an empty key are ignored; the value is kept
    verbatim (it may itself contain '=').
    """
    env = dict(base or {})
    for value in values:
        key, sep, val = value.partition('=')
        key = key.strip()
        if not sep or not key:
            continue
        env[key] = val
    return env


def apply_manifest_args(args: Sequence[str], options: ManifestOptions) -> ManifestOptions:
    """
    Apply positional `key value` overrides.

        gixt manifest --edit version 0.0.1
        gixt manifest --create run "python app.py"
        gixt manifest --edit env KEY=VAL env OTHER=VAL

    Raises:
        InvalidInputError: Unknown key or missing value
    """
    changes: dict[str, Any] = {}
    env = list(options.env)
    for i in range(0, len(args), 2):
        key = args[i].lower()
        if i + 1 >= len(args):
            raise InvalidInputError(f'missing value for {key!r} (use --{key} <value>)')
        value = args[i + 1]
        if key == 'env':
            env.append(value)
        elif key in MANIFEST_ARG_KEYS:
            changes[key] = value
        else:
            raise InvalidInputError(
                f'unknown manifest argument {key!r} (supported: {", ".join(MANIFEST_ARG_KEYS)})'
            )
    return attrs.evolve(options, env=tuple(env), **changes)


class ManifestService:
    """Service for creating, editing, uploading and viewing run manifests."""

    def __init__(
        self,
        paths: GixtPaths,
        api: GistApi,
        interaction: InteractionProtocol,
        logger: LoggerProtocol | None = None,
        cwd: Path | None = None,
    ) -> None:
        self.paths = paths
        self.api = api
        self.interaction = interaction
        self.logger = logger or NullLogger()
        self.cwd = cwd or Path.cwd()
        self.resolver = IdentifierResolver(paths, api, logger=self.logger)

    async def execute(self, options: ManifestOptions) -> ManifestResult:
        """
        Dispatch on --create/--edit/--upload/--view.

        Raises:
            InvalidInputError: Conflicting or missing flags, missing local file
            RunManifestError: The resulting manifest is invalid
            OwnershipError: Uploading to someone else's gist
        """
        target_path = Path(options.filename)
        if not target_path.is_absolute():
            target_path = self.cwd / target_path

        if not (options.create or options.edit or options.upload):
            if options.view and options.gist:
                return ManifestResult(manifest=await self.fetch_remote(options.gist, options.filename))
            raise InvalidInputError(
                'usage: gixt manifest [--create|--edit|--upload] [--name <file>] '
                '[--run ... --env KEY=VAL ... --details ... --version ...] [--gist <id|name>]'
            )
        if options.view:
            raise InvalidInputError('--view cannot be combined with --create/--edit/--upload')
        if options.create and options.edit:
            raise InvalidInputError('choose either --create or --edit, not both')

        exists = target_path.is_file()
        base: RunManifest | None = None

        if exists and not options.create and not options.edit:
            base = load_run_manifest(target_path)  # Upload of the on-disk manifest
        if options.edit:
            if exists:
                base = load_run_manifest(target_path)
            elif options.upload and options.gist:
                base = await self.fetch_remote(options.gist, options.filename)
            elif not options.force:
                raise InvalidInputError(
                    f'manifest {target_path} does not exist (use --create or --force to write a new one)'
                )
        if options.upload and base is None and not (options.create or options.edit):
            raise InvalidInputError(f'manifest {target_path} does not exist (use --create or --edit)')

        manifest = _apply_overrides(base, options)
        result = ManifestResult(manifest=manifest)

        if (options.create or options.edit) and not options.upload:
            if exists and not options.force:
                if not self.interaction.confirm(f'{target_path} exists. Overwrite?'):
                    return result.model_copy(update={'aborted': True})
            target_path.write_text(dump_run_manifest(manifest) + '\n', encoding='utf-8')
            await self.logger.info(f'wrote manifest to {target_path}')
            result = result.model_copy(update={'written_to': str(target_path)})

        if options.upload:
            uploaded = await self.upload(manifest, options.filename, options.gist)
            if uploaded is None:
                return result.model_copy(update={'aborted': True})
            result = result.model_copy(update={'uploaded_to': uploaded})

        return result

    async def upload(self, manifest: RunManifest, filename: str, target: str | None) -> str | None:
        """
        Write the manifest into a gist owned by the current user.

        Returns:
            The gist id, or None if the user declined
        """
        if not target:
            raise InvalidInputError('upload requires --gist <id|name|owner/name>')
        base_name = PurePosixPath(filename.replace('\\', '/')).name

        aliases = AliasStore(self.paths.alias_file).load()
        identity = await self.resolver.resolve(target, aliases, description_lookup=True)
        current_user = await self.api.current_user()
        gist = await self.api.fetch(identity.id)
        owner = gist.owner_login.strip()
        if not owner or owner.lower() != current_user.lower():
            raise OwnershipError(f'gist {identity.id} is not owned by {current_user}')

        prompt = (
            f'Upload manifest to gist {shorten(identity.id)} (owner {current_user})? '
            f'This will overwrite {base_name} if it exists in the gist.'
        )
        if not self.interaction.confirm(prompt):
            return None

        updated = await self.api.update_files(identity.id, {base_name: dump_run_manifest(manifest)})
        await IndexService(self.paths, self.api, self.logger).refresh_index_and_cache(updated, force_update=True)
        await self.logger.info(f'uploaded {base_name} to gist {identity.id}')
        return identity.id

    async def fetch_remote(self, target: str, manifest_name: str) -> RunManifest:
        """Load the run manifest shipped in a remote gist."""
        aliases = AliasStore(self.paths.alias_file).load()
        identity = await self.resolver.resolve(target, aliases, description_lookup=True)
        gist = await self.api.fetch(identity.id)

        want = PurePosixPath(manifest_name.replace('\\', '/')).name.lower()
        for name, info in gist.files.items():
            if PurePosixPath(name).name.lower() != want:
                continue
            if info.needs_download:
                if not info.raw_url:
                    raise NetworkFailureError(f'download manifest {manifest_name}: no raw_url')
                return load_run_manifest_bytes(await self.api.fetch_raw(info.raw_url))
            return load_run_manifest_bytes(info.content or '')

        raise InvalidInputError(f'gist {identity.id} does not contain {manifest_name}')


def _apply_overrides(base: RunManifest | None, options: ManifestOptions) -> RunManifest:
    fields: dict[str, Any] = (
        base.model_dump() if base is not None else {'run': '', 'env': {}, 'details': '', 'version': ''}
    )
    if options.run:
        fields['run'] = options.run
    if options.env:
        fields['env'] = parse_env(options.env, fields['env'])
    if options.details:
        fields['details'] = options.details
    if options.version:
        fields['version'] = options.version
    try:
        return RunManifest.model_validate(fields)
    except pydantic.ValidationError as e:
        message = e.errors()[0]['msg'].removeprefix('Value error, ')
        raise RunManifestError(message) from e
