"""
Release update check.

Compares the latest GitHub release of gixt with the installed version and
suggests the commands that would install the newer release into the
interpreter gixt is running from.
"""

from __future__ import annotations

import platform
import shlex
import sys
from collections.abc import Sequence

import packaging.version

from gixt import __version__
from gixt.base_model import StrictModel
from gixt.constants import IS_WINDOWS
from gixt.remote.protocol import GistApi
from gixt.schemas.gist import Release, ReleaseAsset

__all__ = [
    'UpdateResult',
    'build_update_commands',
    'check_for_updates',
    'compare_versions',
    'select_asset',
    'trim_version',
]

DEV_VERSION = 'dev'

# platform.machine() value -> names seen in wheel tags and archive names
ARCH_ALIASES: dict[str, tuple[str, ...]] = {
    'x86_64': ('x86_64', 'amd64', 'x64'),
    'amd64': ('x86_64', 'amd64', 'x64'),
    'arm64': ('arm64', 'aarch64'),
    'aarch64': ('arm64', 'aarch64'),
}

SYSTEM_ALIASES: dict[str, tuple[str, ...]] = {
    'linux': ('linux', 'manylinux', 'musllinux'),
    'darwin': ('darwin', 'macos', 'macosx'),
    'windows': ('windows', 'win'),
}


class UpdateResult(StrictModel):
    """Outcome of check-updates (also its --json shape)."""

    current: str
    latest: str = ''
    update_available: bool = False
    release_url: str = ''
    download_url: str | None = None
    asset_name: str | None = None
    interpreter: str = ''
    suggested_commands: Sequence[str] = ()
    error: str | None = None


def trim_version(value: str) -> str:
    return value.strip().removeprefix('v')


def _parse(value: str) -> packaging.version.Version:
    """Parse a version, keeping only the numeric prefix of each part if it is not PEP 440."""
    text = trim_version(value)
    try:
        return packaging.version.Version(text)
    except packaging.version.InvalidVersion:
        parts = []
        for part in text.split('.'):
            digits = ''
            for ch in part:
                if not ch.isdigit():
                    break
                digits += ch
            parts.append(digits or '0')
        return packaging.version.Version('.'.join(parts) or '0')


def compare_versions(a: str, b: str) -> int:
    """Returns 1 if a > b, -1 if a < b, 0 if equal."""
    va, vb = _parse(a), _parse(b)
    if va > vb:
        return 1
    if va < vb:
        return -1
    return 0


def _is_universal_wheel(name: str) -> bool:
    return name.endswith('.whl') and name.removesuffix('.whl').endswith('-any')


def select_asset(
    assets: Sequence[ReleaseAsset],
    system: str | None = None,
    machine: str | None = None,
) -> ReleaseAsset | None:
    """
    Pick the release asset for this host.

    A pure-Python wheel fits everywhere; otherwise the asset name must mention
    both the host system and the host architecture (or one of their aliases).
    """
    system = (system or platform.system()).lower()
    machine = (machine or platform.machine()).lower()
    systems = SYSTEM_ALIASES.get(system, (system,))
    arches = ARCH_ALIASES.get(machine, (machine,))

    for asset in assets:
        if _is_universal_wheel(asset.name.lower()):
            return asset
    for asset in assets:
        name = asset.name.lower()
        if any(s in name for s in systems) and any(a in name for a in arches):
            return asset
    return None


def _quote(value: str, is_windows: bool) -> str:
    if is_windows:
        return f'"{value}"'
    return shlex.quote(value)


def build_update_commands(
    release: Release,
    asset: ReleaseAsset | None,
    repo: str,
    interpreter: str = sys.executable,
    is_windows: bool = IS_WINDOWS,
) -> list[str]:
    """pip commands installing the release into the given interpreter."""
    pip = f'{_quote(interpreter, is_windows)} -m pip install --upgrade'
    if asset is not None:
        return [f'{pip} {_quote(asset.browser_download_url, is_windows)}']

    source = f'git+https://github.com/{repo}@{release.tag_name}'
    commands = [f'{pip} {_quote(source, is_windows)}']
    if release.html_url:
        commands.append(f'Release notes: {release.html_url}')
    return commands


async def check_for_updates(api: GistApi, repo: str, current: str = __version__) -> UpdateResult:
    """
    Look up the latest release of repo and compare it with current.

    Raises:
        NetworkFailureError: The release could not be fetched
    """
    current = current.strip() or DEV_VERSION
    release = await api.latest_release(repo)
    latest = trim_version(release.tag_name)
    available = current == DEV_VERSION or compare_versions(latest, current) > 0

    result = UpdateResult(
        current=current,
        latest=latest,
        update_available=available,
        release_url=release.html_url,
        interpreter=sys.executable,
    )
    if not available:
        return result

    asset = select_asset(release.assets)
    return result.model_copy(
        update={
            'download_url': asset.browser_download_url if asset else None,
            'asset_name': asset.name if asset else None,
            'suggested_commands': build_update_commands(release, asset, repo),
        }
    )
