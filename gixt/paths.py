"""
Filesystem layout for gixt.

Config files live under the user config dir, materialized gists under the
user cache dir:

    <config>/aliases.json
    <config>/index.json
    <config>/index_descriptions.json
    <config>/settings.json
    <cache>/<gist_id>/<sha>/...
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import attrs

from gixt.config import GixtSettings
from gixt.constants import TOOL_NAME

__all__ = ['GixtPaths', 'user_cache_root', 'user_config_root']


def user_config_root() -> Path:
    """Platform config root (before the gixt subdirectory is appended)."""
    if sys.platform == 'win32':
        appdata = os.environ.get('APPDATA')
        if appdata:
            return Path(appdata)
    xdg = os.environ.get('XDG_CONFIG_HOME')
    if xdg:
        return Path(xdg)
    return Path.home() / '.config'


def user_cache_root() -> Path:
    """Platform cache root (before the gixt subdirectory is appended)."""
    if sys.platform == 'win32':
        local = os.environ.get('LOCALAPPDATA')
        if local:
            return Path(local)
    xdg = os.environ.get('XDG_CACHE_HOME')
    if xdg:
        return Path(xdg)
    return Path.home() / '.cache'


@attrs.define(frozen=True)
class GixtPaths:
    """Resolved locations of every file gixt reads or writes."""

    config_dir: Path
    cache_dir: Path

    @property
    def alias_file(self) -> Path:
        return self.config_dir / 'aliases.json'

    @property
    def index_file(self) -> Path:
        return self.config_dir / 'index.json'

    @property
    def index_desc_file(self) -> Path:
        return self.config_dir / 'index_descriptions.json'

    @property
    def settings_file(self) -> Path:
        return self.config_dir / 'settings.json'

    @classmethod
    def discover(cls, cache_override: str | None = None, settings: GixtSettings | None = None) -> GixtPaths:
        """
        Resolve config and cache directories.

        GIXT_CONFIG_DIR / GIXT_CACHE_DIR win over platform defaults. A relative
        cache_override is joined to the cache root, an absolute one replaces it.

        Args:
            cache_override: Value of --cache-dir, if any
            settings: Environment settings (loaded fresh when omitted)

        Returns:
            GixtPaths with both directories resolved (not yet created)
        """
        settings = settings or GixtSettings()

        config_dir = settings.GIXT_CONFIG_DIR or user_config_root() / TOOL_NAME
        cache_root = settings.GIXT_CACHE_DIR or user_cache_root() / TOOL_NAME

        cache_dir = cache_root
        if cache_override:
            override = Path(cache_override).expanduser()
            cache_dir = override if override.is_absolute() else cache_root / override

        return cls(config_dir=Path(config_dir), cache_dir=Path(cache_dir))

    def ensure(self) -> GixtPaths:
        """Create both directories if missing."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        return self
