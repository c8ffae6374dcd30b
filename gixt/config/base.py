"""
Environment configuration for gixt.

Settings that come from the process environment (or an explicit .env file).
Persisted user preferences live in settings.json instead, see
gixt.schemas.settings.UserSettings.
"""

from __future__ import annotations

import os
import pathlib
from typing import TypeVar

import pydantic
import pydantic_settings

T = TypeVar('T', bound='GixtSettings')


class GixtSettings(pydantic_settings.BaseSettings):
    """Environment-driven configuration shared by every command."""

    model_config = pydantic_settings.SettingsConfigDict(
        env_file_encoding='utf-8',
        case_sensitive=True,  # Fail fast on misconfiguration
        extra='ignore',  # The whole process environment is visible here
    )

    # GitHub access
    GITHUB_TOKEN: str | None = None
    GITHUB_API_URL: str = 'https://api.github.com'
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Directory overrides (otherwise platform defaults are used)
    GIXT_CONFIG_DIR: pathlib.Path | None = None
    GIXT_CACHE_DIR: pathlib.Path | None = None

    # Release feed used by check-updates
    GIXT_UPDATE_REPO: str = 'leolaurindo/gixt'

    @pydantic.field_validator('HTTP_TIMEOUT_SECONDS')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """HTTP timeout must be positive."""
        if v <= 0:
            raise ValueError('HTTP_TIMEOUT_SECONDS must be greater than 0')
        return v

    @pydantic.field_validator('GITHUB_API_URL')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip('/')


def get_settings(settings_class: type[T] = GixtSettings, env_file: str | None = None) -> T:  # type: ignore[assignment]
    """
    Factory for creating settings with dynamic .env file loading.

    LOAD_ENV_FILE environment variable specifies custom .env file path.
    When unset, loads from environment variables only.

    Args:
        settings_class: Settings class to instantiate
        env_file: Optional path to .env file (overrides LOAD_ENV_FILE)

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If specified .env file doesn't exist
    """
    env_file_path = env_file or os.getenv('LOAD_ENV_FILE')

    if not env_file_path:
        return settings_class()  # No .env file, load from environment only

    resolved_path = pathlib.Path(env_file_path).resolve()
    if not resolved_path.exists():
        raise FileNotFoundError(f'Environment file not found: {resolved_path}')

    return settings_class(_env_file=resolved_path)  # type: ignore[call-arg]
