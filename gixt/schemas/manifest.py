"""
Run manifest model (gixt.json by default).

A gist can ship a small JSON file telling gixt exactly how to run it:

    {
      "run": "python app.py --fast",
      "env": {"APP_MODE": "demo"},
      "details": "Prints a greeting",
      "version": "1.2.0"
    }

Unknown keys are rejected so that typos fail loudly.
"""

from __future__ import annotations

import json
from pathlib import Path

import pydantic
from pydantic import Field, field_validator, model_validator

from gixt.base_model import StrictModel
from gixt.constants import DEFAULT_DETAILS
from gixt.exceptions import RunManifestError

__all__ = [
    'MAX_DETAILS_LENGTH',
    'MAX_ENV_KEY_LENGTH',
    'MAX_RUN_LENGTH',
    'MAX_VERSION_LENGTH',
    'RunManifest',
    'dump_run_manifest',
    'load_run_manifest',
    'load_run_manifest_bytes',
]

MAX_RUN_LENGTH = 4096
MAX_ENV_KEY_LENGTH = 256
MAX_DETAILS_LENGTH = 4096
MAX_VERSION_LENGTH = 256


class RunManifest(StrictModel):
    """Validated run manifest."""

    run: str
    env: dict[str, str] = Field(default_factory=dict)
    details: str = DEFAULT_DETAILS
    version: str = ''

    @field_validator('env', mode='before')
    @classmethod
    def null_env(cls, v: object) -> object:
        return {} if v is None else v

    @field_validator('details', 'version', mode='before')
    @classmethod
    def null_text(cls, v: object) -> object:
        return '' if v is None else v

    @field_validator('details')
    @classmethod
    def default_details(cls, v: str) -> str:
        return v if v.strip() else DEFAULT_DETAILS

    @model_validator(mode='after')
    def check_limits(self) -> RunManifest:
        run = self.run.strip()
        if not run:
            raise ValueError('run manifest has empty run field')
        if '\r' in self.run or '\n' in self.run:
            raise ValueError('run manifest run field must not contain newlines')
        if len(run) > MAX_RUN_LENGTH:
            raise ValueError('run manifest run field too long')
        for key in self.env:
            if not key.strip():
                raise ValueError('run manifest env contains empty key')
            if len(key) > MAX_ENV_KEY_LENGTH:
                raise ValueError(f'run manifest env key too long: {key}')
            if '\r' in key or '\n' in key:
                raise ValueError(f'run manifest env key contains newline: {key!r}')
        if len(self.details.strip()) > MAX_DETAILS_LENGTH:
            raise ValueError('run manifest details too long')
        if len(self.version.strip()) > MAX_VERSION_LENGTH:
            raise ValueError('run manifest version too long')
        return self


def load_run_manifest_bytes(data: bytes | str) -> RunManifest:
    """
    Parse and validate manifest JSON.

    Raises:
        RunManifestError: On malformed JSON, unknown fields, or limit violations
    """
    try:
        raw = json.loads(data)
    except json.JSONDecodeError as e:
        raise RunManifestError(f'parse run manifest: {e}') from e
    if not isinstance(raw, dict):
        raise RunManifestError('parse run manifest: top-level value must be an object')
    try:
        return RunManifest.model_validate(raw)
    except pydantic.ValidationError as e:
        raise RunManifestError(f'invalid run manifest: {_first_error(e)}') from e


def load_run_manifest(path: Path) -> RunManifest:
    """Read and validate a manifest file."""
    return load_run_manifest_bytes(path.read_bytes())


def dump_run_manifest(manifest: RunManifest) -> str:
    """Serialize for writing or uploading (empty version omitted)."""
    data = manifest.model_dump(mode='json')
    if not data['version']:
        del data['version']
    return json.dumps(data, indent=2)


def _first_error(error: pydantic.ValidationError) -> str:
    first = error.errors()[0]
    location = '.'.join(str(part) for part in first['loc'])
    message = first['msg'].removeprefix('Value error, ')
    return f'{location}: {message}' if location else message
