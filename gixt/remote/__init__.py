"""GitHub access for gixt."""

from __future__ import annotations

from gixt.remote.client import GistClient
from gixt.remote.protocol import GistApi

__all__ = ['GistApi', 'GistClient']
