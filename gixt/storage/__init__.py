"""
Local persistence for gixt.

Every store loads and saves its whole JSON file; writes go through a
filelock and an atomic replace (see json_store).
"""

from __future__ import annotations

from gixt.storage.aliases import AliasStore
from gixt.storage.descriptions import DescriptionOverrideStore
from gixt.storage.index import IndexStore
from gixt.storage.settings import SettingsStore

__all__ = [
    'AliasStore',
    'DescriptionOverrideStore',
    'IndexStore',
    'SettingsStore',
]
