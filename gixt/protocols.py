"""
Shared protocols for gixt services.

This module contains Protocol definitions used across multiple services.
Having a single source of truth for protocols prevents type incompatibility
issues when the same protocol is defined in multiple modules.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from gixt.types import ExecMode, TrustAnswer

if TYPE_CHECKING:
    from gixt.schemas.cache import CacheManifest
    from gixt.schemas.operations import CommandPlan


class LoggerProtocol(Protocol):
    """
    Protocol for async logger - enables services to work with any logging implementation.

    Implementations:
    - CLILogger (cli/logger.py): Logs to stderr with optional verbose mode
    - NullLogger (below): No-op implementation for when logging is optional
    """

    async def info(self, message: str) -> None: ...
    async def warning(self, message: str) -> None: ...
    async def error(self, message: str) -> None: ...


class NullLogger:
    """
    No-op logger implementation for when logging is optional.

    Use this when a function requires a LoggerProtocol but the caller
    doesn't need logging output.
    """

    async def info(self, message: str) -> None:
        pass

    async def warning(self, message: str) -> None:
        pass

    async def error(self, message: str) -> None:
        pass


class InteractionProtocol(Protocol):
    """
    Blocking user interaction used by the run pipeline.

    Implementations:
    - TerminalInteraction (cli/interaction.py): typer prompts on stdin/stderr
    - ScriptedInteraction (tests/conftest.py): canned answers for tests
    """

    def confirm(self, prompt: str) -> bool: ...
    def choose_exec_mode(self) -> ExecMode: ...
    def confirm_trust(self, manifest: CacheManifest) -> TrustAnswer: ...
    def show_files(self, manifest: CacheManifest, work_dir: Path) -> None: ...
    def show_command(self, plan: CommandPlan) -> None: ...
