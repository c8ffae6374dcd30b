"""
Child process execution.

Runs the planned command with inherited stdio and an environment overlay.
The optional deadline covers only the child process.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from gixt.exceptions import ExecutionCancelledError, ProcessLaunchError


class ProcessRunner:
    """Executes commands on the running asyncio loop."""

    async def run(
        self,
        argv: Sequence[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> int:
        """
        Run a command to completion.

        Args:
            argv: Command and arguments
            cwd: Working directory for the child
            env: Variables layered over the current environment
            timeout: Seconds before the child is killed (None = no limit)

        Returns:
            The child's exit code

        Raises:
            ProcessLaunchError: Executable missing or not executable
            ExecutionCancelledError: Timeout expired (child killed)
        """
        if not argv:
            raise ProcessLaunchError('empty command')

        child_env = dict(os.environ)
        if env:
            child_env.update(env)

        try:
            process = await asyncio.create_subprocess_exec(*argv, cwd=cwd, env=child_env)
        except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
            raise ProcessLaunchError(f'cannot start {argv[0]}: {e.strerror or e}') from e

        try:
            return await asyncio.wait_for(process.wait(), timeout=timeout)
        except TimeoutError:
            process.kill()
            await process.wait()
            raise ExecutionCancelledError(timeout or 0) from None
