"""
Shared exceptions for gixt.

Exception Hierarchy:
    GixtError (base)
    ├── InvalidInputError (bad user/gist input - never retried)
    │   ├── InvalidFileNameError (unsafe gist file name)
    │   ├── DuplicateFileNameError (two names sanitize to one path)
    │   ├── RunManifestError (malformed run manifest)
    │   └── UnknownRunStrategyError (nothing knows how to run the file)
    ├── ResolutionError (identifier lookup failures)
    │   ├── AmbiguousIdentifierError (several gists match)
    │   └── UnresolvedIdentifierError (nothing matches)
    ├── GistNotFoundError (remote 404)
    ├── NetworkFailureError (any other transport/API failure)
    ├── VersionUnavailableError (gist has no history and no ref was given)
    ├── ExecutionError (running the gist)
    │   ├── ExecutionCancelledError (timeout expired)
    │   ├── ProcessExitError (child exited non-zero)
    │   └── ProcessLaunchError (interpreter missing / not executable)
    └── OwnershipError (write operation on someone else's gist)

A user declining a prompt is not an error: the run service reports it as an
AbortedByUser outcome instead.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gixt.schemas.index import IndexEntry


class GixtError(Exception):
    """Base exception for all gixt errors."""


class InvalidInputError(GixtError):
    """Base exception for malformed input (file names, manifests, flags)."""


class InvalidFileNameError(InvalidInputError):
    """Raised when a gist file name is empty, absolute, or escapes the work dir."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f'invalid file name {name!r}: {reason}')


class DuplicateFileNameError(InvalidInputError):
    """Raised when two gist file names sanitize to the same path."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'duplicate file after sanitization: {name}')


class RunManifestError(InvalidInputError):
    """Raised when a run manifest cannot be parsed or fails validation."""


class UnknownRunStrategyError(InvalidInputError):
    """Raised when no strategy can produce a command for the chosen file."""

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f'cannot determine how to run {filename} (unknown extension)')


class ResolutionError(GixtError):
    """Base exception for identifier resolution failures."""


class AmbiguousIdentifierError(ResolutionError):
    """Raised when an identifier matches more than one gist."""

    def __init__(self, identifier: str, candidates: Sequence[IndexEntry]) -> None:
        self.identifier = identifier
        self.candidates = list(candidates)
        lines = '\n  '.join(
            f'{c.id} (owner: {c.owner or "?"}, {c.description or "no description"})' for c in self.candidates
        )
        super().__init__(
            f"'{identifier}' matches {len(self.candidates)} gists:\n  {lines}\n\n"
            f'Disambiguate with owner/name, a full filename like name.ext, or an alias.'
        )


class UnresolvedIdentifierError(ResolutionError):
    """Raised when no resolution strategy produced a gist id."""

    def __init__(self, identifier: str, strategies: Sequence[str]) -> None:
        self.identifier = identifier
        self.strategies = list(strategies)
        super().__init__(
            f'could not resolve {identifier!r} (tried: {", ".join(self.strategies)}). '
            f'Try `gixt index-mine`, `gixt index-owner <login>`, or owner/name with -u.'
        )


class GistNotFoundError(GixtError):
    """Raised when the hosting API reports that a gist does not exist (404)."""

    def __init__(self, gist_id: str) -> None:
        self.gist_id = gist_id
        super().__init__(f'gist not found: {gist_id}')


class NetworkFailureError(GixtError):
    """Raised for any transport or API failure other than a 404."""


class VersionUnavailableError(GixtError):
    """Raised when neither the gist history nor --ref gives a version."""

    def __init__(self, gist_id: str) -> None:
        self.gist_id = gist_id
        super().__init__(f'could not determine version for gist {gist_id}')


class ExecutionError(GixtError):
    """Base exception for failures while running the gist command."""


class ExecutionCancelledError(ExecutionError):
    """Raised when the run deadline expires and the child is killed."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f'execution cancelled after {timeout:g}s timeout')


class ProcessExitError(ExecutionError):
    """Raised when the gist command exits with a non-zero status."""

    def __init__(self, exit_code: int) -> None:
        self.exit_code = exit_code
        super().__init__(f'command exited with status {exit_code}')


class ProcessLaunchError(ExecutionError):
    """Raised when the command could not be started at all."""


class OwnershipError(GixtError):
    """Raised when modifying a gist that the current user does not own."""
