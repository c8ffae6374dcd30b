"""
Platform and file-name constants shared by the resolver, materializer and planner.
"""

from __future__ import annotations

import sys

IS_WINDOWS = sys.platform == 'win32'

TOOL_NAME = 'gixt'
DEFAULT_RUN_MANIFEST = f'{TOOL_NAME}.json'
CACHE_MANIFEST_FILENAME = f'.{TOOL_NAME}-manifest.json'
DEFAULT_DETAILS = 'No description provided'

# Extensions that only differ by target shell; variants of the same logical script
SHELL_SCRIPT_EXTENSIONS = frozenset({'.sh', '.bash', '.zsh', '.bat', '.cmd', '.ps1'})
POSIX_PREFERRED_EXTENSIONS = frozenset({'.sh', '.bash', '.zsh'})
WINDOWS_PREFERRED_EXTENSIONS = frozenset({'.bat', '.cmd', '.ps1'})

# Written with the executable bit set
EXECUTABLE_EXTENSIONS = frozenset({'.sh', '.bash', '.zsh', '.py', '.rb', '.pl', '.php', '.js', '.ts'})
WINDOWS_NATIVE_EXTENSIONS = frozenset({'.exe'})

GITHUB_PAGE_SIZE = 100
DEFAULT_USER_PAGES = 2
INDEX_PAGES = 5


def preferred_extensions(is_windows: bool = IS_WINDOWS) -> frozenset[str]:
    """Shell-script extensions native to the given platform."""
    return WINDOWS_PREFERRED_EXTENSIONS if is_windows else POSIX_PREFERRED_EXTENSIONS


def executable_extensions(is_windows: bool = IS_WINDOWS) -> frozenset[str]:
    if is_windows:
        return EXECUTABLE_EXTENSIONS | WINDOWS_NATIVE_EXTENSIONS
    return EXECUTABLE_EXTENSIONS


def normalize_user_pages(value: int) -> int:
    """Non-positive page counts fall back to the default."""
    return value if value > 0 else DEFAULT_USER_PAGES


def shorten(value: str, length: int = 8) -> str:
    return value if len(value) <= length else value[:length]
