"""
Trust gate.

Decides whether a gist may run without asking. is_trusted is a pure
function of the settings; evaluate_trust adds the lazy current-user lookup
needed by mode 'mine'.
"""

from __future__ import annotations

from gixt.exceptions import GixtError
from gixt.protocols import LoggerProtocol, NullLogger
from gixt.remote.protocol import GistApi
from gixt.schemas.settings import UserSettings


def _trusted_without_login(settings: UserSettings, owner: str | None, gist_id: str, force_yes: bool) -> bool:
    if force_yes:
        return True
    if settings.mode == 'all':
        return True
    if gist_id in settings.trusted_gists:
        return True
    return bool(owner) and owner.strip().lower() in settings.trusted_owners


def is_trusted(
    settings: UserSettings,
    owner: str | None,
    gist_id: str,
    force_yes: bool,
    current_login: str | None = None,
) -> bool:
    """
    Trust decision, first match wins.

    1. explicit override (--yes / --trust-always)
    2. mode 'all'
    3. gist id in trusted_gists
    4. owner (case-insensitive) in trusted_owners
    5. mode 'mine' and owner equals current_login (case-insensitive)
    """
    if _trusted_without_login(settings, owner, gist_id, force_yes):
        return True
    if settings.mode == 'mine' and owner and current_login:
        return owner.strip().lower() == current_login.strip().lower()
    return False


async def evaluate_trust(
    settings: UserSettings,
    owner: str | None,
    gist_id: str,
    force_yes: bool,
    api: GistApi,
    logger: LoggerProtocol | None = None,
) -> bool:
    """
    is_trusted with the current user looked up only when it can matter.

    A failed lookup counts as "not mine".
    """
    if _trusted_without_login(settings, owner, gist_id, force_yes):
        return True
    if settings.mode != 'mine' or not owner:
        return False

    logger = logger or NullLogger()
    try:
        current_login = await api.current_user()
    except GixtError as e:
        await logger.warning(f'could not determine current user for trust mode "mine": {e}')
        return False
    return is_trusted(settings, owner, gist_id, force_yes, current_login)
