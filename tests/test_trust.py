"""Tests for the trust gate."""

from __future__ import annotations

import asyncio

import pytest

from gixt.schemas.settings import UserSettings
from gixt.services.trust import evaluate_trust, is_trusted
from tests.conftest import FakeGistApi


@pytest.mark.parametrize(
    ('settings', 'owner', 'force_yes', 'login', 'expected'),
    [
        (UserSettings(), 'alice', True, None, True),
        (UserSettings(mode='all'), 'anyone', False, None, True),
        (UserSettings(trusted_gists={'g1'}), 'bob', False, None, True),
        (UserSettings(trusted_owners={'Alice'}), 'ALICE', False, None, True),
        (UserSettings(mode='mine'), 'Alice', False, 'alice', True),
        (UserSettings(mode='mine'), 'bob', False, 'alice', False),
        (UserSettings(mode='mine'), None, False, 'alice', False),
        (UserSettings(), 'alice', False, 'alice', False),
    ],
)
def test_is_trusted(settings: UserSettings, owner: str | None, force_yes: bool, login: str | None,
                    expected: bool) -> None:
    assert is_trusted(settings, owner, 'g1', force_yes, login) is expected


def test_mine_looks_up_current_user() -> None:
    api = FakeGistApi(login='alice')

    assert asyncio.run(evaluate_trust(UserSettings(mode='mine'), 'alice', 'g1', False, api))
    assert ('current_user', '') in api.calls


def test_current_user_not_needed_outside_mine_mode() -> None:
    api = FakeGistApi(login='alice')

    assert not asyncio.run(evaluate_trust(UserSettings(mode='never'), 'alice', 'g1', False, api))
    assert api.calls == []


def test_failed_login_lookup_means_untrusted() -> None:
    api = FakeGistApi(login=None)

    assert not asyncio.run(evaluate_trust(UserSettings(mode='mine'), 'alice', 'g1', False, api))


def test_legacy_settings_maps_are_accepted() -> None:
    settings = UserSettings.model_validate(
        {'mode': '', 'trusted_owners': {'Alice': True, 'bob': False}, 'trusted_gists': {'g1': True}, 'exec_mode': 'x'}
    )

    assert settings.mode == 'never'
    assert settings.trusted_owners == {'alice'}
    assert settings.trusted_gists == {'g1'}
    assert settings.exec_mode == 'isolate'
