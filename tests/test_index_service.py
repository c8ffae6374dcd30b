"""Tests for index maintenance, the list view, descriptions and removal."""

from __future__ import annotations

import asyncio

import pytest

from gixt.exceptions import InvalidInputError, NetworkFailureError, OwnershipError
from gixt.paths import GixtPaths
from gixt.services.describe import DescribeService
from gixt.services.index import IndexService
from gixt.services.remove import RemoveService
from gixt.services.resolver import IdentifierResolver
from gixt.services.run import RunService
from gixt.storage.aliases import AliasStore
from gixt.storage.descriptions import DescriptionOverrideStore
from gixt.storage.index import IndexStore
from tests.conftest import FakeGistApi, ScriptedInteraction, make_entry, make_gist


def test_update_index_drops_missing_gists(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'a.py': ''}, description='  fresh  ')])
    IndexStore(paths.index_file).save([make_entry('aaaa0001', ['old.py']), make_entry('aaaa0002', ['gone.py'])])

    result = asyncio.run(IndexService(paths, api).update_index())

    assert (result.stored, result.removed) == (1, 1)
    [entry] = IndexStore(paths.index_file).load().entries
    assert entry.filenames == ['a.py']
    assert entry.description == 'fresh'


def test_update_index_aborts_on_other_errors(paths: GixtPaths) -> None:
    class BrokenApi(FakeGistApi):
        async def fetch(self, gist_id: str, ref: str | None = None):  # noqa: ANN201
            raise NetworkFailureError('boom')

    IndexStore(paths.index_file).save([make_entry('aaaa0001', ['a.py'])])

    with pytest.raises(NetworkFailureError):
        asyncio.run(IndexService(paths, BrokenApi()).update_index())
    assert IndexStore(paths.index_file).load().entries[0].filenames == ['a.py']


def test_index_mine_replaces_own_entries(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'new.py': ''}, owner='alice')], login='alice')
    IndexStore(paths.index_file).save(
        [make_entry('aaaa0009', ['deleted.py'], owner='Alice'), make_entry('bbbb0001', ['b.py'], owner='bob')]
    )

    total = asyncio.run(IndexService(paths, api).index_mine())

    assert total == 2
    assert {e.id for e in IndexStore(paths.index_file).load().entries} == {'aaaa0001', 'bbbb0001'}


def test_index_owner_only_adds(paths: GixtPaths) -> None:
    api = FakeGistApi(
        [make_gist('bbbb0001', {'x.py': ''}, owner='bob'), make_gist('bbbb0002', {'y.py': ''}, owner='bob')]
    )
    IndexStore(paths.index_file).save([make_entry('bbbb0001', ['kept.py'], owner='bob')])

    result = asyncio.run(IndexService(paths, api).index_owner('bob'))

    assert (result.fetched, result.added, result.total) == (2, 1, 2)
    entries = {e.id: e for e in IndexStore(paths.index_file).load().entries}
    assert entries['bbbb0001'].filenames == ['kept.py']


def test_list_rows_merge_index_and_cache(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('cccc0001', {'cached.py': ''}, owner='carol', description='from cache')])
    IndexStore(paths.index_file).save(
        [make_entry('cccc0001', ['old.py'], owner='carol'), make_entry('aaaa0001', ['a.py'], description='idx')]
    )
    DescriptionOverrideStore(paths.index_desc_file).set('aaaa0001', 'overridden')
    AliasStore(paths.alias_file).set('c', 'cccc0001')
    asyncio.run(RunService(paths, api, ScriptedInteraction()).register('cccc0001'))

    rows = IndexService(paths, api).gather_list_rows()

    by_id = {r.id: r for r in rows}
    assert by_id['cccc0001'].source == 'cache+index'
    assert list(by_id['cccc0001'].files) == ['cached.py']
    assert by_id['cccc0001'].description == 'from cache'
    assert list(by_id['cccc0001'].aliases) == ['c']
    assert by_id['aaaa0001'].description == 'overridden'
    assert by_id['aaaa0001'].source == 'index'

    assert [r.id for r in IndexService(paths, api).gather_list_rows(cache_only=True)] == ['cccc0001']
    assert [r.id for r in IndexService(paths, api).gather_list_rows(owner='ALICE')] == ['aaaa0001']


def test_describe_prefers_local_sources(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': '', 'gixt.json': '{"run": "x", "version": "3"}'})])
    asyncio.run(RunService(paths, api, ScriptedInteraction()).register('aaaa0001'))
    IndexStore(paths.index_file).save([make_entry('aaaa0001', ['main.py'], description='indexed')])
    api.calls.clear()

    info = asyncio.run(DescribeService(paths, api).describe('aaaa0001'))

    assert info.description == 'indexed'
    assert info.owner == 'alice'
    assert info.manifest_version == '3'
    assert api.calls == []


def test_describe_falls_back_to_live_fetch(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': ''}, description=None)])

    info = asyncio.run(DescribeService(paths, api).describe('aaaa0001'))

    assert info.description == '(no description)'
    assert info.owner == 'alice'


def test_set_description_requires_ownership(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': ''}, owner='bob')], login='alice')

    with pytest.raises(OwnershipError):
        asyncio.run(DescribeService(paths, api).set_description('aaaa0001', 'new'))


def test_set_description_refreshes_index(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('aaaa0001', {'main.py': ''})], login='alice')

    asyncio.run(DescribeService(paths, api).set_description('aaaa0001', '  better  '))

    assert api.gists['aaaa0001'].description == 'better'
    assert IndexStore(paths.index_file).load().entries[0].description == 'better'


def test_override_add_and_remove(paths: GixtPaths) -> None:
    IndexStore(paths.index_file).save([make_entry('aaaa0001', ['tool.py'])])
    service = DescribeService(paths, FakeGistApi())

    assert asyncio.run(service.add_override('tool', 'My tool')) == 'aaaa0001'
    assert service.list_overrides() == {'aaaa0001': 'My tool'}
    asyncio.run(service.remove_override('aaaa0001'))
    assert service.list_overrides() == {}

    with pytest.raises(InvalidInputError):
        asyncio.run(service.add_override('tool', '   '))


def test_remove_by_owner_and_name(paths: GixtPaths) -> None:
    api = FakeGistApi([make_gist('bbbb0001', {'b.py': ''}, owner='bob')])
    asyncio.run(RunService(paths, api, ScriptedInteraction()).register('bbbb0001'))
    IndexStore(paths.index_file).save(
        [make_entry('aaaa0001', ['tool.py']), make_entry('bbbb0001', ['b.py'], owner='bob')]
    )
    service = RemoveService(paths, IdentifierResolver(paths))

    result = asyncio.run(service.remove(index_targets=['tool'], owners=['BOB']))

    assert (result.index_removed, result.cache_removed) == (2, 1)
    assert IndexStore(paths.index_file).load().entries == []
    assert not (paths.cache_dir / 'bbbb0001').exists()


def test_remove_needs_a_target(paths: GixtPaths) -> None:
    with pytest.raises(InvalidInputError):
        asyncio.run(RemoveService(paths, IdentifierResolver(paths)).remove())
