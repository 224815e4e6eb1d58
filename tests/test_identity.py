import pytest

from docql.errors import StorageError
from docql.identity import ANONYMOUS, IdentityResolver, read_credential
from tests.fixtures import TODO_SDL, seed_todos


def test_read_credential():
    assert read_credential(None) is None
    assert read_credential({}) is None
    assert read_credential({'Authorization': 'testtoken'}) == 'testtoken'
    assert read_credential({'authorization': 'Bearer testtoken'}) == 'testtoken'
    assert read_credential({'AUTHORIZATION': b'testtoken'}) == 'testtoken'
    assert read_credential({'Authorization': '   '}) is None
    assert read_credential({'X-Token': 'abc'}, 'x-token') == 'abc'


@pytest.mark.asyncio
async def test_resolves_subject_from_token(make_api):
    api = await make_api(TODO_SDL)
    seeded = await seed_todos(api)
    identity = await IdentityResolver(api.store, api.settings).resolve({'Authorization': 'testtoken'})
    assert identity.authenticated
    assert identity.subject == seeded['users'][0]
    assert identity.token == 'testtoken'


@pytest.mark.asyncio
async def test_missing_or_unknown_credential_is_anonymous(make_api):
    api = await make_api(TODO_SDL)
    await seed_todos(api)
    resolver = IdentityResolver(api.store, api.settings)
    assert await resolver.resolve({}) is ANONYMOUS
    assert await resolver.resolve({'Authorization': 'nope'}) is ANONYMOUS


@pytest.mark.asyncio
async def test_token_for_deleted_subject_is_anonymous(make_api):
    api = await make_api(TODO_SDL)
    seeded = await seed_todos(api)
    await api.store['User'].delete_one({'_id': seeded['users'][0]['_id']})
    identity = await IdentityResolver(api.store, api.settings).resolve({'Authorization': 'testtoken'})
    assert identity is ANONYMOUS


@pytest.mark.asyncio
async def test_lookup_failures_are_swallowed(make_api, monkeypatch):
    api = await make_api(TODO_SDL)
    await seed_todos(api)

    async def broken(*args, **kwargs):
        raise StorageError("connection lost")

    monkeypatch.setattr(api.store['AccessToken'], 'find_one', broken)
    identity = await IdentityResolver(api.store, api.settings).resolve({'Authorization': 'testtoken'})
    assert identity is ANONYMOUS


@pytest.mark.asyncio
async def test_schema_without_subject_type_is_anonymous(make_api):
    api = await make_api("type Note { body: String }\ntype Query { Note_find: [Note] }")
    await api.store['AccessToken'].create({'_id': 'tok', 'userId': 'someone'})
    identity = await IdentityResolver(api.store, api.settings).resolve({'Authorization': 'tok'})
    assert identity is ANONYMOUS


@pytest.mark.asyncio
@pytest.mark.parametrize('exc', [OSError("socket closed"), ConnectionRefusedError("refused"), RuntimeError("boom")])
async def test_driver_failures_are_swallowed(make_api, monkeypatch, exc):
    api = await make_api(TODO_SDL)
    await seed_todos(api)

    async def broken(*args, **kwargs):
        raise exc

    monkeypatch.setattr(api.store['AccessToken'], 'find_one', broken)
    identity = await IdentityResolver(api.store, api.settings).resolve({'Authorization': 'testtoken'})
    assert identity is ANONYMOUS


@pytest.mark.asyncio
async def test_failed_lookup_still_executes_as_anonymous(make_api, monkeypatch):
    api = await make_api(TODO_SDL)
    await seed_todos(api)

    async def broken(*args, **kwargs):
        raise OSError("socket closed")

    monkeypatch.setattr(api.store['AccessToken'], 'find_one', broken)
    res = await api.execute('{ Todo_find { description } }', headers={'Authorization': 'testtoken'})
    assert res.errors is None
    assert res.data == {'Todo_find': []}
