import pytest

from docql.core.sdl import parse_schema
from docql.core.storage_schema import synthesize_storage_schemas
from docql.errors import DocumentValidationError, SchemaError, StorageError
from docql.store import OPERATOR_REGISTRY, register_operator
from tests.fixtures import PERSON_SDL


@pytest.fixture(scope="function")
async def people(store):
    for schema in synthesize_storage_schemas(parse_schema(PERSON_SDL)).values():
        store.register(schema)
    await store.drop_all()
    await store.create_all()
    return store['Person']


@pytest.mark.asyncio
async def test_create_assigns_unique_ids(people):
    a = await people.create({'name': 'Val', 'age': 31})
    b = await people.create({'name': 'Val', 'age': 31})
    assert a['_id'] and b['_id'] and a['_id'] != b['_id']
    assert a['age'] == 31.0


@pytest.mark.asyncio
async def test_create_keeps_explicit_id(people):
    doc = await people.create({'_id': 'fixed-id', 'name': 'Val', 'age': 31})
    assert doc['_id'] == 'fixed-id'
    assert (await people.find_one({'_id': 'fixed-id'}))['name'] == 'Val'


@pytest.mark.asyncio
async def test_missing_required_path_fails_before_insert(people):
    with pytest.raises(DocumentValidationError) as exc:
        await people.create({'name': 'X'})
    assert exc.value.errors == {'age': 'Path `age` is required.'}
    assert 'Person validation failed' in str(exc.value)
    assert await people.find({}) == []


@pytest.mark.asyncio
async def test_cast_failure_is_a_validation_error(people):
    with pytest.raises(DocumentValidationError, match="Cast to Number failed"):
        await people.create({'name': 'X', 'age': 'old'})


@pytest.mark.asyncio
async def test_unknown_paths_are_dropped(people):
    doc = await people.create({'name': 'Val', 'age': 31, 'nickname': 'V'})
    assert 'nickname' not in doc


@pytest.mark.asyncio
async def test_find_with_operators(people):
    await people.create([
        {'name': 'Val', 'age': 31},
        {'name': 'Ann', 'age': 45},
        {'name': 'Bob', 'age': 20},
    ])
    def names(docs):
        return sorted(d["name"] for d in docs)

    assert names(await people.find({'age': {'$gt': 30}})) == ['Ann', 'Val']
    assert names(await people.find({'age': {'$gt': 30, '$lt': 40}})) == ['Val']
    assert names(await people.find({'age': {'$lte': 31}})) == ['Bob', 'Val']
    assert names(await people.find({'name': {'$in': ['Ann', 'Bob']}})) == ['Ann', 'Bob']
    assert names(await people.find({'name': {'$nin': ['Ann']}})) == ['Bob', 'Val']
    assert names(await people.find({'name': {'$ne': 'Val'}})) == ['Ann', 'Bob']
    assert names(await people.find({'name': 'Val'})) == ['Val']
    assert await people.find({'name': {'$in': []}}) == []
    assert len(await people.find()) == 3


@pytest.mark.asyncio
async def test_unknown_operator_rejected(people):
    with pytest.raises(StorageError, match="Unknown filter operator"):
        await people.find({'name': {'$regex': '^V'}})


@pytest.mark.asyncio
async def test_registered_operator_is_usable_in_filters(people):
    await people.create([{'name': 'Val', 'age': 31}, {'name': 'Ann', 'age': 45}])
    register_operator('$startswith', lambda col, v: col.startswith(v))
    try:
        found = await people.find({'name': {'$startswith': 'V'}})
    finally:
        OPERATOR_REGISTRY.pop('$startswith')
    assert [d['name'] for d in found] == ['Val']
    with pytest.raises(StorageError, match="Unknown filter operator"):
        await people.find({'name': {'$startswith': 'V'}})


@pytest.mark.asyncio
async def test_unknown_filter_path_rejected(people):
    with pytest.raises(StorageError, match="Unknown filter path"):
        await people.find({'nickname': 'V'})


@pytest.mark.asyncio
async def test_find_one_and_update(people):
    val = await people.create({'name': 'Val', 'age': 31})
    updated = await people.find_one_and_update({'_id': val['_id']}, {'$set': {'age': 32}})
    assert updated['age'] == 32.0
    assert updated['name'] == 'Val'
    assert await people.find_one_and_update({'_id': 'nope'}, {'$set': {'age': 1}}) is None


@pytest.mark.asyncio
async def test_update_cannot_change_identity(people):
    val = await people.create({'name': 'Val', 'age': 31})
    with pytest.raises(DocumentValidationError, match="immutable"):
        await people.find_one_and_update({'_id': val['_id']}, {'_id': 'other'})


@pytest.mark.asyncio
async def test_update_cannot_clear_required_path(people):
    val = await people.create({'name': 'Val', 'age': 31})
    with pytest.raises(DocumentValidationError) as exc:
        await people.find_one_and_update({'_id': val['_id']}, {'$set': {'name': None}})
    assert exc.value.errors == {'name': 'Path `name` is required.'}
    with pytest.raises(DocumentValidationError, match="age"):
        await people.find_one_and_update({'_id': val['_id']}, {'$unset': {'age': 1}})
    assert await people.find_one({'_id': val['_id']}) == val


@pytest.mark.asyncio
async def test_delete_one_returns_deleted_document(people):
    val = await people.create({'name': 'Val', 'age': 31})
    deleted = await people.delete_one({'_id': val['_id']})
    assert deleted == val
    assert await people.find_one({'_id': val['_id']}) is None
    assert await people.delete_one({'_id': val['_id']}) is None


@pytest.mark.asyncio
async def test_duplicate_ids_surface_as_storage_error(people):
    await people.create({'_id': 'dup', 'name': 'Val', 'age': 31})
    with pytest.raises(StorageError):
        await people.create({'_id': 'dup', 'name': 'Ann', 'age': 45})


@pytest.mark.asyncio
async def test_registering_a_collection_twice_fails(store):
    schemas = synthesize_storage_schemas(parse_schema(PERSON_SDL))
    store.register(schemas['Person'])
    with pytest.raises(SchemaError):
        store.register(schemas['Person'])


@pytest.mark.asyncio
async def test_unknown_collection(store):
    with pytest.raises(StorageError, match="Unknown collection"):
        store['Nope']
