import pytest

from docql.core.sdl import TypeRef, parse_schema
from docql.errors import ParseError, SchemaError
from tests.fixtures import PERSON_SDL, TODO_SDL


def test_types_and_fields_keep_declaration_order():
    parsed = parse_schema(PERSON_SDL)
    assert [t.name for t in parsed.types] == [
        'FilterString', 'FilterFloat', 'Query', 'Person', 'PersonInput', 'Mutation',
    ]
    person = parsed.get('Person')
    assert [f.name for f in person.fields] == ['_id', 'name', 'age']
    assert [t.name for t in parsed.entity_types] == ['Person']
    assert {t.name for t in parsed.input_types} == {'FilterString', 'FilterFloat', 'PersonInput'}


def test_type_refs_record_wrapping():
    parsed = parse_schema(PERSON_SDL)
    query = parsed.get('Query')
    assert query.field('Person_findById').type == TypeRef('Person')
    assert query.field('Person_findByName').type == TypeRef('Person', is_list=True)
    assert parsed.get('Person').field('age').type == TypeRef('Float', non_null=True)
    assert str(TypeRef('Person', non_null=True, is_list=True, item_non_null=True)) == '[Person!]!'


def test_arguments_keep_declaration_order():
    parsed = parse_schema(PERSON_SDL)
    update = parsed.get('Mutation').field('Person_update')
    assert update.argument_names == ('_id', 'update')
    assert update.arguments[0].type == TypeRef('ID', non_null=True)


def test_type_directives_are_exposed():
    parsed = parse_schema(TODO_SDL)
    assert parsed.get('Todo').has_directive('auth')
    assert not parsed.get('User').has_directive('auth')
    assert parsed.directives == ('auth',)


def test_scalars_are_recorded():
    parsed = parse_schema("scalar Scalar\ntype Blob { data: Scalar }")
    assert parsed.scalars == ('Scalar',)


def test_malformed_sdl_raises_parse_error():
    with pytest.raises(ParseError) as exc:
        parse_schema("type Person {\n  name: String!\n")
    assert exc.value.line is not None
    assert isinstance(exc.value, SchemaError)


def test_duplicate_type_name_rejected():
    with pytest.raises(SchemaError, match="declared more than once"):
        parse_schema("type A { x: String }\ntype A { y: String }")


def test_nested_lists_rejected():
    with pytest.raises(SchemaError, match="Nested list"):
        parse_schema("type A { x: [[String]] }")
