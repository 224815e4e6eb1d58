"""Storage schema synthesis for entity types.

Every non-reserved object type gets a :class:`StorageSchema` describing the
columns of its document collection. GraphQL scalar names are translated with
a fixed table; anything that does not land on a supported storage type is a
fatal schema error.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..config import Settings
from ..errors import SchemaError
from .sdl import FieldDefinition, ParsedSchema, TypeDefinition, TypeRef

# GraphQL scalar name -> storage type; other names pass through unchanged
TYPE_TRANSLATION: Dict[str, str] = {
    'Float': 'Number',
    'Scalar': 'Mixed',
    'ID': 'ObjectId',
}

STORAGE_TYPES = frozenset({'String', 'Boolean', 'Number', 'Mixed', 'ObjectId', 'Date', 'Array'})


def generate_object_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class StorageField:
    """One stored field.

    ``item_type`` is only set for ``Array`` fields. ``exposed`` is False for the
    implicit identity field added to types that do not declare one.
    """

    name: str
    storage_type: str
    required: bool = False
    default: Optional[Callable[[], Any]] = None
    item_type: Optional[str] = None
    exposed: bool = True


@dataclass
class StorageSchema:
    type_name: str
    fields: Dict[str, StorageField] = field(default_factory=dict)
    id_field: str = '_id'

    def add(self, sf: StorageField) -> None:
        self.fields[sf.name] = sf

    @property
    def required_fields(self) -> List[str]:
        return [n for n, f in self.fields.items() if f.required]

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    def __getitem__(self, name: str) -> StorageField:
        return self.fields[name]


def translate_type(type_name: str) -> str:
    return TYPE_TRANSLATION.get(type_name, type_name)


def _storage_field(type_name: str, fdef: FieldDefinition, settings: Settings) -> StorageField:
    ref: TypeRef = fdef.type
    storage_type = translate_type(ref.name)
    if storage_type not in STORAGE_TYPES or storage_type == 'Array':
        raise SchemaError(
            f"Invalid schema configuration: {type_name}.{fdef.name} has type "
            f"{ref.name!r} with no storage mapping"
        )
    if ref.is_list:
        return StorageField(fdef.name, 'Array', required=ref.non_null, item_type=storage_type)
    default = None
    if fdef.name == settings.id_field and storage_type == 'ObjectId':
        default = generate_object_id
    return StorageField(fdef.name, storage_type, required=ref.non_null, default=default)


def synthesize_storage_schema(type_def: TypeDefinition, settings: Optional[Settings] = None) -> StorageSchema:
    """Build the storage schema for a single entity type."""
    settings = settings or Settings()
    if not type_def.is_entity:
        raise SchemaError(f"{type_def.name!r} is not a storage-backed entity type")
    schema = StorageSchema(type_def.name, id_field=settings.id_field)
    if type_def.field(settings.id_field) is None:
        schema.add(StorageField(
            settings.id_field, 'ObjectId', required=False,
            default=generate_object_id, exposed=False,
        ))
    for fdef in type_def.fields:
        schema.add(_storage_field(type_def.name, fdef, settings))
    return schema


def token_storage_schema(settings: Settings) -> StorageSchema:
    """Storage schema for the credential collection when the SDL does not declare one."""
    schema = StorageSchema(settings.token_type, id_field=settings.id_field)
    schema.add(StorageField(settings.id_field, 'String', required=True))
    schema.add(StorageField(settings.owner_field, 'ObjectId', required=True))
    return schema


def synthesize_storage_schemas(parsed: ParsedSchema, settings: Optional[Settings] = None) -> Dict[str, StorageSchema]:
    """Build storage schemas for every entity type, in declaration order.

    The credential collection is always present so identity resolution has
    something to read from.
    """
    settings = settings or Settings()
    schemas: Dict[str, StorageSchema] = {}
    for type_def in parsed.entity_types:
        schemas[type_def.name] = synthesize_storage_schema(type_def, settings)
    if settings.token_type not in schemas:
        schemas[settings.token_type] = token_storage_schema(settings)
    return schemas
