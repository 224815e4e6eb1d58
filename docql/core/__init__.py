"""Schema-to-handler compiler building blocks."""
from .sdl import ArgumentDefinition, FieldDefinition, ParsedSchema, TypeDefinition, TypeRef, parse_schema
from .storage_schema import StorageField, StorageSchema, synthesize_storage_schema, synthesize_storage_schemas
from .accessors import generate_accessors, make_accessor
from .filters import COMPARISON_OPERATORS, translate_filter
from .access import AccessControlRegistry, build_access_registry, owner_hook
from .operations import HandlerBinding, OperationKind, build_operation_table

__all__ = [
    'ArgumentDefinition', 'FieldDefinition', 'ParsedSchema', 'TypeDefinition', 'TypeRef', 'parse_schema',
    'StorageField', 'StorageSchema', 'synthesize_storage_schema', 'synthesize_storage_schemas',
    'generate_accessors', 'make_accessor',
    'COMPARISON_OPERATORS', 'translate_filter',
    'AccessControlRegistry', 'build_access_registry', 'owner_hook',
    'HandlerBinding', 'OperationKind', 'build_operation_table',
]
