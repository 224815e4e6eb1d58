"""Compile SDL into an executable GraphQL API over a document store.

Compilation is a single pass:

1. parse the SDL and build the graphql-core schema from it,
2. synthesize a storage schema per entity type,
3. generate field accessors,
4. build and freeze the access-control registry,
5. resolve Query/Mutation fields into bindings,
6. register collections, create handlers and attach every resolver.

After that the :class:`GeneratedApi` only serves requests; nothing it holds is
mutated again.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from graphql import ExecutionResult, GraphQLError, GraphQLSchema, build_ast_schema, graphql, parse

from .config import Settings, create_engine
from .core.access import AccessControlRegistry, build_access_registry
from .core.accessors import Accessor, generate_accessors
from .core.filters import validate_comparison_inputs, validate_filter_arguments
from .core.operations import HandlerBinding, build_operation_table
from .core.sdl import ParsedSchema, parse_schema
from .core.storage_schema import StorageSchema, synthesize_storage_schemas
from .errors import SchemaError
from .handlers import Handler, synthesize_handlers
from .identity import IdentityContext, IdentityResolver
from .store import DocumentStore

logger = logging.getLogger(__name__)

# custom scalars the storage translation table knows about
IMPLICIT_SCALARS = ('Scalar',)


@dataclass
class RequestContext:
    """GraphQL context value for one request."""

    identity: IdentityContext
    store: DocumentStore
    headers: Dict[str, Any] = field(default_factory=dict)


def _implicit_declarations(parsed: ParsedSchema, settings: Settings) -> str:
    extra: List[str] = []
    auth = settings.auth_directive
    if auth not in parsed.directives and any(t.has_directive(auth) for t in parsed.types):
        extra.append(f"directive @{auth} on OBJECT")
    referenced = set()
    for t in parsed.types:
        for f in t.fields:
            referenced.add(f.type.name)
            referenced.update(a.type.name for a in f.arguments)
    for name in IMPLICIT_SCALARS:
        if name in referenced and name not in parsed.scalars and parsed.get(name) is None:
            extra.append(f"scalar {name}")
    return "\n".join(extra)


def build_executable_schema(source: str, parsed: ParsedSchema, settings: Settings) -> GraphQLSchema:
    extra = _implicit_declarations(parsed, settings)
    document = parse(source + "\n" + extra) if extra else parsed.document
    try:
        return build_ast_schema(document)
    except (GraphQLError, TypeError) as exc:
        raise SchemaError(f"Invalid schema: {exc}") from exc


def attach_resolvers(
    schema: GraphQLSchema,
    accessors: Mapping[str, Mapping[str, Accessor]],
    handlers: Mapping[str, Mapping[str, Handler]],
) -> None:
    for type_name, fields in list(accessors.items()) + list(handlers.items()):
        gql_type = schema.get_type(type_name)
        if gql_type is None:
            raise SchemaError(f"Type {type_name!r} is missing from the executable schema")
        for field_name, resolver in fields.items():
            gql_type.fields[field_name].resolve = resolver


class GeneratedApi:
    """An executable GraphQL schema with its storage and access state."""

    def __init__(
        self,
        *,
        schema: GraphQLSchema,
        parsed: ParsedSchema,
        storage_schemas: Dict[str, StorageSchema],
        bindings: List[HandlerBinding],
        access: AccessControlRegistry,
        store: DocumentStore,
        settings: Settings,
    ):
        self.schema = schema
        self.parsed = parsed
        self.storage_schemas = storage_schemas
        self.bindings = bindings
        self.access = access
        self.store = store
        self.settings = settings
        self.identity = IdentityResolver(store, settings)

    def binding(self, resolver_name: str) -> Optional[HandlerBinding]:
        for b in self.bindings:
            if b.resolver_name == resolver_name:
                return b
        return None

    async def context_for(self, headers: Optional[Mapping[str, Any]] = None) -> RequestContext:
        identity = await self.identity.resolve(headers)
        return RequestContext(identity=identity, store=self.store, headers=dict(headers or {}))

    async def execute(
        self,
        query: str,
        variable_values: Optional[Dict[str, Any]] = None,
        headers: Optional[Mapping[str, Any]] = None,
        operation_name: Optional[str] = None,
    ) -> ExecutionResult:
        """Resolve the caller's identity, then execute ``query``."""
        context = await self.context_for(headers)
        return await graphql(
            self.schema,
            query,
            context_value=context,
            variable_values=variable_values,
            operation_name=operation_name,
        )


def compile_api(source: str, store: DocumentStore, settings: Optional[Settings] = None) -> GeneratedApi:
    """Compile ``source`` into a :class:`GeneratedApi` backed by ``store``.

    Collections are registered on ``store`` but tables are not created; call
    ``await store.create_all()`` before serving.

    Raises:
        ParseError: if ``source`` is not valid SDL.
        SchemaError: if a field has no storage mapping, an operator is not
            allowed, a Query argument names no stored field, or (in strict
            mode) a root field cannot be bound.
    """
    settings = settings or Settings()
    parsed = parse_schema(source)
    validate_comparison_inputs(parsed)
    schema = build_executable_schema(source, parsed, settings)

    storage_schemas = synthesize_storage_schemas(parsed, settings)
    accessors = generate_accessors(parsed)
    access = build_access_registry(parsed, settings)
    entity_names = [t.name for t in parsed.entity_types]
    bindings = build_operation_table(parsed, entity_names, settings)
    validate_filter_arguments(bindings, storage_schemas)

    # nothing touches the store until the whole schema has been validated
    for storage_schema in storage_schemas.values():
        store.register(storage_schema)
    handlers = synthesize_handlers(bindings, store, access, settings.id_field)
    attach_resolvers(schema, accessors, handlers)

    logger.info(
        "compiled schema: %d entity type(s), %d operation(s)",
        len(entity_names), len(bindings),
    )
    return GeneratedApi(
        schema=schema,
        parsed=parsed,
        storage_schemas=storage_schemas,
        bindings=bindings,
        access=access,
        store=store,
        settings=settings,
    )


async def create_api(
    source: str,
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
) -> GeneratedApi:
    """Compile ``source`` and create its tables, ready to serve."""
    settings = settings or Settings.from_env()
    store = store or DocumentStore(create_engine(settings))
    api = compile_api(source, store, settings)
    await store.create_all()
    return api
