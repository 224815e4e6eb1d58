"""SDL parsing into plain type/field definitions.

The compiler does not work on graphql-core AST nodes directly; it works on the
small frozen dataclasses below, which record exactly what code generation
needs: declaration order, nullability, list wrapping and directive names.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from graphql import GraphQLSyntaxError, parse
from graphql.language import (
    DirectiveDefinitionNode,
    DocumentNode,
    InputObjectTypeDefinitionNode,
    ListTypeNode,
    NonNullTypeNode,
    ObjectTypeDefinitionNode,
    ScalarTypeDefinitionNode,
    TypeNode,
)

from ..errors import ParseError, SchemaError

QUERY = 'Query'
MUTATION = 'Mutation'
RESERVED_TYPES = frozenset({QUERY, MUTATION})


@dataclass(frozen=True)
class TypeRef:
    """A declared type reference with its wrapping modifiers.

    ``[Person!]!`` is ``TypeRef('Person', non_null=True, is_list=True, item_non_null=True)``.
    Nested lists are not supported by the generator and are rejected at parse time.
    """

    name: str
    non_null: bool = False
    is_list: bool = False
    item_non_null: bool = False

    def __str__(self) -> str:
        inner = self.name + ('!' if self.item_non_null else '')
        out = f"[{inner}]" if self.is_list else self.name
        return out + ('!' if self.non_null else '')


@dataclass(frozen=True)
class ArgumentDefinition:
    name: str
    type: TypeRef


@dataclass(frozen=True)
class FieldDefinition:
    name: str
    type: TypeRef
    arguments: Tuple[ArgumentDefinition, ...] = ()
    directives: Tuple[str, ...] = ()

    @property
    def argument_names(self) -> Tuple[str, ...]:
        return tuple(a.name for a in self.arguments)


@dataclass(frozen=True)
class TypeDefinition:
    name: str
    kind: str  # "object" or "input"
    fields: Tuple[FieldDefinition, ...] = ()
    directives: Tuple[str, ...] = ()

    @property
    def is_entity(self) -> bool:
        return self.kind == 'object' and self.name not in RESERVED_TYPES

    def has_directive(self, name: str) -> bool:
        return name in self.directives

    def field(self, name: str) -> Optional[FieldDefinition]:
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass
class ParsedSchema:
    """Result of :func:`parse_schema`.

    Attributes:
        types: Object and input type definitions in declaration order.
        directives: Names of directives declared with ``directive @name``.
        scalars: Names of custom scalars declared with ``scalar Name``.
        document: The graphql-core document, kept for building the executable schema.
    """

    types: List[TypeDefinition]
    directives: Tuple[str, ...] = ()
    scalars: Tuple[str, ...] = ()
    document: Optional[DocumentNode] = None
    _by_name: Dict[str, TypeDefinition] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self._by_name = {t.name: t for t in self.types}

    def get(self, name: str) -> Optional[TypeDefinition]:
        return self._by_name.get(name)

    @property
    def entity_types(self) -> List[TypeDefinition]:
        return [t for t in self.types if t.is_entity]

    @property
    def input_types(self) -> List[TypeDefinition]:
        return [t for t in self.types if t.kind == 'input']


def type_ref_from_node(node: TypeNode) -> TypeRef:
    """Flatten a graphql-core type node into a :class:`TypeRef`."""
    non_null = False
    if isinstance(node, NonNullTypeNode):
        non_null = True
        node = node.type
    if isinstance(node, ListTypeNode):
        inner = node.type
        item_non_null = False
        if isinstance(inner, NonNullTypeNode):
            item_non_null = True
            inner = inner.type
        if isinstance(inner, ListTypeNode):
            raise SchemaError("Nested list types are not supported")
        return TypeRef(inner.name.value, non_null=non_null, is_list=True, item_non_null=item_non_null)
    return TypeRef(node.name.value, non_null=non_null)


def _directive_names(node) -> Tuple[str, ...]:
    return tuple(d.name.value for d in (node.directives or ()))


def parse_schema(source: str) -> ParsedSchema:
    """Parse SDL text into a :class:`ParsedSchema`.

    Raises:
        ParseError: if the text is not valid GraphQL.
        SchemaError: if a type name is declared twice.
    """
    try:
        document = parse(source)
    except GraphQLSyntaxError as exc:
        loc = exc.locations[0] if exc.locations else None
        raise ParseError(
            exc.message,
            line=loc.line if loc else None,
            column=loc.column if loc else None,
        ) from exc

    types: List[TypeDefinition] = []
    seen: Dict[str, str] = {}
    directives: List[str] = []
    scalars: List[str] = []

    for node in document.definitions:
        if isinstance(node, DirectiveDefinitionNode):
            directives.append(node.name.value)
            continue
        if isinstance(node, ScalarTypeDefinitionNode):
            scalars.append(node.name.value)
            continue
        if isinstance(node, ObjectTypeDefinitionNode):
            kind = 'object'
        elif isinstance(node, InputObjectTypeDefinitionNode):
            kind = 'input'
        else:
            continue

        name = node.name.value
        if name in seen:
            raise SchemaError(f"Type {name!r} is declared more than once")
        seen[name] = kind

        fields = []
        for fnode in node.fields or ():
            args = tuple(
                ArgumentDefinition(a.name.value, type_ref_from_node(a.type))
                for a in (getattr(fnode, 'arguments', None) or ())
            )
            fields.append(FieldDefinition(
                name=fnode.name.value,
                type=type_ref_from_node(fnode.type),
                arguments=args,
                directives=_directive_names(fnode),
            ))
        types.append(TypeDefinition(
            name=name,
            kind=kind,
            fields=tuple(fields),
            directives=_directive_names(node),
        ))

    return ParsedSchema(
        types=types,
        directives=tuple(directives),
        scalars=tuple(scalars),
        document=document,
    )
