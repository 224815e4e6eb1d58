"""Operation table built from ``Query`` and ``Mutation`` field names.

Root fields follow the ``<Type>_<operation>`` naming convention. Each one is
resolved into a :class:`HandlerBinding` naming its target entity type and
:class:`OperationKind`. In strict mode a field that cannot be resolved is a
schema error; otherwise it is logged and left without a resolver.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ..config import Settings
from ..errors import SchemaError
from .sdl import MUTATION, QUERY, FieldDefinition, ParsedSchema

logger = logging.getLogger(__name__)


class OperationKind(enum.Enum):
    FIND_ONE = 'find_one'
    FIND_MANY = 'find_many'
    CREATE = 'create'
    UPDATE = 'update'
    DELETE = 'delete'


# mutation op name -> (kind, minimum number of arguments)
MUTATION_OPERATIONS = {
    'create': (OperationKind.CREATE, 1),
    'update': (OperationKind.UPDATE, 2),
    'delete': (OperationKind.DELETE, 1),
}


@dataclass(frozen=True)
class HandlerBinding:
    resolver_name: str
    root: str
    model_name: str
    kind: OperationKind
    argument_names: Tuple[str, ...] = ()


def split_resolver_name(resolver_name: str) -> Optional[Tuple[str, str]]:
    """Split ``Person_findByAge`` into ``('Person', 'findByAge')``."""
    model, sep, op = resolver_name.partition('_')
    if not sep or not model or not op:
        return None
    return model, op


def _query_kind(fdef: FieldDefinition, model_name: str) -> Optional[OperationKind]:
    ref = fdef.type
    if ref.name != model_name:
        return None
    return OperationKind.FIND_MANY if ref.is_list else OperationKind.FIND_ONE


def _mutation_kind(fdef: FieldDefinition, op_name: str) -> Tuple[Optional[OperationKind], Optional[str]]:
    entry = MUTATION_OPERATIONS.get(op_name)
    if entry is None:
        return None, f"unknown operation {op_name!r}"
    kind, min_args = entry
    if kind is OperationKind.CREATE and len(fdef.arguments) != 1:
        return None, "create takes exactly one payload argument"
    if len(fdef.arguments) < min_args:
        return None, f"{op_name} takes at least {min_args} argument(s)"
    return kind, None


class _Unresolved(Exception):
    pass


def _bind(root: str, fdef: FieldDefinition, entity_names: frozenset) -> HandlerBinding:
    parts = split_resolver_name(fdef.name)
    if parts is None:
        raise _Unresolved("name does not follow <Type>_<operation>")
    model_name, op_name = parts
    if model_name not in entity_names:
        raise _Unresolved(f"{model_name!r} is not an entity type")
    if root == QUERY:
        kind = _query_kind(fdef, model_name)
        if kind is None:
            raise _Unresolved(f"return type {fdef.type} is neither {model_name} nor [{model_name}]")
    else:
        kind, reason = _mutation_kind(fdef, op_name)
        if kind is None:
            raise _Unresolved(reason)
    return HandlerBinding(
        resolver_name=fdef.name,
        root=root,
        model_name=model_name,
        kind=kind,
        argument_names=fdef.argument_names,
    )


def build_operation_table(
    parsed: ParsedSchema,
    entity_names: Iterable[str],
    settings: Optional[Settings] = None,
) -> List[HandlerBinding]:
    """Resolve every Query/Mutation field into a binding.

    Raises:
        SchemaError: in strict mode, for the first field that cannot be bound.
    """
    settings = settings or Settings()
    entities = frozenset(entity_names)
    bindings: List[HandlerBinding] = []
    for root in (QUERY, MUTATION):
        type_def = parsed.get(root)
        if type_def is None:
            continue
        for fdef in type_def.fields:
            try:
                bindings.append(_bind(root, fdef, entities))
            except _Unresolved as exc:
                if settings.strict_operations:
                    raise SchemaError(f"Cannot bind {root}.{fdef.name}: {exc}") from None
                logger.warning("skipping %s.%s: %s", root, fdef.name, exc)
    return bindings
