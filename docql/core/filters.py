"""Translation of GraphQL query arguments into store filters.

Arguments arrive either as plain scalars (equality) or as comparison objects
such as ``{"gt": 30}``. Comparison keys are rewritten into the store's
``$``-prefixed operator dialect and nested under the argument's field key.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

from ..errors import SchemaError
from .sdl import QUERY, ParsedSchema

OPERATOR_PREFIX = '$'

# Comparison keys accepted on filter input types
COMPARISON_OPERATORS = frozenset({'eq', 'ne', 'lt', 'lte', 'gt', 'gte', 'in', 'nin'})


def operator_key(op: str) -> str:
    if op.startswith(OPERATOR_PREFIX):
        return op
    return OPERATOR_PREFIX + op


def translate_filter(args: Mapping[str, Any] | None) -> Dict[str, Any]:
    """Translate an argument mapping into a store filter.

    ``{"age": {"gt": 30}, "name": "Val"}`` becomes
    ``{"age": {"$gt": 30}, "name": "Val"}``. Operators are not validated here;
    the store rejects anything it does not understand.
    """
    out: Dict[str, Any] = {}
    for key, value in (args or {}).items():
        if isinstance(value, Mapping):
            out[key] = {operator_key(op): v for op, v in value.items()}
        else:
            out[key] = value
    return out


def merge_constraints(filter_: Mapping[str, Any], constraints: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge mandatory constraints into a filter; constraint keys win."""
    merged = dict(filter_)
    merged.update(constraints)
    return merged


def validate_comparison_inputs(parsed: ParsedSchema, allowed: Iterable[str] = COMPARISON_OPERATORS) -> None:
    """Reject filter input types that declare operators outside the allow-list.

    Every input object type used as a Query argument is treated as a
    comparison object.

    Raises:
        SchemaError: on the first unsupported operator found.
    """
    allowed = frozenset(allowed)
    query = parsed.get(QUERY)
    if query is None:
        return
    for fdef in query.fields:
        for arg in fdef.arguments:
            input_def = parsed.get(arg.type.name)
            if input_def is None or input_def.kind != 'input':
                continue
            for op_field in input_def.fields:
                if op_field.name not in allowed:
                    raise SchemaError(
                        f"Unsupported comparison operator {op_field.name!r} on input "
                        f"{input_def.name!r} (used by {QUERY}.{fdef.name}({arg.name}))"
                    )


def validate_filter_arguments(bindings: Iterable[Any], storage_schemas: Mapping[str, Any]) -> None:
    """Reject Query arguments that do not name a stored field of their target type.

    Every Query argument becomes a filter path, so an argument without a
    matching field could never be answered.

    Raises:
        SchemaError: on the first argument with no matching field.
    """
    for binding in bindings:
        if binding.root != QUERY:
            continue
        schema = storage_schemas[binding.model_name]
        for name in binding.argument_names:
            if name not in schema:
                raise SchemaError(
                    f"Argument {name!r} of {QUERY}.{binding.resolver_name} is not a field of {binding.model_name!r}"
                )
