from __future__ import annotations

from typing import Any, Callable, Dict, Mapping

from sqlalchemy import or_

# Store filter operators (extensible)
OPERATOR_REGISTRY: Dict[str, Callable[[Any, Any], Any]] = {
    '$eq': lambda col, v: col.is_(None) if v is None else col == v,
    '$ne': lambda col, v: col.is_not(None) if v is None else or_(col != v, col.is_(None)),
    '$lt': lambda col, v: col < v,
    '$lte': lambda col, v: col <= v,
    '$gt': lambda col, v: col > v,
    '$gte': lambda col, v: col >= v,
    '$in': lambda col, v: col.in_(list(v)),
    '$nin': lambda col, v: or_(col.not_in(list(v)), col.is_(None)),
}

LIST_OPERATORS = frozenset({'$in', '$nin'})


def register_operator(name: str, fn: Callable[[Any, Any], Any]) -> None:
    """Make ``name`` usable in store filters; ``fn(column, operand)`` builds the clause."""
    OPERATOR_REGISTRY[name] = fn


def is_operator_map(value: Any) -> bool:
    return isinstance(value, Mapping) and bool(value) and all(
        isinstance(k, str) and k.startswith('$') for k in value
    )
