from __future__ import annotations

from typing import Any, Callable, Dict

from .sdl import ParsedSchema

Accessor = Callable[..., Any]


def make_accessor(field_name: str) -> Accessor:
    """Return a resolver reading ``field_name`` off a stored document.

    An absent document resolves to None. The accessor never mutates the document.
    """
    def resolve(doc: Any, info: Any = None, **_: Any) -> Any:
        if doc is None:
            return None
        return doc.get(field_name)

    resolve.__name__ = f"resolve_{field_name}"
    return resolve


def generate_accessors(parsed: ParsedSchema) -> Dict[str, Dict[str, Accessor]]:
    """Map every entity type to ``{field: accessor}`` in declaration order."""
    return {
        t.name: {f.name: make_accessor(f.name) for f in t.fields}
        for t in parsed.entity_types
    }
