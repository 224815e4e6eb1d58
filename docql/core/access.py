"""Per-type access-control hooks.

A hook turns the request's identity into extra filter constraints that every
read, update and delete on the type must satisfy. The registry is filled in
during schema compilation and frozen before any request is served.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from ..config import Settings
from ..errors import SchemaError
from .sdl import ParsedSchema

logger = logging.getLogger(__name__)

AccessControlHook = Callable[[Any], Mapping[str, Any]]


def never_match() -> Dict[str, Any]:
    """A fresh condition matching no document at all, including ones with a null owner."""
    return {'$in': []}


def empty_hook(identity: Any) -> Dict[str, Any]:
    return {}


def owner_hook(owner_field: str, id_field: str = '_id') -> AccessControlHook:
    """Build a hook restricting documents to the requesting subject."""
    def hook(identity: Any) -> Dict[str, Any]:
        subject = getattr(identity, 'subject', None)
        if subject is None:
            return {owner_field: never_match()}
        return {owner_field: subject.get(id_field)}

    hook.owner_field = owner_field  # type: ignore[attr-defined]
    return hook


class AccessControlRegistry:
    """Side table mapping entity type names to their access-control hook."""

    def __init__(self) -> None:
        self._hooks: Dict[str, AccessControlHook] = {}
        self._frozen = False

    def install(self, type_name: str, hook: AccessControlHook) -> None:
        if self._frozen:
            raise SchemaError("Access-control hooks cannot change once serving has begun")
        if type_name in self._hooks:
            raise SchemaError(f"An access-control hook is already installed for {type_name!r}")
        self._hooks[type_name] = hook

    def freeze(self) -> "AccessControlRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def has_hook(self, type_name: str) -> bool:
        return type_name in self._hooks

    def hook_for(self, type_name: str) -> AccessControlHook:
        return self._hooks.get(type_name, empty_hook)

    def constraints_for(self, type_name: str, identity: Any) -> Dict[str, Any]:
        return dict(self.hook_for(type_name)(identity))


def build_access_registry(parsed: ParsedSchema, settings: Optional[Settings] = None) -> AccessControlRegistry:
    """Install an owner hook on every entity type carrying the auth directive.

    The returned registry is frozen.
    """
    settings = settings or Settings()
    registry = AccessControlRegistry()
    for type_def in parsed.entity_types:
        if not type_def.has_directive(settings.auth_directive):
            continue
        if type_def.field(settings.owner_field) is None:
            raise SchemaError(
                f"Type {type_def.name!r} is marked @{settings.auth_directive} "
                f"but has no {settings.owner_field!r} field"
            )
        registry.install(type_def.name, owner_hook(settings.owner_field, settings.id_field))
        logger.debug("owner scope on %s.%s", type_def.name, settings.owner_field)
    return registry.freeze()
