"""Async resolvers for generated Query and Mutation fields.

Each :class:`~docql.core.operations.HandlerBinding` becomes a coroutine
resolver. Read, update and delete handlers merge the translated arguments with
the target type's access-control constraints before calling the store, so a
request can never see or touch documents outside its scope. Such requests get
``None`` or ``[]`` back rather than an error.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from .core.access import AccessControlRegistry
from .core.filters import merge_constraints, translate_filter
from .core.operations import HandlerBinding, OperationKind
from .identity import ANONYMOUS, IdentityContext
from .store import DocumentStore

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


def identity_from_info(info: Any) -> IdentityContext:
    ctx = getattr(info, 'context', None)
    if ctx is None:
        return ANONYMOUS
    if isinstance(ctx, Mapping):
        identity = ctx.get('identity')
    else:
        identity = getattr(ctx, 'identity', None)
    return identity if identity is not None else ANONYMOUS


def make_handler(
    binding: HandlerBinding,
    store: DocumentStore,
    access: AccessControlRegistry,
    id_field: str = '_id',
) -> Handler:
    """Build the resolver for ``binding``.

    The collection is looked up once, here; hooks are looked up on every call.
    """
    model = binding.model_name
    collection = store[model]
    arg_names = binding.argument_names

    def scoped(filter_: Mapping[str, Any], info: Any) -> Dict[str, Any]:
        return merge_constraints(filter_, access.constraints_for(model, identity_from_info(info)))

    if binding.kind is OperationKind.FIND_ONE:
        async def find_one(_root: Any, info: Any, **args: Any) -> Optional[Dict[str, Any]]:
            return await collection.find_one(scoped(translate_filter(args), info))
        handler = find_one

    elif binding.kind is OperationKind.FIND_MANY:
        async def find_many(_root: Any, info: Any, **args: Any) -> list:
            return await collection.find(scoped(translate_filter(args), info))
        handler = find_many

    elif binding.kind is OperationKind.CREATE:
        payload_arg = arg_names[0]

        async def create(_root: Any, info: Any, **args: Any) -> Dict[str, Any]:
            # Ownership is taken from the payload as given and is not checked
            # against the caller's identity.
            return await collection.create(args.get(payload_arg) or {})
        handler = create

    elif binding.kind is OperationKind.UPDATE:
        id_arg, patch_arg = arg_names[0], arg_names[1]

        async def update(_root: Any, info: Any, **args: Any) -> Optional[Dict[str, Any]]:
            filter_ = scoped({id_field: args.get(id_arg)}, info)
            return await collection.find_one_and_update(filter_, {'$set': args.get(patch_arg) or {}})
        handler = update

    elif binding.kind is OperationKind.DELETE:
        id_arg = arg_names[0]

        async def delete(_root: Any, info: Any, **args: Any) -> Optional[Dict[str, Any]]:
            return await collection.delete_one(scoped({id_field: args.get(id_arg)}, info))
        handler = delete

    else:  # pragma: no cover - enum is exhaustive
        raise ValueError(f"Unsupported operation kind {binding.kind!r}")

    handler.__name__ = binding.resolver_name
    handler.__qualname__ = binding.resolver_name
    return handler


def synthesize_handlers(
    bindings,
    store: DocumentStore,
    access: AccessControlRegistry,
    id_field: str = '_id',
) -> Dict[str, Dict[str, Handler]]:
    """Group handlers by root type: ``{'Query': {...}, 'Mutation': {...}}``."""
    resolvers: Dict[str, Dict[str, Handler]] = {}
    for binding in bindings:
        resolvers.setdefault(binding.root, {})[binding.resolver_name] = make_handler(binding, store, access, id_field)
        logger.debug("bound %s.%s -> %s %s", binding.root, binding.resolver_name, binding.kind.value, binding.model_name)
    return resolvers
