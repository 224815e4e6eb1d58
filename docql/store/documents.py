"""Document collections backed by SQLAlchemy's asyncio extension.

Each entity type is stored in one table whose columns come from its
:class:`~docql.core.storage_schema.StorageSchema`. Collections speak the small
document API the generated handlers need (``find_one``, ``find``, ``create``,
``find_one_and_update``, ``delete_one``) and accept filters in the
``$``-operator dialect produced by :func:`docql.core.filters.translate_filter`.
Documents are returned as plain dicts.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence, Union

from sqlalchemy import Column, MetaData, Table, delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ..core.storage_schema import StorageField, StorageSchema
from ..errors import DocumentValidationError, SchemaError, StorageError
from .operators import LIST_OPERATORS, OPERATOR_REGISTRY, is_operator_map
from .types import cast_value, column_type

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


class DocumentCollection:
    """One entity type's documents."""

    def __init__(self, store: "DocumentStore", schema: StorageSchema, table: Table):
        self.store = store
        self.schema = schema
        self.table = table

    @property
    def name(self) -> str:
        return self.schema.type_name

    def __repr__(self) -> str:
        return f"<DocumentCollection {self.name}>"

    # --- payload preparation ---------------------------------------------------------
    def _cast(self, sf: StorageField, value: Any, errors: Dict[str, str]) -> Any:
        try:
            return cast_value(sf.storage_type, value, sf.item_type)
        except ValueError as exc:
            errors[sf.name] = f"{exc} at path `{sf.name}`"
            return None

    def prepare(self, payload: Mapping[str, Any]) -> Document:
        """Apply defaults, cast values and check required paths.

        Keys that are not part of the schema are dropped.

        Raises:
            DocumentValidationError: when a required path is missing or a value cannot be cast.
        """
        if not isinstance(payload, Mapping):
            raise DocumentValidationError(self.name, {'payload': f"expected an object, got {type(payload).__name__}"})
        unknown = [k for k in payload if k not in self.schema]
        if unknown:
            logger.debug("%s: dropping unknown paths %s", self.name, unknown)
        errors: Dict[str, str] = {}
        doc: Document = {}
        for name, sf in self.schema.fields.items():
            value = payload.get(name)
            if value is None and sf.default is not None:
                value = sf.default()
            value = self._cast(sf, value, errors)
            if value is None and sf.required and name not in errors:
                errors[name] = f"Path `{name}` is required."
            doc[name] = value
        if errors:
            raise DocumentValidationError(self.name, errors)
        return doc

    def _prepare_patch(self, patch: Mapping[str, Any]) -> Document:
        """Cast the paths a patch sets; unsetting a required path is an error."""
        if any(k.startswith('$') for k in patch):
            unsupported = [k for k in patch if k not in ('$set', '$unset')]
            if unsupported:
                raise StorageError(f"Unsupported update operator(s) {unsupported} on {self.name}")
            changes: Dict[str, Any] = dict(patch.get('$set') or {})
            for key in (patch.get('$unset') or {}):
                changes[key] = None
        else:
            changes = dict(patch)
        errors: Dict[str, str] = {}
        values: Document = {}
        for key, value in changes.items():
            sf = self.schema.fields.get(key)
            if sf is None:
                logger.debug("%s: dropping unknown update path %s", self.name, key)
                continue
            if key == self.schema.id_field:
                errors[key] = "Path `%s` is immutable." % key
                continue
            value = self._cast(sf, value, errors)
            if value is None and sf.required and key not in errors:
                errors[key] = f"Path `{key}` is required."
            values[key] = value
        if errors:
            raise DocumentValidationError(self.name, errors)
        return values

    # --- filters ---------------------------------------------------------------------
    def _filter_value(self, sf: StorageField, value: Any) -> Any:
        storage_type = sf.item_type if sf.storage_type == 'Array' else sf.storage_type
        try:
            return cast_value(storage_type or 'Mixed', value)
        except ValueError as exc:
            raise StorageError(f"{exc} at path `{sf.name}` of {self.name}") from None

    def where(self, filter_: Optional[Mapping[str, Any]]) -> List[Any]:
        """Translate a ``$``-operator filter into SQLAlchemy expressions.

        Raises:
            StorageError: for unknown fields or operators.
        """
        exprs: List[Any] = []
        for key, value in (filter_ or {}).items():
            sf = self.schema.fields.get(key)
            if sf is None:
                raise StorageError(f"Unknown filter path {key!r} on {self.name}")
            col = self.table.c[key]
            if is_operator_map(value):
                for op, operand in value.items():
                    fn = OPERATOR_REGISTRY.get(op)
                    if fn is None:
                        raise StorageError(f"Unknown filter operator {op!r} on {self.name}.{key}")
                    if op in LIST_OPERATORS:
                        if not isinstance(operand, (list, tuple, set)):
                            raise StorageError(f"{op} expects a list on {self.name}.{key}")
                        operand = [self._filter_value(sf, v) for v in operand]
                    else:
                        operand = self._filter_value(sf, operand)
                    exprs.append(fn(col, operand))
            elif isinstance(value, Mapping) and sf.storage_type != 'Mixed':
                raise StorageError(f"Invalid filter object for {self.name}.{key}: {dict(value)!r}")
            else:
                exprs.append(OPERATOR_REGISTRY['$eq'](col, self._filter_value(sf, value)))
        return exprs

    def _to_document(self, row: Any) -> Document:
        mapping = row._mapping
        return {name: mapping[self.table.c[name]] for name in self.schema.fields}

    def _pk(self):
        return self.table.c[self.schema.id_field]

    # --- operations ------------------------------------------------------------------
    async def find_one(self, filter_: Optional[Mapping[str, Any]] = None) -> Optional[Document]:
        exprs = self.where(filter_)
        logger.debug("%s.find_one(%r)", self.name, filter_)
        async with self.store.transaction() as session:
            result = await session.execute(select(self.table).where(*exprs).limit(1))
            row = result.first()
        return self._to_document(row) if row is not None else None

    async def find(self, filter_: Optional[Mapping[str, Any]] = None) -> List[Document]:
        exprs = self.where(filter_)
        logger.debug("%s.find(%r)", self.name, filter_)
        async with self.store.transaction() as session:
            result = await session.execute(select(self.table).where(*exprs))
            rows = result.all()
        return [self._to_document(r) for r in rows]

    async def create(self, payload: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]) -> Union[Document, List[Document]]:
        """Insert one document, or several when given a list.

        Validation runs before anything is sent to the database.
        """
        if isinstance(payload, (list, tuple)):
            return await self.insert_many(payload)
        doc = self.prepare(payload)
        logger.debug("%s.create(%r)", self.name, doc)
        async with self.store.transaction() as session:
            await session.execute(self.table.insert().values(**doc))
        return doc

    async def insert_many(self, payloads: Sequence[Mapping[str, Any]]) -> List[Document]:
        docs = [self.prepare(p) for p in payloads]
        if not docs:
            return []
        logger.debug("%s.insert_many(%d)", self.name, len(docs))
        async with self.store.transaction() as session:
            await session.execute(self.table.insert(), docs)
        return docs

    async def find_one_and_update(self, filter_: Optional[Mapping[str, Any]], patch: Mapping[str, Any]) -> Optional[Document]:
        """Patch the first matching document and return it after the update.

        Returns None when nothing matches ``filter_``.
        """
        exprs = self.where(filter_)
        values = self._prepare_patch(patch)
        logger.debug("%s.find_one_and_update(%r, %r)", self.name, filter_, values)
        pk = self._pk()
        async with self.store.transaction() as session:
            result = await session.execute(select(pk).where(*exprs).limit(1))
            ident = result.scalar_one_or_none()
            if ident is None:
                return None
            if values:
                await session.execute(update(self.table).where(pk == ident).values(**values))
            result = await session.execute(select(self.table).where(pk == ident))
            row = result.first()
        return self._to_document(row) if row is not None else None

    async def delete_one(self, filter_: Optional[Mapping[str, Any]]) -> Optional[Document]:
        """Delete the first matching document and return it, or None."""
        exprs = self.where(filter_)
        logger.debug("%s.delete_one(%r)", self.name, filter_)
        pk = self._pk()
        async with self.store.transaction() as session:
            result = await session.execute(select(self.table).where(*exprs).limit(1))
            row = result.first()
            if row is None:
                return None
            doc = self._to_document(row)
            await session.execute(delete(self.table).where(pk == doc[self.schema.id_field]))
        return doc


class DocumentStore:
    """Registry of document collections sharing one async engine."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.metadata = MetaData()
        self._sessionmaker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        self._collections: Dict[str, DocumentCollection] = {}

    def register(self, schema: StorageSchema) -> DocumentCollection:
        if schema.type_name in self._collections:
            raise SchemaError(f"A collection named {schema.type_name!r} is already registered")
        columns = [
            Column(
                sf.name,
                column_type(sf.storage_type),
                primary_key=(sf.name == schema.id_field),
                nullable=(sf.name != schema.id_field),
            )
            for sf in schema.fields.values()
        ]
        table = Table(schema.type_name, self.metadata, *columns)
        coll = DocumentCollection(self, schema, table)
        self._collections[schema.type_name] = coll
        return coll

    def collection(self, name: str) -> DocumentCollection:
        try:
            return self._collections[name]
        except KeyError:
            raise StorageError(f"Unknown collection {name!r}") from None

    def __getitem__(self, name: str) -> DocumentCollection:
        return self.collection(name)

    def __contains__(self, name: str) -> bool:
        return name in self._collections

    @property
    def names(self) -> List[str]:
        return list(self._collections)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessionmaker.begin() as session:
                yield session
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    async def create_all(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(self.metadata.create_all)
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc
        logger.info("created %d collection(s) on %s", len(self._collections), self.engine.dialect.name)

    async def drop_all(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(self.metadata.drop_all)
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    async def dispose(self) -> None:
        await self.engine.dispose()
