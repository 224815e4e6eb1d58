"""Runtime settings for docql.

Settings are plain dataclass fields with environment overrides. ``from_env``
loads a ``.env`` file first so local development can keep its database URL
outside the shell.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Optional

from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

_TRUE_VALUES = ('1', 'true', 't', 'yes', 'y', 'on')


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class Settings:
    """Naming conventions and connection options used by the compiler.

    Attributes:
        database_url: SQLAlchemy async URL for the document store.
        echo_sql: Echo every statement issued by the store.
        auth_directive: Directive name that marks owner-scoped types.
        owner_field: Field on owner-scoped types holding the subject id.
        id_field: Identity field present on every stored document.
        subject_type: Entity type that credentials resolve to.
        token_type: Collection holding stored credentials.
        credential_header: Request header carrying the credential.
        strict_operations: Reject Query/Mutation fields that do not follow
            the ``<Type>_<operation>`` convention instead of skipping them.
    """

    database_url: str = 'sqlite+aiosqlite:///:memory:'
    echo_sql: bool = False
    auth_directive: str = 'auth'
    owner_field: str = 'userId'
    id_field: str = '_id'
    subject_type: str = 'User'
    token_type: str = 'AccessToken'
    credential_header: str = 'Authorization'
    strict_operations: bool = True

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None, **overrides: Any) -> "Settings":
        load_dotenv(dotenv_path)
        base = cls(
            database_url=os.getenv('DOCQL_DATABASE_URL') or cls.database_url,
            echo_sql=_env_flag('DOCQL_ECHO_SQL', cls.echo_sql),
            strict_operations=_env_flag('DOCQL_STRICT_OPERATIONS', cls.strict_operations),
        )
        return replace(base, **overrides) if overrides else base


def create_engine(settings: Settings) -> AsyncEngine:
    """Build the async engine described by ``settings``."""
    url = settings.database_url
    if url.startswith('sqlite') and ':memory:' in url:
        # every session must see the same in-memory database
        return create_async_engine(
            url,
            echo=settings.echo_sql,
            poolclass=StaticPool,
        )
    return create_async_engine(url, echo=settings.echo_sql, pool_pre_ping=True)
