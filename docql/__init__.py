"""docql: GraphQL APIs generated from SDL over a document store.

Public API:
- compile_api, create_api, GeneratedApi
- Settings
- DocumentStore
- error classes
"""
from .compiler import GeneratedApi, RequestContext, compile_api, create_api
from .config import Settings, create_engine
from .errors import DocqlError, DocumentValidationError, ParseError, SchemaError, StorageError
from .identity import IdentityContext, IdentityResolver
from .store import DocumentStore

__all__ = [
    'GeneratedApi', 'RequestContext', 'compile_api', 'create_api',
    'Settings', 'create_engine',
    'DocqlError', 'DocumentValidationError', 'ParseError', 'SchemaError', 'StorageError',
    'IdentityContext', 'IdentityResolver',
    'DocumentStore',
]
