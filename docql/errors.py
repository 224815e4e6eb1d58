"""Error taxonomy for docql.

SchemaError and its ParseError subclass are raised while compiling a schema
and abort startup. DocumentValidationError and StorageError are raised per
request by the document store and surface in the GraphQL execution result.
"""
from __future__ import annotations

from typing import Dict, Optional


class DocqlError(Exception):
    """Base class for all docql errors."""
    pass


class SchemaError(DocqlError):
    """Raised when the SDL cannot be compiled into handlers."""
    pass


class ParseError(SchemaError):
    """Raised when the SDL text is not well-formed."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class DocumentValidationError(DocqlError):
    """Raised by a collection when a payload does not satisfy its storage schema."""

    def __init__(self, type_name: str, errors: Dict[str, str]):
        self.type_name = type_name
        self.errors = dict(errors)
        details = ", ".join(f"{path}: {msg}" for path, msg in self.errors.items())
        super().__init__(f"{type_name} validation failed: {details}")


class StorageError(DocqlError):
    """Raised when the storage collaborator fails to run an operation."""
    pass


__all__ = [
    'DocqlError',
    'SchemaError',
    'ParseError',
    'DocumentValidationError',
    'StorageError',
]
