from __future__ import annotations

from .documents import Document, DocumentCollection, DocumentStore
from .operators import OPERATOR_REGISTRY, register_operator

__all__ = [
    'Document',
    'DocumentCollection',
    'DocumentStore',
    'OPERATOR_REGISTRY',
    'register_operator',
]
