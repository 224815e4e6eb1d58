"""Storage type to SQLAlchemy column type mapping and value casting."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, String, Text
from sqlalchemy.types import TypeEngine

OBJECT_ID_LENGTH = 64

COLUMN_TYPES = {
    'String': Text,
    'Boolean': Boolean,
    'Number': Float,
    'Mixed': JSON,
    'ObjectId': lambda: String(OBJECT_ID_LENGTH),
    'Date': DateTime,
    'Array': JSON,
}


def column_type(storage_type: str) -> TypeEngine:
    try:
        factory = COLUMN_TYPES[storage_type]
    except KeyError:
        raise ValueError(f"No column type for storage type {storage_type!r}") from None
    return factory()


def cast_value(storage_type: str, value: Any, item_type: Optional[str] = None) -> Any:
    """Cast ``value`` to the Python representation of ``storage_type``.

    Raises:
        ValueError: when the value cannot represent the storage type.
    """
    if value is None:
        return None
    if storage_type == 'Mixed':
        return value
    if storage_type == 'Array':
        items = value if isinstance(value, (list, tuple)) else [value]
        return [cast_value(item_type or 'Mixed', v) for v in items]
    if storage_type == 'Number':
        if isinstance(value, bool):
            raise ValueError(f"Cast to Number failed for value {value!r}")
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                raise ValueError(f"Cast to Number failed for value {value!r}") from None
        raise ValueError(f"Cast to Number failed for value {value!r}")
    if storage_type == 'Boolean':
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lv = value.strip().lower()
            if lv in ('true', '1', 'yes'):
                return True
            if lv in ('false', '0', 'no'):
                return False
        if isinstance(value, (int, float)) and value in (0, 1):
            return bool(value)
        raise ValueError(f"Cast to Boolean failed for value {value!r}")
    if storage_type in ('String', 'ObjectId'):
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            return str(value)
        if storage_type == 'String' and isinstance(value, bool):
            return str(value).lower()
        raise ValueError(f"Cast to {storage_type} failed for value {value!r}")
    if storage_type == 'Date':
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            s = value.replace('Z', '+00:00') if value.endswith('Z') else value
            try:
                return datetime.fromisoformat(s)
            except ValueError:
                raise ValueError(f"Cast to Date failed for value {value!r}") from None
        raise ValueError(f"Cast to Date failed for value {value!r}")
    return value
