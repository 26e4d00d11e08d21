"""Field type registry with storage defaults."""

from dataclasses import dataclass
from typing import Any

import sqlalchemy as sa


@dataclass
class FieldType:
    name: str
    storage_type: Any  # SQLAlchemy TypeEngine class


# Built-in field types
FIELD_TYPES: dict[str, FieldType] = {
    "id": FieldType(name="id", storage_type=sa.Integer),
    "integer": FieldType(name="integer", storage_type=sa.Integer),
    "order": FieldType(name="order", storage_type=sa.Integer),  # Dense 1..N position within a group
    "string": FieldType(name="string", storage_type=sa.String),
    "text": FieldType(name="text", storage_type=sa.Text),
    "uuid": FieldType(name="uuid", storage_type=sa.String),  # Canonical 36-char string form
    "number": FieldType(name="number", storage_type=sa.Float),
    "boolean": FieldType(name="boolean", storage_type=sa.Boolean),
    "datetime": FieldType(name="datetime", storage_type=sa.DateTime),
    "relation": FieldType(name="relation", storage_type=sa.Integer),  # Related record's key
}


def get_field_type(type_name: str) -> FieldType:
    """Get field type definition, defaulting to string if unknown."""
    return FIELD_TYPES.get(type_name, FIELD_TYPES["string"])


def get_storage_type(type_name: str) -> Any:
    """Get the SQLAlchemy column type for a field type."""
    return get_field_type(type_name).storage_type
