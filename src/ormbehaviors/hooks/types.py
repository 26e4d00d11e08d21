"""Hook system types.

Defines the core data structures for the record lifecycle:
- Hook points: named moments in the save/delete lifecycle
- UserContext: identity used by stamping behaviors
- HookContext: runtime state passed to every behavior handler
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy.engine import Connection

if TYPE_CHECKING:
    from ormbehaviors.metadata.loader import EntityModel
    from ormbehaviors.persistence.adapter import RecordStore
    from ormbehaviors.records.record import Record

BEFORE_VALIDATE = "beforeValidate"
AFTER_VALIDATE = "afterValidate"
BEFORE_INSERT = "beforeInsert"
AFTER_INSERT = "afterInsert"
BEFORE_UPDATE = "beforeUpdate"
AFTER_UPDATE = "afterUpdate"
BEFORE_DELETE = "beforeDelete"
AFTER_DELETE = "afterDelete"

VALID_HOOK_POINTS = (
    BEFORE_VALIDATE,
    AFTER_VALIDATE,
    BEFORE_INSERT,
    AFTER_INSERT,
    BEFORE_UPDATE,
    AFTER_UPDATE,
    BEFORE_DELETE,
    AFTER_DELETE,
)


class Operation(Enum):
    """The type of operation in flight."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class UserContext:
    """Identity of the caller performing the operation.

    Attributes:
        tenant_id: The tenant/client ID the user belongs to
        user_id: The authenticated user's ID
        roles: List of role names the user has
    """

    tenant_id: str | None = None
    user_id: Any = None
    roles: list[str] = field(default_factory=list)


@dataclass
class HookContext:
    """Runtime context passed to every behavior handler.

    Attributes:
        operation: The current operation (create, update, delete)
        record: The record being saved or deleted (mutable)
        conn: Connection whose transaction the operation runs in
        store: Record store for additional queries and shifts
        services: The RecordService running the operation (nested saves)
        user_context: Caller identity, if any
        hook_point: The hook point currently being dispatched
        changes: Attributes written by the insert/update (after* points only)
        is_valid: Cleared by a handler to abort the operation
    """

    operation: Operation
    record: Record
    conn: Connection
    store: RecordStore
    services: Any = None  # RecordService instance (avoids circular import)
    user_context: UserContext | None = None
    hook_point: str | None = None
    changes: dict[str, Any] | None = None
    is_valid: bool = True

    @property
    def entity(self) -> EntityModel:
        return self.record.entity

    @property
    def original(self) -> dict[str, Any] | None:
        """Persisted attribute values (None for a record not yet inserted)."""
        return self.record.old_attributes


def compute_changes(
    record: dict[str, Any], original: dict[str, Any] | None
) -> dict[str, Any]:
    """Compute a diff of changed fields between record and original.

    Every field counts as changed when original is None (inserts).
    Returns a dict of {field: new_value} for fields that differ.
    """
    if original is None:
        return dict(record)

    changes: dict[str, Any] = {}
    for key, value in record.items():
        if key not in original or original[key] != value:
            changes[key] = value

    return changes
