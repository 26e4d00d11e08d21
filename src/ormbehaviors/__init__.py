"""ormbehaviors: record lifecycle behaviors for SQLAlchemy-backed entities.

Behaviors attach to lifecycle hook points of an entity (beforeInsert,
afterDelete, ...) and keep derived columns consistent:

- ActiveOrderBehavior: dense per-group ordering column
- UuidBehavior: unique UUID assignment
- IdentitystampBehavior / TimestampBehavior: created/updated stamps
- EnhancedAttributeBehavior: attribute propagation to related records
- RelatedModelPopulatorBehavior: cascading save of has-one relations

Usage:
    from ormbehaviors import RecordService, SQLAlchemyRecordStore

    store = SQLAlchemyRecordStore("sqlite:///app.db")
    service = RecordService(store, loader)
    post = service.new("Post", {"blog_id": 1, "title": "Hello"})
    service.save(post)
"""

from ormbehaviors.behaviors import (
    ActiveOrderBehavior,
    AttributeBehavior,
    EnhancedAttributeBehavior,
    IdentitystampBehavior,
    RelatedModelPopulatorBehavior,
    TimestampBehavior,
    UuidBehavior,
)
from ormbehaviors.hooks import HookContext, UserContext
from ormbehaviors.persistence import DatabaseConfig, SQLAlchemyRecordStore
from ormbehaviors.records import Record, RecordService

__version__ = "0.1.0"

__all__ = [
    "ActiveOrderBehavior",
    "AttributeBehavior",
    "DatabaseConfig",
    "EnhancedAttributeBehavior",
    "HookContext",
    "IdentitystampBehavior",
    "Record",
    "RecordService",
    "RelatedModelPopulatorBehavior",
    "SQLAlchemyRecordStore",
    "TimestampBehavior",
    "UserContext",
    "UuidBehavior",
]
