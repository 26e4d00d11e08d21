"""Persistence layer - record store protocol and SQLAlchemy implementation."""

from ormbehaviors.persistence.adapter import Condition, RecordStore
from ormbehaviors.persistence.config import DatabaseConfig, create_store
from ormbehaviors.persistence.store import SQLAlchemyRecordStore

__all__ = [
    "Condition",
    "DatabaseConfig",
    "RecordStore",
    "SQLAlchemyRecordStore",
    "create_store",
]
