"""Records and the persistence lifecycle that runs their behaviors."""

from ormbehaviors.records.record import Record
from ormbehaviors.records.service import RecordService

__all__ = ["Record", "RecordService"]
