"""RecordStore Protocol: the interface the behaviors and RecordService consume."""

from contextlib import AbstractContextManager
from typing import Any, Protocol, TypedDict, runtime_checkable

from sqlalchemy.engine import Connection

from ormbehaviors.metadata.loader import EntityModel


class Condition(TypedDict):
    """One filter condition: {"field": "order", "operator": "gt", "value": 3}."""

    field: str
    operator: str
    value: Any


@runtime_checkable
class RecordStore(Protocol):
    """Interface all record stores must implement.

    Every data operation takes the connection explicitly so the caller
    owns the transaction scope.
    """

    def connect(self) -> AbstractContextManager[Connection]: ...

    def transaction(
        self, conn: Connection | None = None
    ) -> AbstractContextManager[Connection]: ...

    def initialize_entity(self, entity: EntityModel) -> None: ...

    def primary_key_conditions(
        self, entity: EntityModel, values: dict[str, Any]
    ) -> list[Condition]: ...

    def count(
        self, conn: Connection, entity: EntityModel, conditions: list[Condition]
    ) -> int: ...

    def update_all(
        self,
        conn: Connection,
        entity: EntityModel,
        values: dict[str, Any],
        conditions: list[Condition],
    ) -> int: ...

    def update_all_counters(
        self,
        conn: Connection,
        entity: EntityModel,
        counters: dict[str, int],
        conditions: list[Condition],
    ) -> int: ...

    def lock(
        self, conn: Connection, entity: EntityModel, conditions: list[Condition]
    ) -> None: ...

    def insert(
        self, conn: Connection, entity: EntityModel, values: dict[str, Any]
    ) -> dict[str, Any]: ...

    def delete_all(
        self, conn: Connection, entity: EntityModel, conditions: list[Condition]
    ) -> int: ...

    def find_one(
        self, conn: Connection, entity: EntityModel, conditions: list[Condition]
    ) -> dict[str, Any] | None: ...

    def find_all(
        self,
        conn: Connection,
        entity: EntityModel,
        conditions: list[Condition] | None = None,
        order_by: list[str] | None = None,
    ) -> list[dict[str, Any]]: ...
