"""Record persistence with the behavior lifecycle.

RecordService is the single place hook points fire. Every save and delete
runs in one transaction (a SAVEPOINT when the caller passes a connection):

    save:   beforeValidate → required fields → afterValidate
            → beforeInsert/beforeUpdate → INSERT/UPDATE → afterInsert/afterUpdate
    delete: beforeDelete → DELETE → afterDelete

A behavior that clears ``ctx.is_valid`` (or raises) rolls the whole
operation back.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from ormbehaviors.errors import ConfigurationError, InvalidCallError, StorageError
from ormbehaviors.hooks import (
    AFTER_DELETE,
    AFTER_INSERT,
    AFTER_UPDATE,
    AFTER_VALIDATE,
    BEFORE_DELETE,
    BEFORE_INSERT,
    BEFORE_UPDATE,
    BEFORE_VALIDATE,
    BehaviorRegistry,
    HookContext,
    HookService,
    Operation,
    UserContext,
)
from ormbehaviors.metadata.loader import EntityModel, MetadataLoader
from ormbehaviors.persistence.adapter import Condition, RecordStore
from ormbehaviors.records.record import Record

logger = logging.getLogger(__name__)

B = TypeVar("B")


class _Rollback(Exception):
    """Raised inside a transaction block to roll it back quietly."""


class RecordService:
    """Validates, saves, deletes and loads records of metadata entities."""

    def __init__(
        self,
        store: RecordStore,
        loader: MetadataLoader,
        user_context: UserContext | None = None,
        hook_service: HookService | None = None,
    ):
        self.store = store
        self.loader = loader
        self.user_context = user_context
        self.hook_service = hook_service or HookService()
        self._behaviors: dict[str, list[Any]] = {}

    # ------------------------------------------------------------------
    # Entities and behaviors
    # ------------------------------------------------------------------

    def entity(self, name: str) -> EntityModel:
        entity = self.loader.get_entity(name)
        if entity is None:
            raise ConfigurationError(f"Entity '{name}' not found")
        return entity

    def initialize(self) -> None:
        """Create tables for every loaded entity."""
        for name in self.loader.list_entities():
            self.store.initialize_entity(self.entity(name))

    def behaviors_for(self, entity: EntityModel) -> list[Any]:
        """Behaviors attached to an entity, built from metadata on first use."""
        if entity.name not in self._behaviors:
            behaviors = []
            for config in entity.behaviors:
                instance = BehaviorRegistry.create(config.type, config.options)
                instance.attach(entity, self)
                behaviors.append(instance)
            self._behaviors[entity.name] = behaviors
            logger.debug(
                "Attached %d behavior(s) to %s", len(behaviors), entity.name
            )
        return self._behaviors[entity.name]

    def attach_behavior(self, entity_name: str, behavior: Any) -> None:
        """Attach a behavior instance to an entity in code."""
        entity = self.entity(entity_name)
        behavior.attach(entity, self)
        self.behaviors_for(entity).append(behavior)

    def get_behavior(self, entity_name: str, behavior_cls: type[B]) -> B | None:
        """First attached behavior of the given class, if any."""
        for behavior in self.behaviors_for(self.entity(entity_name)):
            if isinstance(behavior, behavior_cls):
                return behavior
        return None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def new(self, entity_name: str, attributes: dict[str, Any] | None = None) -> Record:
        """Build an unsaved record with field defaults applied."""
        entity = self.entity(entity_name)
        record = Record(entity=entity, attributes=entity.defaults())
        if attributes:
            record.set_attributes(attributes)
        return record

    def _conditions(self, criteria: dict[str, Any] | list[Condition]) -> list[Condition]:
        if isinstance(criteria, dict):
            return [
                {"field": name, "operator": "eq", "value": value}
                for name, value in criteria.items()
            ]
        return list(criteria)

    def _from_row(self, entity: EntityModel, row: dict[str, Any]) -> Record:
        record = Record(entity=entity, attributes=dict(row))
        record.mark_persisted()
        return record

    @contextmanager
    def _connection(self, conn: Connection | None) -> Iterator[Connection]:
        if conn is not None:
            yield conn
        else:
            with self.store.connect() as connection:
                yield connection

    def find_one(
        self,
        entity_name: str,
        criteria: dict[str, Any] | list[Condition],
        conn: Connection | None = None,
    ) -> Record | None:
        """Load the first record matching the criteria."""
        entity = self.entity(entity_name)
        with self._connection(conn) as c:
            row = self.store.find_one(c, entity, self._conditions(criteria))
        return self._from_row(entity, row) if row else None

    def find_all(
        self,
        entity_name: str,
        criteria: dict[str, Any] | list[Condition] | None = None,
        order_by: list[str] | None = None,
        conn: Connection | None = None,
    ) -> list[Record]:
        """Load every record matching the criteria."""
        entity = self.entity(entity_name)
        with self._connection(conn) as c:
            rows = self.store.find_all(
                c, entity, self._conditions(criteria or {}), order_by=order_by
            )
        return [self._from_row(entity, row) for row in rows]

    def refresh(self, record: Record, conn: Connection | None = None) -> bool:
        """Reload a persisted record's attributes from the store."""
        if record.is_new_record:
            return False
        conditions = self.store.primary_key_conditions(record.entity, record.old_attributes)
        with self._connection(conn) as c:
            row = self.store.find_one(c, record.entity, conditions)
        if row is None:
            return False
        record.attributes = dict(row)
        record.mark_persisted()
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def context(self, record: Record, operation: Operation, conn: Connection) -> HookContext:
        """Build the hook context for one lifecycle run."""
        return HookContext(
            operation=operation,
            record=record,
            conn=conn,
            store=self.store,
            services=self,
            user_context=self.user_context,
        )

    def validate(
        self,
        record: Record,
        attribute_names: list[str] | None = None,
        conn: Connection | None = None,
    ) -> bool:
        """Run validation hooks and required-field checks.

        Errors are collected on ``record.errors``.
        """
        with self._connection(conn) as c:
            return self._validate(c, record, attribute_names)

    def _validate(
        self, conn: Connection, record: Record, attribute_names: list[str] | None
    ) -> bool:
        record.clear_errors()
        behaviors = self.behaviors_for(record.entity)
        operation = Operation.CREATE if record.is_new_record else Operation.UPDATE
        ctx = self.context(record, operation, conn)

        if not self.hook_service.run(BEFORE_VALIDATE, behaviors, ctx):
            return False

        self._check_required(record, attribute_names)

        if not self.hook_service.run(AFTER_VALIDATE, behaviors, ctx):
            return False

        return not record.has_errors()

    def _check_required(self, record: Record, attribute_names: list[str] | None) -> None:
        for field in record.entity.fields:
            if not field.required:
                continue
            if attribute_names is not None and field.name not in attribute_names:
                continue
            if field.auto_increment and record.is_new_record:
                continue
            value = record.get(field.name)
            if value is None or value == "":
                record.add_error(field.name, f"{field.name} cannot be blank.")

    def save(
        self,
        record: Record,
        run_validation: bool = True,
        attribute_names: list[str] | None = None,
        conn: Connection | None = None,
    ) -> bool:
        """Insert or update a record with its behaviors.

        Args:
            record: The record to persist
            run_validation: Run validation hooks first
            attribute_names: For updates, write only these attributes
            conn: Run inside this connection's transaction (as a SAVEPOINT)

        Returns:
            True if the record was saved. On False the errors are on
            ``record.errors`` and nothing was written.
        """
        persisted = None if record.old_attributes is None else dict(record.old_attributes)
        primary_key = record.primary_key

        try:
            with self.store.transaction(conn) as tx:
                if not self._save(tx, record, run_validation, attribute_names):
                    raise _Rollback()
        except _Rollback:
            self._restore(record, persisted, primary_key)
            return False
        except SQLAlchemyError as e:
            logger.error("Saving %s failed: %s", record.entity.name, e)
            self._restore(record, persisted, primary_key)
            record.add_error(record.entity.name, str(e))
            return False

        return True

    def _save(
        self,
        conn: Connection,
        record: Record,
        run_validation: bool,
        attribute_names: list[str] | None,
    ) -> bool:
        entity = record.entity
        behaviors = self.behaviors_for(entity)
        is_new = record.is_new_record

        # Phase 1: validation
        if run_validation and not self._validate(conn, record, attribute_names):
            logger.debug("Validation failed for %s: %s", entity.name, record.errors)
            return False

        # Phase 2: before hooks (may modify the record)
        operation = Operation.CREATE if is_new else Operation.UPDATE
        ctx = self.context(record, operation, conn)
        if not self.hook_service.run(BEFORE_INSERT if is_new else BEFORE_UPDATE, behaviors, ctx):
            return False

        # Phase 3: write
        if is_new:
            values = {
                name: value for name, value in record.attributes.items()
                if entity.has_field(name)
            }
            record.attributes.update(self.store.insert(conn, entity, values))
            changes = record.dirty_attributes()
        else:
            changes = record.dirty_attributes(attribute_names)
            if changes:
                self.store.update_all(
                    conn,
                    entity,
                    changes,
                    self.store.primary_key_conditions(entity, record.old_attributes),
                )
        record.mark_persisted()

        # Phase 4: after hooks (same transaction)
        ctx.changes = changes
        return self.hook_service.run(AFTER_INSERT if is_new else AFTER_UPDATE, behaviors, ctx)

    def _restore(
        self,
        record: Record,
        persisted: dict[str, Any] | None,
        primary_key: dict[str, Any],
    ) -> None:
        """Put back the persisted state after a rolled back save."""
        record.old_attributes = persisted
        record.attributes.update(primary_key)

    def delete(self, record: Record, conn: Connection | None = None) -> bool:
        """Delete a persisted record with its behaviors.

        Raises:
            InvalidCallError: If the record was never saved
        """
        if record.is_new_record:
            raise InvalidCallError(
                f"Cannot delete a new {record.entity.name} record"
            )

        entity = record.entity
        behaviors = self.behaviors_for(entity)

        try:
            with self.store.transaction(conn) as tx:
                ctx = self.context(record, Operation.DELETE, tx)

                if not self.hook_service.run(BEFORE_DELETE, behaviors, ctx):
                    raise _Rollback()

                deleted = self.store.delete_all(
                    tx, entity, self.store.primary_key_conditions(entity, record.old_attributes)
                )
                if deleted == 0:
                    logger.warning("%s record %s no longer exists", entity.name, record.primary_key)
                    raise _Rollback()

                if not self.hook_service.run(AFTER_DELETE, behaviors, ctx):
                    raise _Rollback()
        except _Rollback:
            return False
        except SQLAlchemyError as e:
            logger.error("Deleting %s failed: %s", entity.name, e)
            record.add_error(entity.name, str(e))
            return False

        record.old_attributes = None
        return True

    def update_attributes(
        self,
        record: Record,
        values: dict[str, Any],
        conn: Connection | None = None,
    ) -> int:
        """Write attributes of a persisted record directly, without hooks.

        Raises:
            InvalidCallError: If the record was never saved
            StorageError: If the store rejects the update
        """
        if record.is_new_record:
            raise InvalidCallError(
                f"Cannot update attributes of a new {record.entity.name} record"
            )

        record.attributes.update(values)
        conditions = self.store.primary_key_conditions(record.entity, record.old_attributes)
        try:
            with self.store.transaction(conn) as tx:
                count = self.store.update_all(tx, record.entity, values, conditions)
        except SQLAlchemyError as e:
            raise StorageError(f"Updating {record.entity.name} failed: {e}") from e

        record.old_attributes.update(values)
        return count
