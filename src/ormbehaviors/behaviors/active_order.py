"""Dense per-group ordering column.

ActiveOrderBehavior keeps an integer order attribute contiguous (1..N)
within each group of rows sharing the same reference column values.
Inserting at position k shifts the rows at k and above up by one; moving
a row closes its old slot and opens the new one; deleting a row closes
its slot. Shifts are single ``UPDATE ... SET order = order +/- 1``
statements scoped to the group.

Example (YAML):
    behaviors:
      - type: activeOrder
        orderAttribute: position
        referenceColumns: [blog_id]
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from itertools import groupby
from typing import TYPE_CHECKING, Any

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from ormbehaviors.behaviors.base import Behavior, Handler
from ormbehaviors.errors import ConfigurationError
from ormbehaviors.hooks import (
    AFTER_DELETE,
    BEFORE_DELETE,
    BEFORE_INSERT,
    BEFORE_UPDATE,
    HookContext,
    behavior,
)
from ormbehaviors.persistence.adapter import Condition, RecordStore

if TYPE_CHECKING:
    from ormbehaviors.metadata.loader import EntityModel
    from ormbehaviors.records.record import Record
    from ormbehaviors.records.service import RecordService

logger = logging.getLogger(__name__)


def _position(value: Any) -> int | None:
    """A requested position as a positive int, or None when unset or invalid.

    Numeric strings ("3") and integral floats (3.0) count as positions;
    booleans and fractional values do not.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, int) and value > 0:
        return value
    return None


@behavior("activeOrder")
class ActiveOrderBehavior(Behavior):
    """Maintains a gap-free order column per group.

    Args:
        order_attribute: Integer attribute holding the position
        reference_columns: Attribute name(s) defining the group; empty
            means the whole table is one group
        prevent_initialization: Reject records without a valid position
            instead of appending them at the end of the group
    """

    def __init__(
        self,
        order_attribute: str = "order",
        reference_columns: str | list[str] | None = None,
        prevent_initialization: bool = False,
    ):
        self.order_attribute = order_attribute
        if reference_columns is None:
            self.reference_columns: list[str] = []
        elif isinstance(reference_columns, str):
            self.reference_columns = [reference_columns]
        else:
            self.reference_columns = list(reference_columns)
        self.prevent_initialization = prevent_initialization

    def attach(self, entity: EntityModel, service: RecordService) -> None:
        for name in [self.order_attribute, *self.reference_columns]:
            if not entity.has_field(name):
                raise ConfigurationError(
                    f"{type(self).__name__} on '{entity.name}' references unknown field '{name}'"
                )
        super().attach(entity, service)

    def events(self) -> dict[str, Handler]:
        return {
            BEFORE_INSERT: self.before_save,
            BEFORE_UPDATE: self.before_save,
            BEFORE_DELETE: self.before_delete,
            AFTER_DELETE: self.after_delete,
        }

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def group_conditions(self, values: Mapping[str, Any]) -> list[Condition]:
        """Conditions selecting the group of a row with these values."""
        return [
            {"field": name, "operator": "eq", "value": values.get(name)}
            for name in self.reference_columns
        ]

    def group_key(self, values: Mapping[str, Any]) -> tuple:
        return tuple(values.get(name) for name in self.reference_columns)

    def max_order(self, ctx: HookContext) -> int:
        """Number of rows in the record's group (the highest valid position)."""
        conditions = self.group_conditions(ctx.record.attributes)
        return ctx.store.count(ctx.conn, ctx.entity, conditions)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def before_save(self, ctx: HookContext) -> None:
        """Place the record at its position, shifting the rest of the group."""
        record = ctx.record
        if self.prevent_initialization and _position(record.get(self.order_attribute)) is None:
            ctx.is_valid = False
            return

        try:
            with ctx.store.transaction(ctx.conn) as conn:
                ctx.is_valid = self._reorder(ctx, conn)
        except SQLAlchemyError as e:
            logger.error("Reordering %s failed: %s", ctx.entity.name, e)
            record.add_error(type(self).__name__, str(e))
            ctx.is_valid = False

    def _persisted_row(self, ctx: HookContext, conn: Connection) -> dict[str, Any] | None:
        """Lock and re-read the stored row of a persisted record."""
        pk = ctx.store.primary_key_conditions(ctx.entity, ctx.record.old_attributes)
        ctx.store.lock(conn, ctx.entity, pk)
        return ctx.store.find_one(conn, ctx.entity, pk)

    def _follow_persisted(self, record: Record, persisted: Mapping[str, Any]) -> None:
        # Attributes left untouched since loading take the stored value
        for name in [self.order_attribute, *self.reference_columns]:
            if record.get(name) == record.get_old_attribute(name):
                record[name] = persisted.get(name)

    def _reorder(self, ctx: HookContext, conn: Connection) -> bool:
        store, entity, record = ctx.store, ctx.entity, ctx.record
        attribute = self.order_attribute
        is_new = record.is_new_record

        old_values: Mapping[str, Any] = {}
        if not is_new:
            persisted = self._persisted_row(ctx, conn)
            if persisted is None:
                logger.warning("%s record %s no longer exists", entity.name, record.primary_key)
                record.add_error(type(self).__name__, f"{entity.name} record no longer exists.")
                return False
            self._follow_persisted(record, persisted)
            old_values = persisted
        old_order = _position(old_values.get(attribute))

        requested = _position(record.get(attribute))
        if requested is None and self.prevent_initialization:
            return False

        new_group = self.group_conditions(record.attributes)
        old_group = self.group_conditions(old_values)
        changed_group = not is_new and self.group_key(record.attributes) != self.group_key(old_values)
        entering = is_new or changed_group

        store.lock(conn, entity, new_group)
        if changed_group:
            store.lock(conn, entity, old_group)

        # A row moving inside its group is already counted
        size = store.count(conn, entity, new_group)
        limit = size + 1 if entering else size

        order = limit if requested is None else min(requested, limit)
        record[attribute] = order

        if not entering and order == old_order:
            return True

        if not is_new:
            pk = store.primary_key_conditions(entity, old_values)
            # Extract
            extracted = store.count(conn, entity, old_group) + 1
            store.update_all(conn, entity, {attribute: extracted}, pk)
            if old_order is not None:
                store.update_all_counters(
                    conn,
                    entity,
                    {attribute: -1},
                    old_group + [{"field": attribute, "operator": "gt", "value": old_order}],
                )

        store.update_all_counters(
            conn,
            entity,
            {attribute: 1},
            new_group + [{"field": attribute, "operator": "gte", "value": order}],
        )

        if not is_new:
            placed = {name: record.get(name) for name in self.reference_columns}
            placed[attribute] = order
            store.update_all(conn, entity, placed, pk)

        logger.debug(
            "Placed %s %s at %s %d (was %s)",
            entity.name, record.primary_key, attribute, order, old_order,
        )
        return True

    def before_delete(self, ctx: HookContext) -> None:
        """Refresh the record's stored position and group before removal."""
        persisted = self._persisted_row(ctx, ctx.conn)
        if persisted is None:
            return
        ctx.record.old_attributes.update(
            {name: persisted.get(name) for name in [self.order_attribute, *self.reference_columns]}
        )

    def after_delete(self, ctx: HookContext) -> None:
        """Close the slot left by a deleted record.

        Runs in the delete's transaction; a failure propagates and rolls
        the delete back.
        """
        values = ctx.record.old_attributes or ctx.record.attributes
        order = _position(values.get(self.order_attribute))
        if order is None:
            return
        ctx.store.update_all_counters(
            ctx.conn,
            ctx.entity,
            {self.order_attribute: -1},
            self.group_conditions(values)
            + [{"field": self.order_attribute, "operator": "gt", "value": order}],
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def _rows_by_group(
        self, store: RecordStore, conn: Connection, entity: EntityModel
    ) -> list[tuple[tuple, list[dict[str, Any]]]]:
        rows = store.find_all(
            conn,
            entity,
            order_by=[*self.reference_columns, self.order_attribute, *entity.primary_key],
        )
        return [(key, list(group)) for key, group in groupby(rows, key=self.group_key)]

    def find_gaps(
        self, store: RecordStore, conn: Connection, entity: EntityModel
    ) -> list[dict[str, Any]]:
        """Groups whose positions are not exactly 1..N.

        Returns one entry per broken group with its reference values and
        the positions found.
        """
        broken = []
        for key, rows in self._rows_by_group(store, conn, entity):
            positions = [row[self.order_attribute] for row in rows]
            if positions != list(range(1, len(rows) + 1)):
                broken.append({
                    "group": dict(zip(self.reference_columns, key)),
                    "positions": positions,
                })
        return broken

    def normalize(self, store: RecordStore, conn: Connection, entity: EntityModel) -> int:
        """Renumber every group densely from 1, keeping the current order.

        Rows without a position go last, ties are broken by primary key.
        Returns the number of rows rewritten.
        """
        changed = 0
        for _key, rows in self._rows_by_group(store, conn, entity):
            for position, row in enumerate(rows, start=1):
                if row[self.order_attribute] == position:
                    continue
                store.update_all(
                    conn,
                    entity,
                    {self.order_attribute: position},
                    store.primary_key_conditions(entity, row),
                )
                changed += 1
        if changed:
            logger.info("Renumbered %d %s row(s)", changed, entity.name)
        return changed
