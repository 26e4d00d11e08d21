"""Behavior base classes."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ormbehaviors.errors import ConfigurationError, InvalidCallError
from ormbehaviors.hooks import (
    BEFORE_INSERT,
    BEFORE_UPDATE,
    VALID_HOOK_POINTS,
    HookContext,
    Operation,
    behavior,
)

if TYPE_CHECKING:
    from ormbehaviors.metadata.loader import EntityModel
    from ormbehaviors.records.record import Record
    from ormbehaviors.records.service import RecordService

Handler = Callable[[HookContext], None]


class Behavior:
    """An object bound to hook points of one entity's lifecycle.

    Subclasses return their handlers from events(); RecordService calls
    attach() once, when the behavior is added to an entity.
    """

    owner: EntityModel | None = None
    service: RecordService | None = None

    def attach(self, entity: EntityModel, service: RecordService) -> None:
        self.owner = entity
        self.service = service

    def events(self) -> dict[str, Handler]:
        return {}


@behavior("attribute")
class AttributeBehavior(Behavior):
    """Assigns a value to attributes of the record when a hook point fires.

    Example (YAML):
        behaviors:
          - type: attribute
            attributes:
              beforeInsert: [status]
            value: draft
    """

    def __init__(
        self,
        attributes: dict[str, str | list[str]] | None = None,
        value: Any = None,
    ):
        self.attributes: dict[str, list[str]] = {}
        for hook_point, names in (attributes or {}).items():
            if hook_point not in VALID_HOOK_POINTS:
                raise ConfigurationError(
                    f"Invalid hook point '{hook_point}'. "
                    f"Must be one of: {', '.join(VALID_HOOK_POINTS)}"
                )
            self.attributes[hook_point] = [names] if isinstance(names, str) else list(names)
        self.value = value

    def events(self) -> dict[str, Handler]:
        return {hook_point: self.evaluate_attributes for hook_point in self.attributes}

    def evaluate_attributes(self, ctx: HookContext) -> None:
        names = self.attributes.get(ctx.hook_point, [])
        if not names:
            return
        value = self.get_value(ctx)
        for name in names:
            ctx.record[name] = value

    def get_value(self, ctx: HookContext) -> Any:
        """The value to assign; a callable ``value`` is called with the context."""
        if callable(self.value):
            return self.value(ctx)
        return self.value


class StampBehavior(AttributeBehavior):
    """Created/updated attribute pair stamped on insert and update."""

    def __init__(
        self,
        created_attribute: str | None,
        updated_attribute: str | None,
        value: Any = None,
        attributes: dict[str, str | list[str]] | None = None,
    ):
        if attributes is None:
            attributes = {BEFORE_INSERT: [], BEFORE_UPDATE: []}
            if created_attribute:
                attributes[BEFORE_INSERT].append(created_attribute)
            if updated_attribute:
                attributes[BEFORE_INSERT].append(updated_attribute)
                attributes[BEFORE_UPDATE].append(updated_attribute)
            attributes = {point: names for point, names in attributes.items() if names}
        super().__init__(attributes, value)

    def touch(self, service: RecordService, record: Record, attribute: str) -> None:
        """Stamp one attribute of a persisted record and write it directly.

        No hooks run and no other attribute is written.

        Raises:
            InvalidCallError: If the record has not been saved yet
        """
        if record.is_new_record:
            raise InvalidCallError(
                f"Updating '{attribute}' is not possible on a new record."
            )
        with service.store.transaction() as conn:
            ctx = service.context(record, Operation.UPDATE, conn)
            service.update_attributes(record, {attribute: self.get_value(ctx)}, conn=conn)
