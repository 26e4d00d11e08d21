"""Attribute assignment propagated to foreign records."""

from __future__ import annotations

from typing import Any

from ormbehaviors.behaviors.base import AttributeBehavior
from ormbehaviors.errors import ConfigurationError, RelatedSaveError
from ormbehaviors.hooks import HookContext, behavior


@behavior("enhancedAttribute")
class EnhancedAttributeBehavior(AttributeBehavior):
    """AttributeBehavior that can write to records of another entity.

    ``foreign_class`` is ``[entity_name, {foreign_attribute: owner_attribute}]``.
    When set, the value goes to every ``entity_name`` record whose
    ``foreign_attribute`` equals the owner's ``owner_attribute``; each one
    is saved without validation, writing only the stamped attributes, in
    the owner's transaction. Without it the owner itself is assigned.

    Example (YAML):
        behaviors:
          - type: enhancedAttribute
            attributes:
              afterUpdate: archived
            value: true
            foreignClass: [Comment, {post_id: id}]
    """

    def __init__(
        self,
        attributes: dict[str, str | list[str]] | None = None,
        value: Any = None,
        foreign_class: list | tuple | None = None,
    ):
        super().__init__(attributes, value)
        if foreign_class is not None:
            if len(foreign_class) != 2 or not isinstance(foreign_class[1], dict) or len(foreign_class[1]) != 1:
                raise ConfigurationError(
                    "foreign_class must be [entity_name, {foreign_attribute: owner_attribute}]"
                )
            foreign_class = (foreign_class[0], dict(foreign_class[1]))
        self.foreign_class = foreign_class

    def evaluate_attributes(self, ctx: HookContext) -> None:
        if self.foreign_class is None:
            super().evaluate_attributes(ctx)
            return

        names = self.attributes.get(ctx.hook_point, [])
        if not names:
            return

        value = self.get_value(ctx)
        services = ctx.services
        for foreign in self.get_foreign_records(ctx):
            for name in names:
                foreign[name] = value
            if not services.save(foreign, run_validation=False, attribute_names=names, conn=ctx.conn):
                raise RelatedSaveError(foreign.entity.name, foreign.errors)

    def get_foreign_records(self, ctx: HookContext) -> list:
        entity_name, link = self.foreign_class
        ((foreign_attribute, owner_attribute),) = link.items()
        return ctx.services.find_all(
            entity_name,
            {foreign_attribute: ctx.record.get(owner_attribute)},
            conn=ctx.conn,
        )
