"""Population and cascading save of has-one related records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ormbehaviors.behaviors.base import Behavior, Handler
from ormbehaviors.errors import RelatedSaveError
from ormbehaviors.hooks import AFTER_INSERT, AFTER_UPDATE, AFTER_VALIDATE, HookContext, behavior
from ormbehaviors.metadata.loader import RelationConfig

if TYPE_CHECKING:
    from ormbehaviors.metadata.loader import EntityModel
    from ormbehaviors.records.record import Record
    from ormbehaviors.records.service import RecordService

logger = logging.getLogger(__name__)


@behavior("relatedModelPopulator")
class RelatedModelPopulatorBehavior(Behavior):
    """Validates and saves populated has-one relations with their owner.

    Related records live in ``record.related[<relation>]``. They are
    validated when the owner is, and saved after the owner is inserted or
    updated; the related key is then written to the owner's foreign key.
    A related save failure rolls back the owner's save.

    Example:
        populator = service.get_behavior("Post", RelatedModelPopulatorBehavior)
        post = service.new("Post")
        populator.load(post, {"Post": {"title": "Hi", "Author": {"name": "Ann"}}})
        service.save(post)
    """

    def __init__(self, relations: str | list[str] | None = None):
        self.relations = relations or []
        self._related_map: dict[str, RelationConfig] = {}
        self._saving = False

    def attach(self, entity: EntityModel, service: RecordService) -> None:
        super().attach(entity, service)
        self.set_relations(self.relations)

    def events(self) -> dict[str, Handler]:
        return {
            AFTER_VALIDATE: self.validate_related_models,
            AFTER_INSERT: self.save_related_models,
            AFTER_UPDATE: self.save_related_models,
        }

    # ------------------------------------------------------------------
    # Relation map
    # ------------------------------------------------------------------

    @property
    def related_map(self) -> dict[str, RelationConfig]:
        return dict(self._related_map)

    def set_relations(self, names: str | list[str]) -> None:
        if isinstance(names, str):
            names = [names]
        for name in names:
            self.add_relation(name)

    def add_relation(self, name: str) -> None:
        """Track a relation declared on the owner entity; unknown names are ignored."""
        relation = self.owner.relations.get(name) if self.owner else None
        if relation is None:
            logger.warning("Ignoring unknown relation '%s'", name)
            return
        self._related_map[name] = relation

    def remove_relation(self, name: str) -> None:
        self._related_map.pop(name, None)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def validate_related_models(self, ctx: HookContext) -> None:
        """Validate populated related records, copying errors to the owner.

        Every related record is validated so all errors are reported, not
        just the first relation's.
        """
        for name in self._related_map:
            related = ctx.record.related.get(name)
            if related is None:
                continue
            if not ctx.services.validate(related, conn=ctx.conn):
                ctx.is_valid = False
                for attribute, messages in related.errors.items():
                    for message in messages:
                        ctx.record.add_error(f"{name}[{attribute}]", message)

    def save_related_models(self, ctx: HookContext) -> None:
        """Save populated related records and link them to the owner.

        Raises:
            RelatedSaveError: If a related record cannot be saved
        """
        if self._saving:
            return
        self._saving = True
        try:
            links: dict[str, Any] = {}
            for name, relation in self._related_map.items():
                related = ctx.record.related.get(name)
                if related is None:
                    continue
                if not ctx.services.save(related, run_validation=False, conn=ctx.conn):
                    raise RelatedSaveError(name, related.errors)
                key = relation.references or related.entity.primary_key[0]
                links[relation.foreign_key] = related.get(key)
            if links:
                ctx.services.update_attributes(ctx.record, links, conn=ctx.conn)
        finally:
            self._saving = False

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, record: Record, data: dict[str, Any], scope: str | None = None) -> bool:
        """Assign submitted data to the owner and its related records.

        Args:
            record: The owner record
            data: Submitted values, keyed by entity name
            scope: Key of the owner's values in ``data`` (default: the
                owner's entity name); ``""`` means ``data`` itself

        Returns:
            False if ``data`` holds nothing for the owner.
        """
        if scope is None:
            scope = record.entity.name
        values = data if scope == "" else data.get(scope)
        if not values:
            return False

        record.set_attributes(values)
        for name, relation in self._related_map.items():
            self.load_related(record, values, name, relation)
        return True

    def load_related(
        self,
        record: Record,
        values: dict[str, Any],
        name: str,
        relation: RelationConfig,
    ) -> bool:
        """Populate one relation, creating the related record if needed."""
        related = record.related.get(name)
        if related is None:
            related = self.service.new(relation.entity)
            record.related[name] = related

        related_values = values.get(relation.entity)
        if not related_values:
            return False
        related.set_attributes(related_values)
        return True
