"""UUID assignment."""

import logging
import os
import time
import uuid

from ormbehaviors.behaviors.base import Behavior, Handler
from ormbehaviors.hooks import BEFORE_INSERT, BEFORE_VALIDATE, HookContext, behavior

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE_URL = "urn:ormbehaviors"


@behavior("uuid")
class UuidBehavior(Behavior):
    """Fills an empty UUID attribute with a value unique in the table.

    Values are version-5 UUIDs in a namespace derived from
    ``namespace_url`` (``ORMBEHAVIORS_UUID_NAMESPACE_URL`` by default).
    Existing values are never replaced.
    """

    def __init__(self, uuid_attribute: str = "uuid", namespace_url: str | None = None):
        self.uuid_attribute = uuid_attribute
        self.namespace_url = namespace_url or os.environ.get(
            "ORMBEHAVIORS_UUID_NAMESPACE_URL", DEFAULT_NAMESPACE_URL
        )
        self.namespace = uuid.uuid5(uuid.NAMESPACE_URL, self.namespace_url)

    def events(self) -> dict[str, Handler]:
        # beforeInsert covers saves that skip validation
        return {BEFORE_VALIDATE: self.assign_uuid, BEFORE_INSERT: self.assign_uuid}

    def assign_uuid(self, ctx: HookContext) -> None:
        if ctx.record.get(self.uuid_attribute):
            return
        ctx.record[self.uuid_attribute] = self.generate(ctx)

    def generate(self, ctx: HookContext) -> str:
        """Generate a UUID string no row of the entity holds yet."""
        while True:
            name = f"{ctx.entity.name}:{uuid.uuid4()}:{time.time()}"
            candidate = str(uuid.uuid5(self.namespace, name))
            if not self._exists(ctx, candidate):
                return candidate
            logger.warning("UUID collision on %s.%s, regenerating", ctx.entity.name, self.uuid_attribute)

    def _exists(self, ctx: HookContext, value: str) -> bool:
        conditions = [{"field": self.uuid_attribute, "operator": "eq", "value": value}]
        return ctx.store.count(ctx.conn, ctx.entity, conditions) > 0
