"""Created/updated timestamps."""

from datetime import datetime, timezone
from typing import Any

from ormbehaviors.behaviors.base import StampBehavior
from ormbehaviors.hooks import HookContext, behavior


@behavior("timestamp")
class TimestampBehavior(StampBehavior):
    """Sets ``created_at`` on insert and ``updated_at`` on insert and update.

    Either attribute can be disabled with None. The default value is the
    current UTC time.
    """

    def __init__(
        self,
        created_at_attribute: str | None = "created_at",
        updated_at_attribute: str | None = "updated_at",
        value: Any = None,
        attributes: dict[str, str | list[str]] | None = None,
    ):
        super().__init__(created_at_attribute, updated_at_attribute, value, attributes)
        self.created_at_attribute = created_at_attribute
        self.updated_at_attribute = updated_at_attribute

    def get_value(self, ctx: HookContext) -> Any:
        if self.value is None:
            return datetime.now(timezone.utc)
        return super().get_value(ctx)
