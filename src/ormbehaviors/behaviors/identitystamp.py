"""Created-by/updated-by identity stamps."""

from typing import Any

from ormbehaviors.behaviors.base import StampBehavior
from ormbehaviors.hooks import HookContext, behavior


@behavior("identitystamp")
class IdentitystampBehavior(StampBehavior):
    """Stamps the acting user's id on ``created_by`` and ``updated_by``.

    ``created_by`` is set on insert, ``updated_by`` on insert and update.
    Either attribute can be disabled with None. Without an explicit
    ``value`` the id comes from the context's UserContext (None when the
    operation runs without an identity).

    Example:
        service = RecordService(store, loader, user_context=UserContext(user_id=7))
        service.attach_behavior("Post", IdentitystampBehavior())
    """

    def __init__(
        self,
        created_by_attribute: str | None = "created_by",
        updated_by_attribute: str | None = "updated_by",
        value: Any = None,
        attributes: dict[str, str | list[str]] | None = None,
    ):
        super().__init__(created_by_attribute, updated_by_attribute, value, attributes)
        self.created_by_attribute = created_by_attribute
        self.updated_by_attribute = updated_by_attribute

    def get_value(self, ctx: HookContext) -> Any:
        if self.value is None:
            return ctx.user_context.user_id if ctx.user_context else None
        return super().get_value(ctx)
