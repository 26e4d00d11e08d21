"""Record lifecycle hook system.

Extension points for logic that runs at specific points in the record
save/delete lifecycle:
- beforeValidate / afterValidate: around field validation (can abort)
- beforeInsert / beforeUpdate: before the row is written (can modify record, can abort)
- afterInsert / afterUpdate: after the row is written, same transaction (can abort)
- beforeDelete / afterDelete: around the row deletion, same transaction (can abort)

Usage:
    from ormbehaviors.hooks import behavior, HookContext
    from ormbehaviors.behaviors.base import Behavior

    @behavior("slug")
    class SlugBehavior(Behavior):
        def events(self):
            return {BEFORE_INSERT: self.make_slug}
"""

from ormbehaviors.hooks.registry import BehaviorRegistry, behavior, snake_case
from ormbehaviors.hooks.service import HookService
from ormbehaviors.hooks.types import (
    AFTER_DELETE,
    AFTER_INSERT,
    AFTER_UPDATE,
    AFTER_VALIDATE,
    BEFORE_DELETE,
    BEFORE_INSERT,
    BEFORE_UPDATE,
    BEFORE_VALIDATE,
    VALID_HOOK_POINTS,
    HookContext,
    Operation,
    UserContext,
    compute_changes,
)

__all__ = [
    "AFTER_DELETE",
    "AFTER_INSERT",
    "AFTER_UPDATE",
    "AFTER_VALIDATE",
    "BEFORE_DELETE",
    "BEFORE_INSERT",
    "BEFORE_UPDATE",
    "BEFORE_VALIDATE",
    "BehaviorRegistry",
    "HookContext",
    "HookService",
    "Operation",
    "UserContext",
    "VALID_HOOK_POINTS",
    "behavior",
    "compute_changes",
    "snake_case",
]
