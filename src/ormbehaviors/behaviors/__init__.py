"""Built-in behaviors.

Importing this package registers every built-in behavior type with the
BehaviorRegistry, so entity metadata can refer to them by name.
"""

from ormbehaviors.behaviors.active_order import ActiveOrderBehavior
from ormbehaviors.behaviors.base import AttributeBehavior, Behavior, StampBehavior
from ormbehaviors.behaviors.enhanced_attribute import EnhancedAttributeBehavior
from ormbehaviors.behaviors.identitystamp import IdentitystampBehavior
from ormbehaviors.behaviors.related_populator import RelatedModelPopulatorBehavior
from ormbehaviors.behaviors.timestamp import TimestampBehavior
from ormbehaviors.behaviors.uuids import UuidBehavior
from ormbehaviors.hooks import BehaviorRegistry

BUILTIN_BEHAVIORS = {
    "activeOrder": ActiveOrderBehavior,
    "attribute": AttributeBehavior,
    "enhancedAttribute": EnhancedAttributeBehavior,
    "identitystamp": IdentitystampBehavior,
    "relatedModelPopulator": RelatedModelPopulatorBehavior,
    "timestamp": TimestampBehavior,
    "uuid": UuidBehavior,
}


def register_builtin_behaviors() -> None:
    """Register the built-in behaviors (again, after BehaviorRegistry.clear())."""
    for name, behavior_cls in BUILTIN_BEHAVIORS.items():
        BehaviorRegistry.register(name, behavior_cls)


__all__ = [
    "ActiveOrderBehavior",
    "AttributeBehavior",
    "Behavior",
    "BUILTIN_BEHAVIORS",
    "EnhancedAttributeBehavior",
    "IdentitystampBehavior",
    "RelatedModelPopulatorBehavior",
    "StampBehavior",
    "TimestampBehavior",
    "UuidBehavior",
    "register_builtin_behaviors",
]
