"""Behavior registry.

Maps the behavior type names used in entity metadata (``type: activeOrder``)
to behavior classes.
"""

import re
from collections.abc import Callable
from typing import Any, TypeVar

from ormbehaviors.errors import ConfigurationError

B = TypeVar("B", bound=type)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def snake_case(name: str) -> str:
    """Convert a camelCase option key to a snake_case argument name."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


class BehaviorRegistry:
    """Registry for behavior classes.

    Behaviors must be registered before entity metadata can reference
    them. Built-in behaviors register themselves through the @behavior
    decorator on import; register_builtin_behaviors() re-registers them
    after a clear().

    Example:
        @behavior("activeOrder")
        class ActiveOrderBehavior(Behavior):
            ...
    """

    _behaviors: dict[str, type] = {}

    @classmethod
    def register(cls, name: str, behavior_cls: type) -> None:
        """Register a behavior class by type name.

        Idempotent: re-registering the same name is a no-op.
        """
        if name in cls._behaviors:
            return
        cls._behaviors[name] = behavior_cls

    @classmethod
    def get(cls, name: str) -> type:
        """Get a registered behavior class by type name.

        Raises:
            ConfigurationError: If the type is not registered
        """
        if name not in cls._behaviors:
            raise ConfigurationError(
                f"Behavior '{name}' is not registered. "
                f"Known behaviors: {', '.join(cls.list_registered()) or 'none'}"
            )
        return cls._behaviors[name]

    @classmethod
    def create(cls, name: str, options: dict[str, Any]) -> Any:
        """Instantiate a behavior from metadata options (camelCase keys)."""
        behavior_cls = cls.get(name)
        kwargs = {snake_case(key): value for key, value in options.items()}
        try:
            return behavior_cls(**kwargs)
        except TypeError as e:
            raise ConfigurationError(f"Invalid options for behavior '{name}': {e}") from e

    @classmethod
    def is_registered(cls, name: str) -> bool:
        """Check if a behavior type is registered."""
        return name in cls._behaviors

    @classmethod
    def list_registered(cls) -> list[str]:
        """List all registered behavior type names."""
        return sorted(cls._behaviors.keys())

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._behaviors.clear()


def behavior(name: str) -> Callable[[B], B]:
    """Class decorator registering a behavior under a metadata type name."""

    def decorator(behavior_cls: B) -> B:
        BehaviorRegistry.register(name, behavior_cls)
        return behavior_cls

    return decorator
