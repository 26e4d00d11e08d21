"""Hook execution service.

Dispatches one hook point to the behaviors attached to an entity,
sequentially in attachment order, and turns handler failures into an
aborted operation.
"""

import logging
from collections.abc import Sequence
from typing import Any

from ormbehaviors.hooks.types import HookContext

logger = logging.getLogger(__name__)


class HookService:
    """Runs behavior handlers for record lifecycle events.

    A handler aborts the operation by clearing ``ctx.is_valid``; the
    remaining handlers for that hook point are skipped. A handler that
    raises aborts the operation as well, with the failure recorded on
    the record.
    """

    def run(
        self,
        hook_point: str,
        behaviors: Sequence[Any],
        context: HookContext,
    ) -> bool:
        """Execute the handlers bound to a hook point.

        Args:
            hook_point: The lifecycle point (beforeInsert, afterDelete, ...)
            behaviors: Behaviors attached to the entity (in declared order)
            context: The hook context with the record in flight

        Returns:
            True if the operation may proceed.
        """
        context.hook_point = hook_point
        context.is_valid = True

        for behavior in behaviors:
            handler = behavior.events().get(hook_point)
            if handler is None:
                continue

            name = type(behavior).__name__
            try:
                handler(context)
            except Exception as e:
                logger.error(
                    "%s failed at %s on %s: %s",
                    name,
                    hook_point,
                    context.entity.name,
                    e,
                )
                context.record.add_error(name, f"{name} failed: {e}")
                context.is_valid = False

            if not context.is_valid:
                logger.debug(
                    "%s aborted %s of %s at %s",
                    name,
                    context.operation.value,
                    context.entity.name,
                    hook_point,
                )
                return False

        return True
