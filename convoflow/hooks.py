"""Side-effect hooks run when a state is entered or left."""

from __future__ import annotations

import logging
from typing import Optional

from .contracts import WorkflowContext
from .registry import HandlerRegistry

logger = logging.getLogger(__name__)


class HookRunner:
    """Invoke named handlers for their side effects only.

    A hook's result is discarded and any exception it raises is logged and
    suppressed, so a hook can never fail the step that contains it.
    """

    def __init__(self, handlers: HandlerRegistry) -> None:
        self._handlers = handlers

    async def run(
        self, hook_name: Optional[str], context: WorkflowContext, user_input: str
    ) -> bool:
        """Run ``hook_name``; return ``True`` if it ran without raising."""
        if not hook_name:
            return False
        hook = self._handlers.get(hook_name)
        if hook is None:
            logger.warning(
                f"Hook {hook_name} is not registered (workflow {context.workflow_id})"
            )
            return False
        try:
            await hook.execute(context, user_input)
        except Exception:
            logger.exception(
                f"Error executing hook {hook_name} for user {context.user_id} "
                f"in state {context.current_state}"
            )
            return False
        return True
