"""Executors for states that delegate to handlers."""

from __future__ import annotations

import logging

from ..contracts import StepResult, WorkflowContext
from ..definitions import State, StateType
from .base import DEFAULT_PROCESSING_ERROR, StateExecutor

logger = logging.getLogger(__name__)


class ProcessingExecutor(StateExecutor):
    """Run the state's handler, or pass through with the rendered prompt."""

    state_type = StateType.PROCESSING

    async def execute(
        self, state: State, context: WorkflowContext, user_input: str
    ) -> StepResult:
        handler = self._handlers.get(state.handler)
        if handler is None:
            if state.handler:
                logger.warning(
                    f"Handler {state.handler} not registered, state {state.id} "
                    "falls back to its prompt"
                )
            return StepResult(success=True, message=self.render(state, context))

        result = await self.call_handler(handler, context, user_input)
        if not result.success:
            return self.handler_failure(result)

        return StepResult(
            success=True,
            message=self.message_for(state, context, result.output),
            data=result.data,
            next_state=result.next_state,
        )

    def message_for(self, state: State, context: WorkflowContext, output) -> str:
        return output or ""


class OutputExecutor(ProcessingExecutor):
    """Presentational state: handler text when available, else the prompt."""

    state_type = StateType.OUTPUT

    def message_for(self, state: State, context: WorkflowContext, output) -> str:
        return output or self.render(state, context)


class AIProcessingExecutor(StateExecutor):
    """Delegate entirely to the state's handler; no fallback."""

    state_type = StateType.AI_PROCESSING

    async def execute(
        self, state: State, context: WorkflowContext, user_input: str
    ) -> StepResult:
        handler = self._handlers.get(state.handler)
        if handler is None:
            error = f"AI handler not available: {state.handler or '<none>'}"
            logger.error(f"{error} (state {state.id}, workflow {context.workflow_id})")
            return StepResult(
                success=False, message=DEFAULT_PROCESSING_ERROR, error=error
            )

        result = await self.call_handler(handler, context, user_input)
        if not result.success:
            return self.handler_failure(result)
        return StepResult(
            success=True,
            message=result.output or "",
            data=result.data,
            next_state=result.next_state,
        )


class TerminalExecutor(StateExecutor):
    """``completed`` and ``cancelled`` states end the workflow immediately."""

    state_type = StateType.COMPLETED

    async def execute(
        self, state: State, context: WorkflowContext, user_input: str
    ) -> StepResult:
        return StepResult(success=True, message="Workflow terminé", completed=True)
