"""Base interface for state executors."""

from __future__ import annotations

import abc
import logging

from ..contracts import HandlerResult, StepResult, WorkflowContext
from ..definitions import State, StateType
from ..errors import HandlerError
from ..handlers import WorkflowHandler
from ..prompts import render_prompt
from ..registry import HandlerRegistry

logger = logging.getLogger(__name__)

DEFAULT_PROCESSING_ERROR = "Erreur lors du traitement"


class StateExecutor(metaclass=abc.ABCMeta):
    """Execution strategy for one state type."""

    state_type: StateType

    def __init__(self, handlers: HandlerRegistry) -> None:
        self._handlers = handlers

    @abc.abstractmethod
    async def execute(
        self, state: State, context: WorkflowContext, user_input: str
    ) -> StepResult:
        """Execute ``state`` for ``context`` and return the step outcome."""
        raise NotImplementedError

    def render(self, state: State, context: WorkflowContext) -> str:
        return render_prompt(state.prompt, context.data)

    def prompt_for_input(self, state: State, context: WorkflowContext) -> StepResult:
        """Show the state's prompt and wait for the user's reply."""
        return StepResult(
            success=True,
            message=self.render(state, context),
            stay_in_current_state=True,
        )

    async def call_handler(
        self, handler: WorkflowHandler, context: WorkflowContext, user_input: str
    ) -> HandlerResult:
        """Invoke ``handler``, turning a raised ``HandlerError`` into a failure."""
        try:
            return await handler.execute(context, user_input)
        except HandlerError as exc:
            logger.warning(f"Handler {handler.name} raised: {exc}")
            return HandlerResult(success=False, error=str(exc))

    @staticmethod
    def handler_failure(result: HandlerResult) -> StepResult:
        return StepResult(
            success=False,
            message=result.error or DEFAULT_PROCESSING_ERROR,
            error=result.error or DEFAULT_PROCESSING_ERROR,
        )
