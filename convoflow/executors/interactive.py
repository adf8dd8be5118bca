"""Executors for states that wait for, or check, user input."""

from __future__ import annotations

import logging

from ..contracts import StepResult, WorkflowContext
from ..definitions import State, StateType
from ..validation import validate_input
from .base import StateExecutor

logger = logging.getLogger(__name__)

DEFAULT_INVALID_INPUT = "Entrée invalide"
DEFAULT_INVALID_CHOICE = "Choix invalide"


class InputExecutor(StateExecutor):
    """Prompt on the first visit, capture the reply on the second."""

    state_type = StateType.INPUT
    invalid_message = DEFAULT_INVALID_INPUT

    async def execute(
        self, state: State, context: WorkflowContext, user_input: str
    ) -> StepResult:
        if context.is_first_visit(state.id):
            return self.prompt_for_input(state, context)

        if state.validation:
            outcome = validate_input(user_input, state.validation)
            if not outcome.is_valid:
                logger.info(
                    f"Input rejected in state {state.id} for user {context.user_id}"
                )
                return StepResult(
                    success=False,
                    message=outcome.message or self.invalid_message,
                    stay_in_current_state=True,
                )
            return StepResult(success=True, data=outcome.data)

        return StepResult(success=True, data=self.unvalidated_data(state, user_input))

    def unvalidated_data(self, state: State, user_input: str) -> dict:
        return {state.id: user_input}


class DecisionExecutor(InputExecutor):
    """Like ``input``; the stored answer feeds transition conditions."""

    state_type = StateType.DECISION
    invalid_message = DEFAULT_INVALID_CHOICE

    def unvalidated_data(self, state: State, user_input: str) -> dict:
        return {"decision": user_input}


class ValidationExecutor(StateExecutor):
    """Validate the current input without a separate prompting turn."""

    state_type = StateType.VALIDATION

    async def execute(
        self, state: State, context: WorkflowContext, user_input: str
    ) -> StepResult:
        if not state.validation:
            return StepResult(success=True)

        outcome = validate_input(user_input, state.validation)
        if not outcome.is_valid:
            logger.info(
                f"Validation failed in state {state.id} for user {context.user_id}"
            )
            parts = [outcome.message or DEFAULT_INVALID_INPUT, self.render(state, context)]
            return StepResult(
                success=False,
                message="\n\n".join(p for p in parts if p),
                stay_in_current_state=True,
            )
        return StepResult(success=True, data=outcome.data)
