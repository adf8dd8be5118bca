"""Selection of the next state from declared transitions."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .conditions import evaluate_condition
from .definitions import State, WorkflowDefinition
from .errors import ConditionError

logger = logging.getLogger(__name__)

DEFAULT_NEXT_STATE = "completed"


class TransitionResolver:
    """Pick the target of the first matching transition.

    Transitions leaving the current state are tried by descending priority,
    keeping declaration order for equal priorities. A transition without a
    condition always matches.
    """

    def match(
        self,
        workflow: WorkflowDefinition,
        state: State,
        data: Mapping[str, Any],
    ) -> Optional[str]:
        candidates = sorted(
            workflow.transitions_from(state.id), key=lambda t: t.priority, reverse=True
        )
        for transition in candidates:
            if transition.condition is None:
                return transition.to
            try:
                matched = evaluate_condition(transition.condition, data)
            except ConditionError as exc:
                logger.error(
                    f"Skipping transition {transition.from_state} -> {transition.to}: {exc}"
                )
                continue
            if matched:
                logger.debug(
                    f"Transition condition met: {transition.from_state} -> "
                    f"{transition.to} ({transition.condition})"
                )
                return transition.to
        return None

    def resolve(
        self,
        workflow: WorkflowDefinition,
        state: State,
        context_data: Mapping[str, Any],
        step_data: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Return the id of the state that follows ``state``.

        Conditions see ``step_data`` merged over ``context_data``. When no
        transition matches, the state's own ``next_state`` is used, and
        failing that the workflow ends as completed.
        """

        evaluation_data = {**context_data, **(step_data or {})}
        target = self.match(workflow, state, evaluation_data)
        if target is not None:
            return target
        if state.next_state:
            return state.next_state
        return DEFAULT_NEXT_STATE
