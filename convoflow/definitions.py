"""Declarative workflow definitions."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import DefinitionError


class StateType(str, Enum):
    """Execution contract of a state."""

    INPUT = "input"
    VALIDATION = "validation"
    PROCESSING = "processing"
    OUTPUT = "output"
    DECISION = "decision"
    AI_PROCESSING = "ai_processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATE_IDS = frozenset({"completed", "cancelled"})


class ValidationRule(BaseModel):
    """One rule applied to the raw user input."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str
    field: str
    pattern: Optional[str] = None
    message: Optional[str] = None


class PromptTemplate(BaseModel):
    """Prompt given as ``{"template": "..."}`` instead of a plain string."""

    model_config = ConfigDict(frozen=True)

    template: str
    variables: List[str] = Field(default_factory=list)


class State(BaseModel):
    """One point in a workflow."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: StateType
    prompt: Optional[Union[str, PromptTemplate]] = None
    validation: List[ValidationRule] = Field(default_factory=list)
    handler: Optional[str] = None
    next_state: Optional[str] = None
    on_enter: Optional[str] = None
    on_exit: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class Transition(BaseModel):
    """Directed, optionally guarded edge between two states."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_state: str = Field(alias="from")
    to: str
    condition: Optional[str] = None
    priority: int = 0


class WorkflowDefinition(BaseModel):
    """Immutable description of a workflow."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    initial_state: str
    states: List[State] = Field(default_factory=list)
    transitions: List[Transition] = Field(default_factory=list)
    description: str = ""
    version: str = "1.0.0"
    is_active: bool = True
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def get_state(self, state_id: str) -> Optional[State]:
        """Return the state with ``state_id`` or ``None``."""
        return next((s for s in self.states if s.id == state_id), None)

    def has_state(self, state_id: str) -> bool:
        return self.get_state(state_id) is not None

    def transitions_from(self, state_id: str) -> List[Transition]:
        """Transitions leaving ``state_id`` in declaration order."""
        return [t for t in self.transitions if t.from_state == state_id]


def check_definition(definition: WorkflowDefinition) -> None:
    """Raise ``DefinitionError`` when ``definition`` is structurally invalid."""

    if not definition.id or not definition.name:
        raise DefinitionError("Workflow must have id and name")

    if not definition.initial_state:
        raise DefinitionError(f"Workflow '{definition.id}' must have an initial state")

    if not definition.states:
        raise DefinitionError(f"Workflow '{definition.id}' must have at least one state")

    seen: set[str] = set()
    for state in definition.states:
        if state.id in seen:
            raise DefinitionError(
                f"Duplicate state id '{state.id}' in workflow '{definition.id}'"
            )
        seen.add(state.id)

    if definition.initial_state not in seen:
        raise DefinitionError(
            f"Initial state '{definition.initial_state}' not found in states"
        )

    for transition in definition.transitions:
        if transition.from_state not in seen:
            raise DefinitionError(
                f"Transition from state '{transition.from_state}' not found"
            )
        if transition.to not in seen:
            raise DefinitionError(f"Transition to state '{transition.to}' not found")

    for state in definition.states:
        if state.next_state and state.next_state not in seen:
            raise DefinitionError(
                f"State '{state.id}' has unknown next_state '{state.next_state}'"
            )

    for state in definition.states:
        for rule in state.validation:
            if not rule.pattern:
                continue
            try:
                re.compile(rule.pattern)
            except re.error as exc:
                raise DefinitionError(
                    f"State '{state.id}' has invalid pattern {rule.pattern!r}: {exc}"
                ) from exc
