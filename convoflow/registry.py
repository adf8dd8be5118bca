"""Registries of workflow definitions and handlers owned by one engine."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from .conditions import compile_condition
from .definitions import WorkflowDefinition, check_definition
from .errors import ConditionError, DefinitionError
from .handlers import WorkflowHandler

logger = logging.getLogger(__name__)


class WorkflowRegistry:
    """Validated workflow definitions keyed by id."""

    def __init__(self, definitions: Iterable[WorkflowDefinition] = ()) -> None:
        self._workflows: Dict[str, WorkflowDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: WorkflowDefinition) -> None:
        """Validate and store ``definition``.

        Raises:
            DefinitionError: If the definition is structurally invalid or one
                of its transition conditions or validation patterns cannot be
                parsed.
        """
        check_definition(definition)
        for transition in definition.transitions:
            if transition.condition is None:
                continue
            try:
                compile_condition(transition.condition)
            except ConditionError as exc:
                raise DefinitionError(
                    f"Workflow '{definition.id}': {exc}"
                ) from exc

        if definition.id in self._workflows:
            logger.warning(f"Workflow {definition.id} re-registered, replacing")
        self._workflows[definition.id] = definition
        logger.info(
            f"Workflow registered: {definition.id} ({definition.name}, "
            f"{len(definition.states)} states)"
        )

    def get(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        return self._workflows.get(workflow_id)

    def __contains__(self, workflow_id: object) -> bool:
        return workflow_id in self._workflows

    def available(self) -> List[WorkflowDefinition]:
        """Registered workflows flagged active, in registration order."""
        return [w for w in self._workflows.values() if w.is_active]

    def all(self) -> List[WorkflowDefinition]:
        return list(self._workflows.values())


class HandlerRegistry:
    """Handlers keyed by their ``name``."""

    def __init__(self, handlers: Iterable[WorkflowHandler] = ()) -> None:
        self._handlers: Dict[str, WorkflowHandler] = {}
        for handler in handlers:
            self.register(handler)

    def register(self, handler: WorkflowHandler) -> None:
        if not getattr(handler, "name", None):
            raise ValueError("Handler must define a non-empty name")
        if handler.name in self._handlers:
            logger.warning(f"Handler {handler.name} re-registered, replacing")
        self._handlers[handler.name] = handler
        logger.info(f"Handler registered: {handler.name}")

    def get(self, name: Optional[str]) -> Optional[WorkflowHandler]:
        if not name:
            return None
        return self._handlers.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def names(self) -> List[str]:
        return sorted(self._handlers)
