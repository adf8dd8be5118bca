"""Exception hierarchy for convoflow."""

from __future__ import annotations


class ConvoflowError(Exception):
    """Base class for all convoflow errors."""


class DefinitionError(ConvoflowError, ValueError):
    """A workflow definition is structurally invalid.

    Raised at registration time only. Callers are expected to abort start-up.
    """


class WorkflowNotFoundError(ConvoflowError, LookupError):
    """No workflow is registered under the requested id."""

    def __init__(self, workflow_id: str) -> None:
        super().__init__(f"Workflow not found: {workflow_id}")
        self.workflow_id = workflow_id


class WorkflowInactiveError(ConvoflowError):
    """The workflow exists but is flagged inactive."""

    def __init__(self, workflow_id: str) -> None:
        super().__init__(f"Workflow is not active: {workflow_id}")
        self.workflow_id = workflow_id


class StateNotFoundError(ConvoflowError, LookupError):
    """A context references a state that its workflow does not define."""

    def __init__(self, workflow_id: str, state_id: str) -> None:
        super().__init__(f"State not found: {state_id} (workflow {workflow_id})")
        self.workflow_id = workflow_id
        self.state_id = state_id


class HandlerError(ConvoflowError):
    """A handler could not complete its work.

    Handlers may either return a failed ``HandlerResult`` or raise this error;
    the engine treats both the same way.
    """


class ConditionError(ConvoflowError, ValueError):
    """A transition condition uses syntax outside the supported subset."""


class PersistenceError(ConvoflowError):
    """Saving or loading a workflow context failed."""
