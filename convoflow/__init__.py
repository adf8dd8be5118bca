"""convoflow: declarative conversational workflows for messaging assistants."""

from .contracts import (
    HandlerResult,
    StepRecord,
    StepResult,
    WorkflowContext,
    WorkflowStatus,
)
from .definitions import (
    PromptTemplate,
    State,
    StateType,
    Transition,
    ValidationRule,
    WorkflowDefinition,
)
from .engine import WorkflowEngine
from .errors import (
    ConditionError,
    ConvoflowError,
    DefinitionError,
    HandlerError,
    PersistenceError,
    StateNotFoundError,
    WorkflowInactiveError,
    WorkflowNotFoundError,
)
from .handlers import FunctionHandler, WorkflowHandler, handler
from .persistence import get_repository
from .turns import TurnOutcome, TurnRunner

__version__ = "0.1.0"
__all__ = [
    "HandlerResult",
    "StepRecord",
    "StepResult",
    "WorkflowContext",
    "WorkflowStatus",
    "PromptTemplate",
    "State",
    "StateType",
    "Transition",
    "ValidationRule",
    "WorkflowDefinition",
    "WorkflowEngine",
    "ConditionError",
    "ConvoflowError",
    "DefinitionError",
    "HandlerError",
    "PersistenceError",
    "StateNotFoundError",
    "WorkflowInactiveError",
    "WorkflowNotFoundError",
    "FunctionHandler",
    "WorkflowHandler",
    "handler",
    "get_repository",
    "TurnOutcome",
    "TurnRunner",
]
