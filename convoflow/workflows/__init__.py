"""Built-in workflows and their handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from ..definitions import WorkflowDefinition
from ..handlers import WorkflowHandler
from .handlers import (
    GeneratePurchaseSummaryHandler,
    ProcessSubscriptionHandler,
    SaveUserNameHandler,
    ValidateUserNameHandler,
)
from .loader import load_workflow_file, parse_definition
from .name_collection import name_collection_workflow
from .product_purchase import product_purchase_workflow

if TYPE_CHECKING:
    from ..engine import WorkflowEngine

# Order matters: callers looking for a workflow to start try them in turn.
BUILTIN_WORKFLOWS: List[WorkflowDefinition] = [
    name_collection_workflow,
    product_purchase_workflow,
]


def builtin_handlers() -> List[WorkflowHandler]:
    return [
        ValidateUserNameHandler(),
        SaveUserNameHandler(),
        GeneratePurchaseSummaryHandler(),
        ProcessSubscriptionHandler(),
    ]


def register_builtin_workflows(engine: "WorkflowEngine") -> None:
    """Register the built-in workflows and handlers with ``engine``."""
    for handler in builtin_handlers():
        engine.register_handler(handler)
    for definition in BUILTIN_WORKFLOWS:
        engine.register_workflow(definition)


__all__ = [
    "BUILTIN_WORKFLOWS",
    "builtin_handlers",
    "register_builtin_workflows",
    "load_workflow_file",
    "parse_definition",
    "name_collection_workflow",
    "product_purchase_workflow",
    "ValidateUserNameHandler",
    "SaveUserNameHandler",
    "GeneratePurchaseSummaryHandler",
    "ProcessSubscriptionHandler",
]
