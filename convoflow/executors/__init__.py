"""State executors, one per state type."""

from __future__ import annotations

from typing import Dict

from ..definitions import StateType
from ..registry import HandlerRegistry
from .base import StateExecutor
from .interactive import DecisionExecutor, InputExecutor, ValidationExecutor
from .processing import (
    AIProcessingExecutor,
    OutputExecutor,
    ProcessingExecutor,
    TerminalExecutor,
)


def build_executors(handlers: HandlerRegistry) -> Dict[StateType, StateExecutor]:
    """Create the executor table used by an engine."""

    terminal = TerminalExecutor(handlers)
    return {
        StateType.INPUT: InputExecutor(handlers),
        StateType.VALIDATION: ValidationExecutor(handlers),
        StateType.PROCESSING: ProcessingExecutor(handlers),
        StateType.OUTPUT: OutputExecutor(handlers),
        StateType.DECISION: DecisionExecutor(handlers),
        StateType.AI_PROCESSING: AIProcessingExecutor(handlers),
        StateType.COMPLETED: terminal,
        StateType.CANCELLED: terminal,
    }


__all__ = [
    "StateExecutor",
    "InputExecutor",
    "DecisionExecutor",
    "ValidationExecutor",
    "ProcessingExecutor",
    "OutputExecutor",
    "AIProcessingExecutor",
    "TerminalExecutor",
    "build_executors",
]
