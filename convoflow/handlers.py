"""Handler port: named units of business logic invoked by states."""

from __future__ import annotations

import abc
from typing import Awaitable, Callable, Optional

from .contracts import HandlerResult, WorkflowContext

HandlerFunc = Callable[[WorkflowContext, str], Awaitable[HandlerResult]]


class WorkflowHandler(metaclass=abc.ABCMeta):
    """Base class for handlers registered with the engine."""

    name: str

    @abc.abstractmethod
    async def execute(
        self, context: WorkflowContext, user_input: str = ""
    ) -> HandlerResult:
        """Run the handler for ``context`` and the current user input."""
        raise NotImplementedError


class FunctionHandler(WorkflowHandler):
    """Adapt a plain coroutine function to the handler interface."""

    def __init__(self, name: str, func: HandlerFunc) -> None:
        self.name = name
        self._func = func

    async def execute(
        self, context: WorkflowContext, user_input: str = ""
    ) -> HandlerResult:
        return await self._func(context, user_input)


def handler(name: Optional[str] = None) -> Callable[[HandlerFunc], FunctionHandler]:
    """Decorator turning a coroutine function into a ``FunctionHandler``."""

    def decorator(func: HandlerFunc) -> FunctionHandler:
        return FunctionHandler(name or func.__name__, func)

    return decorator
