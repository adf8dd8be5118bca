"""Caller-side handling of one inbound user message."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from pydantic import BaseModel

from .contracts import StepResult, WorkflowContext
from .engine import WorkflowEngine
from .errors import PersistenceError

logger = logging.getLogger(__name__)


class TurnOutcome(BaseModel):
    """What one user turn produced."""

    reply: Optional[str] = None
    result: Optional[StepResult] = None
    context: Optional[WorkflowContext] = None
    hops: int = 0

    @property
    def completed(self) -> bool:
        return bool(self.result and self.result.completed)


class TurnRunner:
    """Run user turns against an engine.

    After the step triggered by the user's message, message-less steps are
    chained with empty input, at most ``max_auto_advance`` times, so silent
    processing states do not need a user reply in between. Turns for the
    same user are serialised with a per-user lock; this only protects a
    single process.
    """

    def __init__(
        self, engine: WorkflowEngine, max_auto_advance: Optional[int] = None
    ) -> None:
        self._engine = engine
        self.max_auto_advance = (
            engine.settings.max_auto_advance
            if max_auto_advance is None
            else max_auto_advance
        )
        # user id -> (lock, number of turns holding or waiting on it)
        self._locks: Dict[str, Tuple[asyncio.Lock, int]] = {}

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        """Hold the user's lock; drop it once no other turn needs it."""
        lock, users = self._locks.get(user_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[user_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[user_id]
            if users == 1:
                del self._locks[user_id]
            else:
                self._locks[user_id] = (lock, users - 1)

    def _apology(self) -> TurnOutcome:
        return TurnOutcome(reply=self._engine.settings.fallback_message)

    async def start(
        self,
        user_id: str,
        workflow_id: str,
        initial_data: Optional[Dict[str, Any]] = None,
    ) -> TurnOutcome:
        """Start ``workflow_id`` and run its first turn with empty input."""
        async with self._user_lock(user_id):
            try:
                context = await self._engine.start_workflow(
                    user_id, workflow_id, initial_data
                )
                return await self._advance(user_id, context, "")
            except PersistenceError:
                logger.exception(f"Could not start {workflow_id} for user {user_id}")
                return self._apology()

    async def handle_message(self, user_id: str, text: str) -> TurnOutcome:
        """Feed ``text`` to the user's active workflow.

        Returns an outcome with ``reply=None`` when the user has no active
        workflow, so the caller can route the message elsewhere.
        """
        async with self._user_lock(user_id):
            try:
                context = await self._engine.get_active_workflow(user_id)
                if context is None:
                    return TurnOutcome()
                return await self._advance(user_id, context, text)
            except PersistenceError:
                logger.exception(f"Turn aborted for user {user_id}")
                return self._apology()

    async def _advance(
        self, user_id: str, context: WorkflowContext, text: str
    ) -> TurnOutcome:
        messages: List[str] = []
        result = await self._engine.execute_step(user_id, context, text)
        if result.message:
            messages.append(result.message)

        hops = 0
        while result.needs_auto_advance and hops < self.max_auto_advance:
            hops += 1
            result = await self._engine.execute_step(user_id, context, "")
            if result.message:
                messages.append(result.message)

        if result.needs_auto_advance:
            logger.warning(
                f"Auto-advance limit ({self.max_auto_advance}) reached for user "
                f"{user_id} at state {context.current_state}"
            )

        return TurnOutcome(
            reply="\n\n".join(messages),
            result=result,
            context=context,
            hops=hops,
        )
