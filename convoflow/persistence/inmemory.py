"""In-memory implementation of the context repository."""

from __future__ import annotations

from typing import Dict

from ..contracts import WorkflowContext
from .repository import OPEN_STATUSES, ContextRepository


class InMemoryContextRepository(ContextRepository):
    """Store workflow contexts in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts. Stored contexts are deep copies, so
    callers never share mutable state with the store.
    """

    def __init__(self) -> None:
        self._contexts: Dict[int, WorkflowContext] = {}
        self._next_id = 0

    # ------------------------------------------------------------------
    async def save_context(self, user_id: str, context: WorkflowContext) -> None:
        if context.id is None:
            self._next_id += 1
            context.id = self._next_id
        stored = context.model_copy(deep=True)
        stored.user_id = user_id
        self._contexts[context.id] = stored

    async def load_active_context(self, user_id: str) -> WorkflowContext | None:
        candidates = [
            c
            for c in self._contexts.values()
            if c.user_id == user_id and c.status in OPEN_STATUSES
        ]
        if not candidates:
            return None
        latest = max(candidates, key=lambda c: (c.updated_at, c.id))
        return latest.model_copy(deep=True)

    async def list_contexts(self, user_id: str | None = None) -> list[WorkflowContext]:
        contexts = [
            c.model_copy(deep=True)
            for c in self._contexts.values()
            if user_id is None or c.user_id == user_id
        ]
        contexts.sort(key=lambda c: (c.updated_at, c.id), reverse=True)
        return contexts
