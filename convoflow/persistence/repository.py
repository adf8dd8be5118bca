"""Repository abstraction for workflow context persistence."""

from __future__ import annotations

from typing import Protocol

from ..contracts import WorkflowContext, WorkflowStatus

# Statuses a user's "open" context can have. At most one such context exists
# per user; the engine enforces it, not the store.
OPEN_STATUSES = (WorkflowStatus.ACTIVE, WorkflowStatus.PAUSED)


class ContextRepository(Protocol):
    """Protocol for workflow context persistence backends."""

    async def save_context(self, user_id: str, context: WorkflowContext) -> None:
        """Insert or update ``context``.

        New contexts (``context.id is None``) are inserted and receive the
        store-assigned id; existing ones are overwritten in full.
        """

    async def load_active_context(self, user_id: str) -> WorkflowContext | None:
        """Return the user's most recently updated active or paused context."""

    async def list_contexts(self, user_id: str | None = None) -> list[WorkflowContext]:
        """Return persisted contexts, newest first, optionally for one user."""
