"""Runtime contracts exchanged between the engine, handlers and storage."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowStatus(str, Enum):
    """Lifecycle status of a workflow context."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (
            WorkflowStatus.COMPLETED,
            WorkflowStatus.CANCELLED,
            WorkflowStatus.FAILED,
        )


class StepRecord(BaseModel):
    """Audit record of one executed step."""

    state_id: str
    state_name: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)
    input: Optional[str] = None
    output: Optional[str] = None
    success: bool
    error: Optional[str] = None
    duration_ms: Optional[float] = None


class WorkflowContext(BaseModel):
    """Per-user runtime instance of a workflow."""

    id: Optional[int] = None
    user_id: str
    workflow_id: str
    current_state: str
    data: Dict[str, Any] = Field(default_factory=dict)
    history: List[StepRecord] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    status: WorkflowStatus = WorkflowStatus.ACTIVE
    started_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None

    def last_step(self) -> Optional[StepRecord]:
        """Return the most recent history record, if any."""
        return self.history[-1] if self.history else None

    def is_first_visit(self, state_id: str) -> bool:
        """``True`` when the previous step did not execute ``state_id``."""
        last = self.last_step()
        return last is None or last.state_id != state_id

    def touch(self) -> None:
        self.updated_at = utcnow()

    def finish(self, status: WorkflowStatus, reason: Optional[str] = None) -> None:
        """Move the context into a terminal status."""
        self.status = status
        self.completed_at = utcnow()
        self.updated_at = self.completed_at
        if reason is not None:
            self.error_message = reason


class HandlerResult(BaseModel):
    """Value returned by a workflow handler."""

    success: bool
    output: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    next_state: Optional[str] = None
    error: Optional[str] = None


class StepResult(BaseModel):
    """Uniform outcome of executing one state."""

    success: bool
    message: str = ""
    completed: bool = False
    stay_in_current_state: bool = False
    next_state: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def needs_auto_advance(self) -> bool:
        """Whether the caller should silently execute the next state.

        A successful step that produced no message, did not finish the
        workflow and is not waiting for input can be chained within the same
        user turn.
        """
        return (
            self.success
            and not self.message
            and not self.completed
            and not self.stay_in_current_state
        )
