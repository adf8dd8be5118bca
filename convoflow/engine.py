"""Workflow engine: the public façade over definitions, executors and storage."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, List, Optional

from .config import EngineSettings
from .contracts import StepRecord, StepResult, WorkflowContext, WorkflowStatus
from .definitions import (
    TERMINAL_STATE_IDS,
    State,
    StateType,
    WorkflowDefinition,
)
from .errors import (
    PersistenceError,
    StateNotFoundError,
    WorkflowInactiveError,
    WorkflowNotFoundError,
)
from .executors import StateExecutor, build_executors
from .handlers import WorkflowHandler
from .hooks import HookRunner
from .persistence import ContextRepository, get_repository
from .prompts import render_prompt
from .registry import HandlerRegistry, WorkflowRegistry
from .transitions import TransitionResolver

logger = logging.getLogger(__name__)

NEW_WORKFLOW_REASON = "New workflow started"
ROLLBACK_UNAVAILABLE = "Impossible de revenir en arrière"
ROLLBACK_DONE = "Retour en arrière effectué"


class WorkflowEngine:
    """Drive per-user workflow contexts one step at a time.

    The engine keeps no session state between calls: every operation loads
    the user's context from the repository and saves it before returning.
    Registries are owned by the instance; build one engine at start-up and
    share it.
    """

    def __init__(
        self,
        repository: ContextRepository | None = None,
        settings: EngineSettings | None = None,
        workflows: Iterable[WorkflowDefinition] = (),
        handlers: Iterable[WorkflowHandler] = (),
    ) -> None:
        self._repository = repository or get_repository()
        self.settings = settings or EngineSettings()
        self.workflows = WorkflowRegistry()
        self.handlers = HandlerRegistry(handlers)
        self._hooks = HookRunner(self.handlers)
        self._executors: Dict[StateType, StateExecutor] = build_executors(self.handlers)
        self._resolver = TransitionResolver()
        for definition in workflows:
            self.register_workflow(definition)
        logger.info("WorkflowEngine initialized")

    # ------------------------------------------------------------------
    # Registration and lookups
    def register_workflow(self, definition: WorkflowDefinition) -> None:
        """Validate and register ``definition``; raises ``DefinitionError``."""
        self.workflows.register(definition)

    def register_handler(self, handler: WorkflowHandler) -> None:
        self.handlers.register(handler)

    def get_workflow(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        return self.workflows.get(workflow_id)

    def has_workflow(self, workflow_id: str) -> bool:
        return workflow_id in self.workflows

    def get_available_workflows(self) -> List[WorkflowDefinition]:
        return self.workflows.available()

    def get_first_state(self, context: WorkflowContext) -> State:
        """Return the initial state of ``context``'s workflow."""
        workflow = self.workflows.get(context.workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(context.workflow_id)
        state = workflow.get_state(workflow.initial_state)
        if state is None:
            raise StateNotFoundError(workflow.id, workflow.initial_state)
        return state

    # ------------------------------------------------------------------
    # Persistence glue
    async def _save(self, user_id: str, context: WorkflowContext) -> None:
        try:
            await self._repository.save_context(user_id, context)
        except Exception as exc:
            logger.error(
                f"Error saving workflow context for user {user_id} "
                f"(workflow {context.workflow_id}): {exc}"
            )
            raise PersistenceError(f"Could not save context for user {user_id}") from exc

    async def _load(self, user_id: str) -> WorkflowContext | None:
        try:
            return await self._repository.load_active_context(user_id)
        except Exception as exc:
            logger.error(f"Error loading workflow context for user {user_id}: {exc}")
            raise PersistenceError(f"Could not load context for user {user_id}") from exc

    # ------------------------------------------------------------------
    # Lifecycle
    async def start_workflow(
        self,
        user_id: str,
        workflow_id: str,
        initial_data: Optional[Dict[str, Any]] = None,
    ) -> WorkflowContext:
        """Create and persist a fresh context at the workflow's initial state.

        Any context the user still has open is cancelled first, so a user
        never has more than one active workflow.

        Raises:
            WorkflowNotFoundError: If ``workflow_id`` is not registered.
            WorkflowInactiveError: If the workflow is flagged inactive.
            PersistenceError: If the repository fails.
        """
        workflow = self.workflows.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        if not workflow.is_active:
            raise WorkflowInactiveError(workflow_id)

        existing = await self._load(user_id)
        if existing is not None:
            logger.warning(
                f"User {user_id} already has workflow {existing.workflow_id} open, "
                f"cancelling it to start {workflow_id}"
            )
            existing.finish(WorkflowStatus.CANCELLED, NEW_WORKFLOW_REASON)
            await self._save(user_id, existing)

        context = WorkflowContext(
            user_id=user_id,
            workflow_id=workflow_id,
            current_state=workflow.initial_state,
            data=dict(initial_data or {}),
        )
        await self._save(user_id, context)
        logger.info(
            f"Workflow {workflow_id} started for user {user_id} "
            f"at state {workflow.initial_state}"
        )
        return context

    async def get_active_workflow(self, user_id: str) -> WorkflowContext | None:
        """Return the user's active context, or ``None``."""
        context = await self._load(user_id)
        if context is None or context.status != WorkflowStatus.ACTIVE:
            return None
        return context

    async def cancel_workflow(self, user_id: str, reason: Optional[str] = None) -> bool:
        """Cancel the user's open workflow. ``False`` if there is none."""
        context = await self._load(user_id)
        if context is None:
            return False
        context.finish(WorkflowStatus.CANCELLED, reason)
        await self._save(user_id, context)
        logger.info(
            f"Workflow {context.workflow_id} cancelled for user {user_id}: {reason}"
        )
        return True

    async def pause_workflow(self, user_id: str, reason: Optional[str] = None) -> bool:
        """Pause the user's active workflow without moving its state."""
        context = await self._load(user_id)
        if context is None or context.status != WorkflowStatus.ACTIVE:
            return False
        context.status = WorkflowStatus.PAUSED
        if reason is not None:
            context.metadata["pause_reason"] = reason
        context.touch()
        await self._save(user_id, context)
        logger.info(f"Workflow {context.workflow_id} paused for user {user_id}")
        return True

    async def resume_workflow(self, user_id: str) -> bool:
        """Reactivate a paused workflow. ``False`` unless one is paused."""
        context = await self._load(user_id)
        if context is None or context.status != WorkflowStatus.PAUSED:
            return False
        context.status = WorkflowStatus.ACTIVE
        context.metadata.pop("pause_reason", None)
        context.touch()
        await self._save(user_id, context)
        logger.info(f"Workflow {context.workflow_id} resumed for user {user_id}")
        return True

    async def fail_workflow(self, user_id: str, error: str) -> bool:
        """Mark the user's open workflow as failed with ``error``."""
        context = await self._load(user_id)
        if context is None:
            return False
        context.finish(WorkflowStatus.FAILED, error)
        await self._save(user_id, context)
        logger.error(f"Workflow {context.workflow_id} failed for user {user_id}: {error}")
        return True

    # ------------------------------------------------------------------
    # Step execution
    def _failure(self, error: str) -> StepResult:
        return StepResult(
            success=False, message=self.settings.fallback_message, error=error
        )

    async def execute_step(
        self, user_id: str, context: WorkflowContext, user_input: str = ""
    ) -> StepResult:
        """Execute the context's current state once and persist the outcome.

        Returns a failed ``StepResult`` for missing workflows or states and
        for unexpected errors in state execution; only ``PersistenceError``
        escapes. When an unexpected error occurs nothing is saved, leaving
        the stored context as it was before the call.
        """
        started = time.perf_counter()

        if context.status != WorkflowStatus.ACTIVE:
            logger.warning(
                f"Refusing to execute {context.status.value} workflow "
                f"{context.workflow_id} for user {user_id}"
            )
            return self._failure(f"Workflow is {context.status.value}")

        state_id = context.current_state
        workflow = self.workflows.get(context.workflow_id)
        state = workflow.get_state(state_id) if workflow else None

        if workflow is None or state is None:
            missing = (
                WorkflowNotFoundError(context.workflow_id)
                if workflow is None
                else StateNotFoundError(workflow.id, state_id)
            )
            logger.error(f"Cannot execute step for user {user_id}: {missing}")
            result = self._failure(str(missing))
            state_name = None
        else:
            logger.info(
                f"Executing workflow step for user {user_id}: "
                f"{workflow.id}/{state.id} ({state.type.value})"
            )
            try:
                result = await self._run_state(workflow, state, context, user_input)
            except Exception as exc:
                logger.exception(
                    f"Error executing workflow step {workflow.id}/{state.id} "
                    f"for user {user_id}"
                )
                return self._failure(str(exc))
            state_name = state.name

        duration_ms = (time.perf_counter() - started) * 1000
        record = StepRecord(
            state_id=state_id,
            state_name=state_name,
            input=user_input,
            output=result.message,
            success=result.success,
            error=result.error,
            duration_ms=duration_ms,
        )
        if self.settings.save_history:
            context.history.append(record)
        else:
            context.history = [record]
        context.touch()

        await self._save(user_id, context)

        logger.info(
            f"Workflow step executed for user {user_id}: {state_id} -> "
            f"{context.current_state} (success={result.success}, "
            f"completed={result.completed}, {duration_ms:.1f} ms)"
        )
        return result

    async def _run_state(
        self,
        workflow: WorkflowDefinition,
        state: State,
        context: WorkflowContext,
        user_input: str,
    ) -> StepResult:
        await self._hooks.run(state.on_enter, context, user_input)

        executor = self._executors[state.type]
        result = await executor.execute(state, context, user_input)

        if not result.success or result.stay_in_current_state:
            return result

        next_state = result.next_state or self._resolver.resolve(
            workflow, state, context.data, result.data
        )
        target = workflow.get_state(next_state)
        if target is None and next_state not in TERMINAL_STATE_IDS:
            error = str(StateNotFoundError(workflow.id, next_state))
            logger.error(f"Transition from {state.id} rejected: {error}")
            return self._failure(error)

        await self._hooks.run(state.on_exit, context, user_input)

        context.current_state = next_state
        if result.data:
            context.data.update(result.data)

        terminal = self._terminal_status(next_state, target)
        if terminal is not None:
            context.finish(terminal)
            result.completed = True
            logger.info(
                f"Workflow {workflow.id} {terminal.value} for user {context.user_id}"
            )

        result.next_state = next_state
        return result

    @staticmethod
    def _terminal_status(
        state_id: str, target: Optional[State]
    ) -> Optional[WorkflowStatus]:
        if state_id == "cancelled" or (
            target is not None and target.type == StateType.CANCELLED
        ):
            return WorkflowStatus.CANCELLED
        if state_id == "completed" or (
            target is not None and target.type == StateType.COMPLETED
        ):
            return WorkflowStatus.COMPLETED
        return None

    # ------------------------------------------------------------------
    # Rollback
    async def rollback(self, user_id: str, steps: int = 1) -> StepResult:
        """Drop up to ``steps`` trailing history records and rewind.

        The context moves back to the state of the new last record, or to
        the initial state when the history becomes empty. Values collected
        in ``context.data`` are kept as they are.
        """
        if steps < 1:
            raise ValueError("steps must be at least 1")

        if not self.settings.allow_rollback:
            return StepResult(
                success=False,
                message=ROLLBACK_UNAVAILABLE,
                error="Rollback disabled",
            )

        context = await self._load(user_id)
        if context is None or not context.history:
            return StepResult(
                success=False,
                message=ROLLBACK_UNAVAILABLE,
                error="No history available",
            )

        removed = min(steps, len(context.history))
        del context.history[-removed:]

        workflow = self.workflows.get(context.workflow_id)
        if context.history:
            context.current_state = context.history[-1].state_id
        elif workflow is not None:
            context.current_state = workflow.initial_state
        context.touch()

        await self._save(user_id, context)
        logger.info(
            f"Workflow {context.workflow_id} rolled back {removed} step(s) "
            f"for user {user_id}, now at {context.current_state}"
        )

        state = workflow.get_state(context.current_state) if workflow else None
        prompt = render_prompt(state.prompt, context.data) if state else ""
        return StepResult(success=True, message=prompt or ROLLBACK_DONE)
