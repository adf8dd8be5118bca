"""PostgreSQL implementation of the context repository."""

from __future__ import annotations

import json
from typing import Any

import asyncpg

from ..contracts import WorkflowContext
from .repository import OPEN_STATUSES, ContextRepository

_COLUMNS = (
    "id, user_id, workflow_id, current_state, data, history, metadata, status, "
    "started_at, updated_at, completed_at, error_message"
)


def _json(value: Any) -> Any:
    # asyncpg hands JSONB back as text unless a codec is registered
    return json.loads(value) if isinstance(value, str) else value


class PostgresContextRepository(ContextRepository):
    """Persist workflow contexts using PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        conn = await asyncpg.connect(self._dsn)
        if not self._initialized:
            await self._ensure_schema(conn)
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS workflow_contexts (
                id SERIAL PRIMARY KEY,
                user_id TEXT NOT NULL,
                workflow_id TEXT NOT NULL,
                current_state TEXT NOT NULL,
                data JSONB NOT NULL,
                history JSONB NOT NULL,
                metadata JSONB,
                status TEXT NOT NULL,
                started_at TIMESTAMPTZ NOT NULL,
                updated_at TIMESTAMPTZ NOT NULL,
                completed_at TIMESTAMPTZ,
                error_message TEXT
            )
            """
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_workflow_contexts_user_status "
            "ON workflow_contexts(user_id, status)"
        )

    @staticmethod
    def _record_to_context(r: asyncpg.Record) -> WorkflowContext:
        return WorkflowContext.model_validate(
            {
                "id": r["id"],
                "user_id": r["user_id"],
                "workflow_id": r["workflow_id"],
                "current_state": r["current_state"],
                "data": _json(r["data"]),
                "history": _json(r["history"]),
                "metadata": _json(r["metadata"]) or {},
                "status": r["status"],
                "started_at": r["started_at"],
                "updated_at": r["updated_at"],
                "completed_at": r["completed_at"],
                "error_message": r["error_message"],
            }
        )

    # ------------------------------------------------------------------
    async def save_context(self, user_id: str, context: WorkflowContext) -> None:
        doc = context.model_dump(mode="json")
        conn = await self._connect()
        try:
            if context.id is None:
                context.id = await conn.fetchval(
                    """
                    INSERT INTO workflow_contexts
                    (user_id, workflow_id, current_state, data, history, metadata,
                     status, started_at, updated_at, completed_at, error_message)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                    RETURNING id
                    """,
                    user_id,
                    context.workflow_id,
                    context.current_state,
                    json.dumps(doc["data"]),
                    json.dumps(doc["history"]),
                    json.dumps(doc["metadata"]),
                    context.status.value,
                    context.started_at,
                    context.updated_at,
                    context.completed_at,
                    context.error_message,
                )
                return
            await conn.execute(
                """
                UPDATE workflow_contexts
                SET workflow_id = $1, current_state = $2, data = $3, history = $4,
                    metadata = $5, status = $6, updated_at = $7, completed_at = $8,
                    error_message = $9
                WHERE id = $10
                """,
                context.workflow_id,
                context.current_state,
                json.dumps(doc["data"]),
                json.dumps(doc["history"]),
                json.dumps(doc["metadata"]),
                context.status.value,
                context.updated_at,
                context.completed_at,
                context.error_message,
                context.id,
            )
        finally:
            await conn.close()

    async def load_active_context(self, user_id: str) -> WorkflowContext | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                f"""
                SELECT {_COLUMNS} FROM workflow_contexts
                WHERE user_id = $1 AND status = ANY($2::text[])
                ORDER BY updated_at DESC, id DESC
                LIMIT 1
                """,
                user_id,
                [s.value for s in OPEN_STATUSES],
            )
        finally:
            await conn.close()
        if not row:
            return None
        return self._record_to_context(row)

    async def list_contexts(self, user_id: str | None = None) -> list[WorkflowContext]:
        conn = await self._connect()
        try:
            if user_id is None:
                rows = await conn.fetch(
                    f"SELECT {_COLUMNS} FROM workflow_contexts "
                    "ORDER BY updated_at DESC, id DESC"
                )
            else:
                rows = await conn.fetch(
                    f"SELECT {_COLUMNS} FROM workflow_contexts WHERE user_id = $1 "
                    "ORDER BY updated_at DESC, id DESC",
                    user_id,
                )
        finally:
            await conn.close()
        return [self._record_to_context(r) for r in rows]
