"""SQLite implementation of the context repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from pathlib import Path
from typing import Any

from ..contracts import WorkflowContext
from .repository import OPEN_STATUSES, ContextRepository

_COLUMNS = (
    "id, user_id, workflow_id, current_state, data, history, metadata, status, "
    "started_at, updated_at, completed_at, error_message"
)


class SQLiteContextRepository(ContextRepository):
    """Persist workflow contexts using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS workflow_contexts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                workflow_id TEXT NOT NULL,
                current_state TEXT NOT NULL,
                data TEXT NOT NULL,
                history TEXT NOT NULL,
                metadata TEXT,
                status TEXT NOT NULL CHECK (
                    status IN ('active', 'paused', 'completed', 'cancelled', 'failed')
                ),
                started_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                completed_at TEXT,
                error_message TEXT
            )
            """
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_workflow_contexts_user_id "
            "ON workflow_contexts(user_id)"
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_workflow_contexts_status "
            "ON workflow_contexts(status)"
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> int | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()
        return cur.lastrowid

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    @staticmethod
    def _serialize(context: WorkflowContext) -> dict[str, Any]:
        doc = context.model_dump(mode="json")
        return {
            "workflow_id": doc["workflow_id"],
            "current_state": doc["current_state"],
            "data": json.dumps(doc["data"]),
            "history": json.dumps(doc["history"]),
            "metadata": json.dumps(doc["metadata"]),
            "status": doc["status"],
            "started_at": doc["started_at"],
            "updated_at": doc["updated_at"],
            "completed_at": doc["completed_at"],
            "error_message": doc["error_message"],
        }

    @staticmethod
    def _row_to_context(row: sqlite3.Row) -> WorkflowContext:
        return WorkflowContext.model_validate(
            {
                "id": row["id"],
                "user_id": row["user_id"],
                "workflow_id": row["workflow_id"],
                "current_state": row["current_state"],
                "data": json.loads(row["data"]),
                "history": json.loads(row["history"]),
                "metadata": json.loads(row["metadata"]) if row["metadata"] else {},
                "status": row["status"],
                "started_at": row["started_at"],
                "updated_at": row["updated_at"],
                "completed_at": row["completed_at"],
                "error_message": row["error_message"],
            }
        )

    # ------------------------------------------------------------------
    # Repository API
    async def save_context(self, user_id: str, context: WorkflowContext) -> None:
        doc = self._serialize(context)
        if context.id is None:
            context.id = await asyncio.to_thread(
                self._execute,
                """
                INSERT INTO workflow_contexts
                (user_id, workflow_id, current_state, data, history, metadata,
                 status, started_at, updated_at, completed_at, error_message)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                user_id,
                doc["workflow_id"],
                doc["current_state"],
                doc["data"],
                doc["history"],
                doc["metadata"],
                doc["status"],
                doc["started_at"],
                doc["updated_at"],
                doc["completed_at"],
                doc["error_message"],
            )
            return

        await asyncio.to_thread(
            self._execute,
            """
            UPDATE workflow_contexts
            SET workflow_id = ?, current_state = ?, data = ?, history = ?,
                metadata = ?, status = ?, updated_at = ?, completed_at = ?,
                error_message = ?
            WHERE id = ?
            """,
            doc["workflow_id"],
            doc["current_state"],
            doc["data"],
            doc["history"],
            doc["metadata"],
            doc["status"],
            doc["updated_at"],
            doc["completed_at"],
            doc["error_message"],
            context.id,
        )

    async def load_active_context(self, user_id: str) -> WorkflowContext | None:
        row = await asyncio.to_thread(
            self._fetchone,
            f"""
            SELECT {_COLUMNS} FROM workflow_contexts
            WHERE user_id = ? AND status IN (?, ?)
            ORDER BY updated_at DESC, id DESC
            LIMIT 1
            """,
            user_id,
            *(s.value for s in OPEN_STATUSES),
        )
        if not row:
            return None
        return self._row_to_context(row)

    async def list_contexts(self, user_id: str | None = None) -> list[WorkflowContext]:
        if user_id is None:
            rows = await asyncio.to_thread(
                self._fetchall,
                f"SELECT {_COLUMNS} FROM workflow_contexts ORDER BY updated_at DESC, id DESC",
            )
        else:
            rows = await asyncio.to_thread(
                self._fetchall,
                f"SELECT {_COLUMNS} FROM workflow_contexts WHERE user_id = ? "
                "ORDER BY updated_at DESC, id DESC",
                user_id,
            )
        return [self._row_to_context(r) for r in rows]

    def close(self) -> None:
        self._conn.close()
