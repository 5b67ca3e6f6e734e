"""
Append-only audit trail of bulk operation attempts.

Every ``ExecutionResult`` is stored with its operation kind, reason and
per-item errors, keyed by its operation id. The core never writes here on
its own; the hosting application registers ``AuditTrail.record`` as a
completion listener of its session.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List

import aiosqlite

from bulkmod.database.db_connection import ConnectionManager, db_connection
from bulkmod.database.db_schema import SchemaManager
from bulkmod.datatypes.operation_datatypes import ExecutionResult, ItemError
from bulkmod.util.logger import get_logger

logger = get_logger("audit_log")


@dataclass(slots=True)
class AuditEntry:
    """One recorded execution attempt.

    Attributes:
        operation_id: Correlation id minted by the engine.
        operation_kind: Value of the attempted ``OperationKind``.
        reason: Operator reason, if any.
        success: Whether no item failed.
        processed_count: Items the executors processed.
        failed_count: Items that failed.
        recorded_at: UTC time the attempt was recorded.
        errors: Per-item failures.
    """

    operation_id: str
    operation_kind: str
    reason: str | None
    success: bool
    processed_count: int
    failed_count: int
    recorded_at: datetime
    errors: List[ItemError] = field(default_factory=list)


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class AuditTrail:
    """Reads and appends audit entries through a ``ConnectionManager``."""

    def __init__(self, connection: ConnectionManager = db_connection) -> None:
        self._connection = connection

    async def initialize(self, path: Path) -> None:
        """Open the audit database at ``path`` and make sure the schema exists."""
        await self._connection.open(path)
        await SchemaManager.initialize_schema(self._connection.connection)

    async def shutdown(self) -> None:
        await self._connection.close()

    async def record(self, result: ExecutionResult) -> None:
        """
        Append ``result`` and its errors in a single transaction.

        Args:
            result: Result of one execution attempt.
        """
        start_time = time.time()
        kind = str(result.operation_kind) if result.operation_kind is not None else ""

        async with self._connection.transaction() as db:
            await db.execute(
                """
                INSERT INTO bulk_operations (operation_id, operation_kind, reason, success, processed_count, failed_count, recorded_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    result.operation_id,
                    kind,
                    result.reason,
                    int(result.success),
                    result.processed_count,
                    result.failed_count,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            if result.errors:
                await db.executemany(
                    "INSERT INTO bulk_operation_errors (operation_id, item_id, error) VALUES (?, ?, ?)",
                    [(result.operation_id, error.item_id, error.error) for error in result.errors],
                )

        logger.debug(
            "[AUDIT] Recorded %s (%s, %d error(s)) in %.2fms",
            result.operation_id,
            kind,
            len(result.errors),
            (time.time() - start_time) * 1000,
        )

    async def _load_errors(self, db: aiosqlite.Connection, operation_id: str) -> List[ItemError]:
        cursor = await db.execute(
            "SELECT item_id, error FROM bulk_operation_errors WHERE operation_id = ? ORDER BY id",
            (operation_id,),
        )
        rows = await cursor.fetchall()
        return [ItemError(item_id=row["item_id"], error=row["error"]) for row in rows]

    @staticmethod
    def _entry_from_row(row: aiosqlite.Row, errors: List[ItemError]) -> AuditEntry:
        return AuditEntry(
            operation_id=row["operation_id"],
            operation_kind=row["operation_kind"],
            reason=row["reason"],
            success=bool(row["success"]),
            processed_count=row["processed_count"],
            failed_count=row["failed_count"],
            recorded_at=_parse_timestamp(row["recorded_at"]),
            errors=errors,
        )

    async def get(self, operation_id: str) -> AuditEntry | None:
        """Return the entry for ``operation_id`` with its errors, or None."""
        async with self._connection.read() as db:
            cursor = await db.execute("SELECT * FROM bulk_operations WHERE operation_id = ?", (operation_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._entry_from_row(row, await self._load_errors(db, operation_id))

    async def recent(self, limit: int = 10) -> List[AuditEntry]:
        """Most recent entries first, each with its errors."""
        async with self._connection.read() as db:
            cursor = await db.execute(
                "SELECT * FROM bulk_operations ORDER BY recorded_at DESC, rowid DESC LIMIT ?",
                (limit,),
            )
            rows = await cursor.fetchall()
            return [self._entry_from_row(row, await self._load_errors(db, row["operation_id"])) for row in rows]
