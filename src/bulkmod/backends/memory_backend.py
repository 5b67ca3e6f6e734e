"""
In-memory bulk action executors.

Stands in for the backend document store behind the dashboard: it keeps
the loaded records in memory, applies each moderation mutation item by
item, and answers in the native per-kind response shape (``userId``,
``videoId`` or ``eventId`` error entries). The operator console and the
end-to-end tests drive the engine through it.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Tuple

from bulkmod.datatypes.operation_datatypes import OperationKind
from bulkmod.datatypes.record_datatypes import (
    AccountRecord,
    MediaAssetRecord,
    RecordKind,
    ScheduledEventRecord,
    SelectableRecord,
)
from bulkmod.moderation.execution_engine import ERROR_ID_FIELDS, BulkActionExecutor, ExecutorRegistry
from bulkmod.util.logger import get_logger

logger = get_logger("memory_backend")

NOT_FOUND_MESSAGES: Dict[RecordKind, str] = {
    RecordKind.ACCOUNT: "User not found",
    RecordKind.MEDIA_ASSET: "Video not found",
    RecordKind.SCHEDULED_EVENT: "Event not found",
}

# Mutation applied to a record for each operation
_MUTATIONS: Dict[OperationKind, Tuple[RecordKind, Callable[[Any], SelectableRecord]]] = {
    OperationKind.SUSPEND_ACCOUNTS: (RecordKind.ACCOUNT, lambda r: replace(r, is_active=False)),
    OperationKind.VERIFY_ACCOUNTS: (RecordKind.ACCOUNT, lambda r: replace(r, is_verified=True)),
    OperationKind.ACTIVATE_ACCOUNTS: (RecordKind.ACCOUNT, lambda r: replace(r, is_active=True)),
    OperationKind.APPROVE_MEDIA: (
        RecordKind.MEDIA_ASSET,
        lambda r: replace(r, verification_status="approved", is_active=True),
    ),
    OperationKind.REJECT_MEDIA: (
        RecordKind.MEDIA_ASSET,
        lambda r: replace(r, verification_status="rejected", is_active=False),
    ),
    OperationKind.FLAG_MEDIA: (RecordKind.MEDIA_ASSET, lambda r: replace(r, verification_status="pending")),
    OperationKind.ACTIVATE_EVENTS: (RecordKind.SCHEDULED_EVENT, lambda r: replace(r, is_active=True)),
    OperationKind.DEACTIVATE_EVENTS: (RecordKind.SCHEDULED_EVENT, lambda r: replace(r, is_active=False)),
}


class InMemoryModerationBackend:
    """Record store whose bulk methods behave like the dashboard's backend services.

    Args:
        records: Initial records.
        latency_seconds: Simulated round-trip delay per bulk call.

    Attributes:
        fail_ids: Ids whose next mutations fail with a backend error.
        applied: Log of ``(operation, item_id, reason)`` for every applied mutation.
    """

    def __init__(self, records: Iterable[SelectableRecord] = (), latency_seconds: float = 0.0) -> None:
        self._records: Dict[str, SelectableRecord] = {record.id: record for record in records}
        self.latency_seconds = latency_seconds
        self.fail_ids: set[str] = set()
        self.applied: List[Tuple[OperationKind, str, str | None]] = []

    def records(self) -> List[SelectableRecord]:
        """Current records, reflecting every mutation applied so far."""
        return list(self._records.values())

    def get(self, record_id: str) -> SelectableRecord | None:
        return self._records.get(record_id)

    async def run_bulk(self, operation: OperationKind, ids: List[str], reason: str | None = None) -> Dict[str, Any]:
        """Apply ``operation`` to each id and report in the native response shape."""
        record_kind, mutate = _MUTATIONS[operation]
        id_field = ERROR_ID_FIELDS[record_kind]
        result: Dict[str, Any] = {"processedCount": 0, "failedCount": 0, "errors": []}

        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)

        for item_id in ids:
            record = self._records.get(item_id)
            if record is None or record.kind is not record_kind:
                error = NOT_FOUND_MESSAGES[record_kind]
            elif item_id in self.fail_ids:
                error = f"Backend rejected the update for {item_id}"
            else:
                self._records[item_id] = mutate(record)
                self.applied.append((operation, item_id, reason))
                result["processedCount"] += 1
                continue

            result["failedCount"] += 1
            result["errors"].append({id_field: item_id, "error": error})

        logger.debug(
            "[BACKEND] %s: processed=%d failed=%d",
            operation,
            result["processedCount"],
            result["failedCount"],
        )
        return result

    def executor_for(self, operation: OperationKind) -> BulkActionExecutor:
        async def execute(ids: List[str], reason: str | None) -> Dict[str, Any]:
            return await self.run_bulk(operation, ids, reason)

        return execute

    def register_executors(self, registry: ExecutorRegistry) -> ExecutorRegistry:
        """Register an executor for every operation this backend supports."""
        for operation, (record_kind, _) in _MUTATIONS.items():
            registry.register(operation, record_kind, self.executor_for(operation))
        return registry


def build_sample_records() -> List[SelectableRecord]:
    """A small mixed data set used when no records file is configured."""
    return [
        AccountRecord(id="u1", email="ayo@example.com", display_name="Ayo Adeyemi", role="athlete"),
        AccountRecord(id="u2", email="lena@example.com", display_name="Lena Brandt", role="coach"),
        AccountRecord(id="u3", email="club@example.com", display_name="Riverside FC", role="organization", is_verified=True),
        MediaAssetRecord(id="v1", title="Sprint drills", verification_status="pending", owner_id="u1", owner_name="Ayo Adeyemi"),
        MediaAssetRecord(id="v2", title="Free kick compilation", verification_status="pending", owner_id="u2", owner_name="Lena Brandt"),
        MediaAssetRecord(id="v3", title="Match highlights", verification_status="approved", owner_id="u3", owner_name="Riverside FC"),
        ScheduledEventRecord(id="e1", title="Regional trials", status="upcoming"),
        ScheduledEventRecord(id="e2", title="Summer cup", status="ongoing"),
    ]
