"""
Execution engine for bulk moderation operations.

Turns an (operation, records, reason) request into one call per record kind
to the external bulk action executors, then folds their heterogeneous
responses into a single ``ExecutionResult``.

Key Features:
- Partitions are dispatched together and awaited collectively with
  ``asyncio.gather``; their completions may interleave in any order.
- Each partition fails independently. A partition whose executor raises,
  times out, returns a malformed response, or does not exist contributes
  one error per submitted id instead of aborting the attempt.
- Executor error entries are renamed from ``userId``/``videoId``/``eventId``
  to the uniform ``item_id``.
- The engine never retries, never raises for executor failures, and never
  touches the selection registry.
"""

from __future__ import annotations

import asyncio
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Sequence, Tuple

from bulkmod.datatypes.operation_datatypes import ExecutionResult, ItemError, OperationKind
from bulkmod.datatypes.record_datatypes import RecordKind, SelectableRecord, group_by_kind
from bulkmod.moderation.operation_catalog import operation_template
from bulkmod.util.executor_response import validate_executor_response
from bulkmod.util.logger import get_logger

logger = get_logger("execution_engine")

# Executor signature: (ids, reason) -> native response mapping
BulkActionExecutor = Callable[[List[str], str | None], Awaitable[Mapping[str, Any]]]

ERROR_ID_FIELDS: Dict[RecordKind, str] = {
    RecordKind.ACCOUNT: "userId",
    RecordKind.MEDIA_ASSET: "videoId",
    RecordKind.SCHEDULED_EVENT: "eventId",
}

UNKNOWN_ERROR_MESSAGE = "Unknown error"


def mint_operation_id(operation: OperationKind) -> str:
    """Return a fresh audit correlation id such as ``suspend_1718000000000_9f3a``."""
    try:
        prefix = operation_template(operation).operation_id_prefix
    except KeyError:
        prefix = str(operation)
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(2)}"


class ExecutorRegistry:
    """Lookup of bulk action executors by operation and record kind."""

    def __init__(self) -> None:
        self._executors: Dict[Tuple[OperationKind, RecordKind], BulkActionExecutor] = {}

    def register(self, operation: OperationKind, record_kind: RecordKind, executor: BulkActionExecutor) -> None:
        self._executors[(operation, record_kind)] = executor

    def get(self, operation: OperationKind, record_kind: RecordKind) -> BulkActionExecutor | None:
        return self._executors.get((operation, record_kind))

    def __contains__(self, key: object) -> bool:
        return key in self._executors


@dataclass(slots=True)
class PartitionOutcome:
    """Normalized result of one record-kind partition."""

    record_kind: RecordKind
    processed_count: int
    failed_count: int
    errors: List[ItemError] = field(default_factory=list)

    @classmethod
    def all_failed(cls, record_kind: RecordKind, ids: Sequence[str], message: str) -> "PartitionOutcome":
        return cls(
            record_kind=record_kind,
            processed_count=0,
            failed_count=len(ids),
            errors=[ItemError(item_id=item_id, error=message) for item_id in ids],
        )


def _failure_message(exc: BaseException, timeout_seconds: float | None) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return f"Executor timed out after {timeout_seconds:g}s" if timeout_seconds else "Executor timed out"
    if isinstance(exc, asyncio.CancelledError):
        return "Executor call was cancelled"
    return str(exc) or UNKNOWN_ERROR_MESSAGE


def normalize_partition(record_kind: RecordKind, ids: Sequence[str], payload: Mapping[str, Any]) -> PartitionOutcome:
    """Fold a validated executor payload into a ``PartitionOutcome``.

    Error entries for ids that were not submitted, and repeated entries for
    the same id, are dropped. Counts that do not add up to the submitted
    size are reconciled so that at least every reported error counts as a
    failure and the two counts sum to ``len(ids)``.
    """
    id_field = ERROR_ID_FIELDS[record_kind]
    submitted = set(ids)
    seen: set[str] = set()
    errors: List[ItemError] = []

    for entry in payload["errors"]:
        raw_id = entry.get(id_field, entry.get("itemId"))
        item_id = str(raw_id)
        if item_id not in submitted:
            logger.warning("[ENGINE] %s executor reported an error for unsubmitted id %s; ignored", record_kind, item_id)
            continue
        if item_id in seen:
            continue
        seen.add(item_id)
        errors.append(ItemError(item_id=item_id, error=str(entry["error"]) or UNKNOWN_ERROR_MESSAGE))

    processed = int(payload["processedCount"])
    failed = int(payload["failedCount"])
    if processed + failed != len(ids) or failed < len(errors):
        reconciled_failed = min(max(failed, len(errors)), len(ids))
        logger.warning(
            "[ENGINE] %s executor counts (processed=%d, failed=%d) do not match %d submitted id(s); using failed=%d",
            record_kind,
            processed,
            failed,
            len(ids),
            reconciled_failed,
        )
        failed = reconciled_failed
        processed = len(ids) - failed

    if failed > len(errors):
        logger.warning(
            "[ENGINE] %s executor reported %d failure(s) but only %d error entr%s",
            record_kind,
            failed,
            len(errors),
            "y" if len(errors) == 1 else "ies",
        )

    return PartitionOutcome(record_kind=record_kind, processed_count=processed, failed_count=failed, errors=errors)


class ExecutionEngine:
    """Dispatches one execution attempt to the per-kind executors.

    Args:
        executors: Registry of executors keyed by operation and record kind.
        timeout_seconds: Optional bound on each partition call. ``None``
            leaves timeouts to the executors themselves.
    """

    def __init__(self, executors: ExecutorRegistry, timeout_seconds: float | None = None) -> None:
        self.executors = executors
        self.timeout_seconds = timeout_seconds

    async def _call_partition(
        self,
        operation: OperationKind,
        record_kind: RecordKind,
        ids: List[str],
        reason: str | None,
    ) -> Mapping[str, Any]:
        executor = self.executors.get(operation, record_kind)
        if executor is None:
            raise LookupError(f"{operation} is not supported for {record_kind} records")

        call = executor(list(ids), reason)
        if self.timeout_seconds:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        return await call

    async def execute(
        self,
        operation: OperationKind,
        items: Sequence[SelectableRecord],
        reason: str | None = None,
    ) -> ExecutionResult:
        """Run one execution attempt.

        Args:
            operation: Operation to perform.
            items: Snapshot of the records to submit; never mutated.
            reason: Operator reason forwarded to every executor.

        A partition whose executor fails marks only its own ids as failed;
        the other partitions keep their results.

        Returns:
            ExecutionResult: Aggregate over every partition. Never raises for
            executor failures.
        """
        operation_id = mint_operation_id(operation)
        partitions = {
            record_kind: [record.id for record in records]
            for record_kind, records in group_by_kind(items).items()
        }
        submitted = sum(len(ids) for ids in partitions.values())

        logger.info(
            "[ENGINE] %s started: operation=%s items=%d partitions=%s",
            operation_id,
            operation,
            submitted,
            ", ".join(str(kind) for kind in partitions) or "none",
        )

        results = await asyncio.gather(
            *(self._call_partition(operation, kind, ids, reason) for kind, ids in partitions.items()),
            return_exceptions=True,
        )

        outcomes: List[PartitionOutcome] = []
        for (record_kind, ids), raw in zip(partitions.items(), results):
            if isinstance(raw, (Exception, asyncio.CancelledError)):
                if isinstance(raw, LookupError):
                    logger.error("[ENGINE] %s: %s", operation_id, raw)
                else:
                    logger.error(
                        "[ENGINE] %s: %s executor failed for %d id(s)",
                        operation_id,
                        record_kind,
                        len(ids),
                        exc_info=raw,
                    )
                outcomes.append(PartitionOutcome.all_failed(record_kind, ids, _failure_message(raw, self.timeout_seconds)))
                continue

            try:
                payload = validate_executor_response(raw, ERROR_ID_FIELDS[record_kind])
            except ValueError as exc:
                logger.error("[ENGINE] %s: malformed %s executor response: %s", operation_id, record_kind, exc)
                outcomes.append(PartitionOutcome.all_failed(record_kind, ids, f"Malformed executor response: {exc}"))
                continue

            outcomes.append(normalize_partition(record_kind, ids, payload))

        processed = sum(outcome.processed_count for outcome in outcomes)
        failed = sum(outcome.failed_count for outcome in outcomes)
        errors = [error for outcome in outcomes for error in outcome.errors]

        result = ExecutionResult(
            success=failed == 0,
            processed_count=processed,
            failed_count=failed,
            errors=errors,
            operation_id=operation_id,
            operation_kind=operation,
            reason=reason,
        )

        log = logger.info if result.success else logger.warning
        log(
            "[ENGINE] %s finished: processed=%d failed=%d",
            operation_id,
            result.processed_count,
            result.failed_count,
        )
        return result
