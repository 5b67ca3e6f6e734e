"""
Retry coordinator for bulk moderation.

Re-runs an operation restricted to the records that failed in the previous
attempt, with the same reason and without prompting again. Only the failed
subset is resubmitted; records that succeeded are never sent twice by a
retry.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from bulkmod.datatypes.operation_datatypes import ExecutionResult, OperationKind
from bulkmod.datatypes.record_datatypes import SelectableRecord
from bulkmod.moderation.execution_engine import ExecutionEngine
from bulkmod.util.logger import get_logger

logger = get_logger("retry_coordinator")


class RetryCoordinator:
    """Narrows a previous attempt to its failed records and executes again."""

    def __init__(self, engine: ExecutionEngine) -> None:
        self.engine = engine

    @staticmethod
    def resolve_failed(
        previous_result: ExecutionResult,
        original_selection: Sequence[SelectableRecord],
    ) -> List[SelectableRecord]:
        """Map the failed ids of ``previous_result`` back to records.

        Ids that no longer resolve against ``original_selection`` are dropped
        with a warning instead of aborting the retry. Repeated ids resolve
        once.
        """
        by_id: Dict[str, SelectableRecord] = {record.id: record for record in original_selection}
        resolved: List[SelectableRecord] = []
        seen: set[str] = set()

        for item_id in previous_result.failed_ids:
            if item_id in seen:
                continue
            seen.add(item_id)
            record = by_id.get(item_id)
            if record is None:
                logger.warning(
                    "[RETRY] Failed id %s from %s is not in the original selection; dropped from retry",
                    item_id,
                    previous_result.operation_id,
                )
                continue
            resolved.append(record)
        return resolved

    async def retry(
        self,
        operation: OperationKind,
        previous_result: ExecutionResult,
        original_selection: Sequence[SelectableRecord],
        reason: str | None = None,
    ) -> ExecutionResult:
        """Execute ``operation`` again for the failed records only.

        Args:
            operation: Operation of the previous attempt.
            previous_result: Result whose errors name the records to retry.
            original_selection: Records submitted in the original attempt.
            reason: Reason of the original attempt, reused as-is.

        Returns:
            ExecutionResult: Result of the narrowed attempt.
        """
        failed_records = self.resolve_failed(previous_result, original_selection)
        logger.info(
            "[RETRY] Retrying %s for %d of %d failed id(s) from %s",
            operation,
            len(failed_records),
            len(previous_result.errors),
            previous_result.operation_id,
        )
        return await self.engine.execute(operation, failed_records, reason)
