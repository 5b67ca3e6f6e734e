from unittest.mock import AsyncMock

import pytest

from bulkmod.datatypes.operation_datatypes import ExecutionResult, ItemError, OperationKind
from bulkmod.datatypes.record_datatypes import AccountRecord, RecordKind
from bulkmod.moderation.execution_engine import ExecutionEngine, ExecutorRegistry
from bulkmod.moderation.retry_coordinator import RetryCoordinator


def _accounts(*ids):
    return [AccountRecord(id=i, email="", display_name="", role="athlete") for i in ids]


def _failed(*ids):
    return ExecutionResult(
        success=False,
        processed_count=0,
        failed_count=len(ids),
        errors=[ItemError(item_id=i, error="not found") for i in ids],
        operation_id="suspend_1_abcd",
    )


def test_resolve_failed_keeps_only_failed_records_in_error_order():
    selection = _accounts("u1", "u2", "u3")

    resolved = RetryCoordinator.resolve_failed(_failed("u3", "u2", "u3"), selection)

    assert [r.id for r in resolved] == ["u3", "u2"]


def test_resolve_failed_drops_unknown_ids(monkeypatch):
    import bulkmod.moderation.retry_coordinator as retry_module

    warnings = []
    monkeypatch.setattr(retry_module.logger, "warning", lambda *args, **kwargs: warnings.append(args))

    resolved = RetryCoordinator.resolve_failed(_failed("u2", "ghost"), _accounts("u1", "u2"))

    assert [r.id for r in resolved] == ["u2"]
    assert warnings


@pytest.mark.asyncio
async def test_retry_submits_failed_subset_with_same_reason():
    executor = AsyncMock(return_value={"processedCount": 1, "failedCount": 0, "errors": []})
    registry = ExecutorRegistry()
    registry.register(OperationKind.SUSPEND_ACCOUNTS, RecordKind.ACCOUNT, executor)
    coordinator = RetryCoordinator(ExecutionEngine(registry))
    previous = _failed("u2")

    result = await coordinator.retry(OperationKind.SUSPEND_ACCOUNTS, previous, _accounts("u1", "u2"), "spam")

    executor.assert_awaited_once_with(["u2"], "spam")
    assert result.success is True
    assert result.operation_id != previous.operation_id
