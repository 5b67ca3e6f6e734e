import asyncio
import re
from unittest.mock import AsyncMock

import pytest

from bulkmod.datatypes.operation_datatypes import ItemError, OperationKind
from bulkmod.datatypes.record_datatypes import AccountRecord, MediaAssetRecord, RecordKind, ScheduledEventRecord
from bulkmod.moderation.execution_engine import (
    ExecutionEngine,
    ExecutorRegistry,
    mint_operation_id,
    normalize_partition,
)


def _accounts(*ids):
    return [AccountRecord(id=i, email="", display_name="", role="athlete") for i in ids]


def _videos(*ids):
    return [MediaAssetRecord(id=i, title=i, verification_status="pending") for i in ids]


def _engine(executor, operation=OperationKind.SUSPEND_ACCOUNTS, record_kind=RecordKind.ACCOUNT, timeout=None):
    registry = ExecutorRegistry()
    registry.register(operation, record_kind, executor)
    return ExecutionEngine(registry, timeout_seconds=timeout)


def _assert_invariants(result, submitted):
    assert result.processed_count + result.failed_count == submitted
    assert result.success is (result.failed_count == 0)


def test_mint_operation_id_uses_prefix():
    operation_id = mint_operation_id(OperationKind.DEACTIVATE_EVENTS)

    assert re.fullmatch(r"event_deactivate_\d+_[0-9a-f]{4}", operation_id)
    assert operation_id != mint_operation_id(OperationKind.DEACTIVATE_EVENTS)


@pytest.mark.asyncio
async def test_execute_normalizes_native_error_ids():
    executor = AsyncMock(return_value={"processedCount": 1, "failedCount": 1, "errors": [{"userId": "u2", "error": "not found"}]})
    engine = _engine(executor)

    result = await engine.execute(OperationKind.SUSPEND_ACCOUNTS, _accounts("u1", "u2"), "duplicate account")

    executor.assert_awaited_once_with(["u1", "u2"], "duplicate account")
    assert result.success is False
    assert result.errors == [ItemError(item_id="u2", error="not found")]
    assert result.operation_id.startswith("suspend_")
    assert result.operation_kind is OperationKind.SUSPEND_ACCOUNTS
    assert result.reason == "duplicate account"
    _assert_invariants(result, 2)


@pytest.mark.asyncio
async def test_execute_dispatches_one_call_per_kind_concurrently():
    started = []
    release = asyncio.Event()

    async def slow_executor(ids, reason):
        started.append(tuple(ids))
        await release.wait()
        return {"processedCount": len(ids), "failedCount": 0, "errors": []}

    registry = ExecutorRegistry()
    registry.register(OperationKind.FLAG_MEDIA, RecordKind.ACCOUNT, slow_executor)
    registry.register(OperationKind.FLAG_MEDIA, RecordKind.MEDIA_ASSET, slow_executor)
    engine = ExecutionEngine(registry)

    task = asyncio.create_task(engine.execute(OperationKind.FLAG_MEDIA, _accounts("u1") + _videos("v1", "v2")))
    for _ in range(10):
        await asyncio.sleep(0)
    assert sorted(started) == [("u1",), ("v1", "v2")]
    release.set()
    result = await task

    assert result.success is True
    _assert_invariants(result, 3)


@pytest.mark.asyncio
async def test_raising_partition_fails_only_its_own_ids():
    registry = ExecutorRegistry()
    registry.register(OperationKind.FLAG_MEDIA, RecordKind.ACCOUNT, AsyncMock(side_effect=RuntimeError("backend down")))
    registry.register(
        OperationKind.FLAG_MEDIA,
        RecordKind.MEDIA_ASSET,
        AsyncMock(return_value={"processedCount": 2, "failedCount": 0, "errors": []}),
    )
    engine = ExecutionEngine(registry)

    result = await engine.execute(OperationKind.FLAG_MEDIA, _accounts("u1", "u2") + _videos("v1", "v2"))

    assert result.processed_count == 2
    assert result.failed_count == 2
    assert result.errors == [ItemError("u1", "backend down"), ItemError("u2", "backend down")]
    _assert_invariants(result, 4)


@pytest.mark.asyncio
async def test_raising_executor_without_message_uses_unknown_error():
    engine = _engine(AsyncMock(side_effect=RuntimeError()))

    result = await engine.execute(OperationKind.SUSPEND_ACCOUNTS, _accounts("u1"), "r")

    assert result.errors == [ItemError("u1", "Unknown error")]


@pytest.mark.asyncio
async def test_timed_out_partition_fails_every_id():
    async def hanging(ids, reason):
        await asyncio.sleep(10)

    engine = _engine(hanging, timeout=0.01)

    result = await engine.execute(OperationKind.SUSPEND_ACCOUNTS, _accounts("u1", "u2"), "r")

    assert result.failed_count == 2
    assert all(error.error.startswith("Executor timed out") for error in result.errors)
    _assert_invariants(result, 2)


@pytest.mark.asyncio
async def test_malformed_response_fails_every_id():
    engine = _engine(AsyncMock(return_value={"ok": True}))

    result = await engine.execute(OperationKind.SUSPEND_ACCOUNTS, _accounts("u1", "u2"), "r")

    assert result.failed_count == 2
    assert all(error.error.startswith("Malformed executor response") for error in result.errors)
    _assert_invariants(result, 2)


@pytest.mark.asyncio
async def test_missing_executor_fails_partition():
    engine = ExecutionEngine(ExecutorRegistry())

    result = await engine.execute(OperationKind.APPROVE_MEDIA, _videos("v1"))

    assert result.failed_count == 1
    assert result.errors[0].error == "video_approve is not supported for media_asset records"


@pytest.mark.asyncio
async def test_empty_attempt_succeeds_without_calls():
    executor = AsyncMock()
    engine = _engine(executor)

    result = await engine.execute(OperationKind.SUSPEND_ACCOUNTS, [], "r")

    executor.assert_not_awaited()
    assert result.success is True
    _assert_invariants(result, 0)


def test_normalize_partition_drops_unsubmitted_and_repeated_errors():
    payload = {
        "processedCount": 1,
        "failedCount": 1,
        "errors": [
            {"videoId": "v2", "error": "Video not found"},
            {"videoId": "v2", "error": "again"},
            {"videoId": "v9", "error": "stranger"},
        ],
    }

    outcome = normalize_partition(RecordKind.MEDIA_ASSET, ["v1", "v2"], payload)

    assert outcome.errors == [ItemError("v2", "Video not found")]
    assert outcome.processed_count == 1
    assert outcome.failed_count == 1


def test_normalize_partition_reconciles_counts():
    payload = {"processedCount": 5, "failedCount": 0, "errors": [{"eventId": "e2", "error": "Event not found"}]}

    outcome = normalize_partition(RecordKind.SCHEDULED_EVENT, ["e1", "e2", "e3"], payload)

    assert outcome.failed_count == 1
    assert outcome.processed_count == 2


def test_normalize_partition_keeps_numeric_ids_as_strings():
    payload = {"processedCount": 0, "failedCount": 1, "errors": [{"itemId": 42, "error": ""}]}

    outcome = normalize_partition(RecordKind.ACCOUNT, ["42"], payload)

    assert outcome.errors == [ItemError("42", "Unknown error")]


@pytest.mark.asyncio
async def test_engine_does_not_mutate_submitted_items():
    items = _accounts("u1", "u2")
    snapshot = list(items)
    engine = _engine(AsyncMock(return_value={"processedCount": 2, "failedCount": 0, "errors": []}))

    await engine.execute(OperationKind.SUSPEND_ACCOUNTS, items, "r")

    assert items == snapshot


@pytest.mark.asyncio
async def test_events_partition_uses_event_id_field():
    engine = _engine(
        AsyncMock(return_value={"processedCount": 0, "failedCount": 1, "errors": [{"eventId": "e1", "error": "Event not found"}]}),
        operation=OperationKind.DEACTIVATE_EVENTS,
        record_kind=RecordKind.SCHEDULED_EVENT,
    )

    result = await engine.execute(
        OperationKind.DEACTIVATE_EVENTS, [ScheduledEventRecord(id="e1", title="Cup", status="ended")], "over"
    )

    assert result.errors == [ItemError("e1", "Event not found")]
