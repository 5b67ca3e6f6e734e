import pytest

from bulkmod.backends.memory_backend import InMemoryModerationBackend, build_sample_records
from bulkmod.datatypes.operation_datatypes import ItemError, OperationKind
from bulkmod.datatypes.record_datatypes import RecordKind
from bulkmod.moderation.execution_engine import ExecutionEngine, ExecutorRegistry


@pytest.fixture()
def backend():
    return InMemoryModerationBackend(build_sample_records())


@pytest.mark.asyncio
async def test_run_bulk_applies_mutation(backend):
    response = await backend.run_bulk(OperationKind.SUSPEND_ACCOUNTS, ["u1"], "spam")

    assert response == {"processedCount": 1, "failedCount": 0, "errors": []}
    assert backend.get("u1").is_active is False
    assert backend.applied == [(OperationKind.SUSPEND_ACCOUNTS, "u1", "spam")]


@pytest.mark.asyncio
async def test_run_bulk_reports_native_error_shape(backend):
    backend.fail_ids.add("v2")

    response = await backend.run_bulk(OperationKind.APPROVE_MEDIA, ["v1", "v2", "nope", "u1"], None)

    assert response["processedCount"] == 1
    assert response["failedCount"] == 3
    assert response["errors"] == [
        {"videoId": "v2", "error": "Backend rejected the update for v2"},
        {"videoId": "nope", "error": "Video not found"},
        {"videoId": "u1", "error": "Video not found"},
    ]
    assert backend.get("v1").verification_status == "approved"


def test_register_executors_covers_every_operation(backend):
    registry = backend.register_executors(ExecutorRegistry())

    assert (OperationKind.DEACTIVATE_EVENTS, RecordKind.SCHEDULED_EVENT) in registry
    assert (OperationKind.DEACTIVATE_EVENTS, RecordKind.ACCOUNT) not in registry
    assert all((kind, record_kind) in registry for kind, record_kind in [
        (OperationKind.SUSPEND_ACCOUNTS, RecordKind.ACCOUNT),
        (OperationKind.VERIFY_ACCOUNTS, RecordKind.ACCOUNT),
        (OperationKind.ACTIVATE_ACCOUNTS, RecordKind.ACCOUNT),
        (OperationKind.APPROVE_MEDIA, RecordKind.MEDIA_ASSET),
        (OperationKind.REJECT_MEDIA, RecordKind.MEDIA_ASSET),
        (OperationKind.FLAG_MEDIA, RecordKind.MEDIA_ASSET),
        (OperationKind.ACTIVATE_EVENTS, RecordKind.SCHEDULED_EVENT),
    ])


@pytest.mark.asyncio
async def test_engine_normalizes_backend_errors(backend):
    engine = ExecutionEngine(backend.register_executors(ExecutorRegistry()))
    backend.fail_ids.add("e2")

    result = await engine.execute(
        OperationKind.DEACTIVATE_EVENTS, [backend.get("e1"), backend.get("e2")], "cancelled"
    )

    assert result.processed_count == 1
    assert result.errors == [ItemError("e2", "Backend rejected the update for e2")]
    assert backend.get("e1").is_active is False
