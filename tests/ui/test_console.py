"""Tests for operator console command dispatch."""

import pytest
from unittest.mock import AsyncMock, patch

from bulkmod.backends.memory_backend import InMemoryModerationBackend, build_sample_records
from bulkmod.configuration.bulk_settings import BulkOperationSettings
from bulkmod.datatypes.operation_datatypes import OperationKind
from bulkmod.moderation.bulk_operation_session import BulkOperationSession
from bulkmod.moderation.confirmation_gate import GateState
from bulkmod.moderation.execution_engine import ExecutionEngine, ExecutorRegistry
from bulkmod.ui import console
from bulkmod.ui.console import COMMANDS, ConsoleControl, box_title, console_session, handle_console_command


@pytest.fixture()
def printed(monkeypatch):
    lines = []
    monkeypatch.setattr(console, "console_print", lambda message, style="": lines.append(message))
    return lines


@pytest.fixture()
def control():
    backend = InMemoryModerationBackend(build_sample_records())
    settings = BulkOperationSettings({"page_size": 3})
    engine = ExecutionEngine(backend.register_executors(ExecutorRegistry()))
    session = BulkOperationSession(engine, settings=settings)
    ctrl = ConsoleControl(session, backend, settings=settings)
    ctrl.load_page(0)
    return ctrl


def test_box_title_is_aligned():
    lines = box_title("Title")
    assert len({len(line) for line in lines}) == 1


def test_command_names_are_unique():
    names = [name for cmd in COMMANDS for name in [cmd.name, *cmd.aliases]]
    assert len(names) == len(set(names))


@pytest.mark.asyncio
async def test_unknown_command_reports_error(control, printed):
    await handle_console_command("frobnicate", control)

    assert any("Unknown command 'frobnicate'" in line for line in printed)


@pytest.mark.asyncio
async def test_paging_replaces_page_membership(control, printed):
    assert control.session.registry.page.ids == ["u1", "u2", "u3"]

    await handle_console_command("next", control)
    assert control.session.registry.page.ids == ["v1", "v2", "v3"]

    await handle_console_command("page 99", control)
    assert control.page_index == control.page_count - 1
    assert control.session.registry.page.ids == ["e1", "e2"]

    await handle_console_command("prev", control)
    assert control.page_index == 1


@pytest.mark.asyncio
async def test_selection_persists_across_pages(control, printed):
    await handle_console_command("toggle", control)
    await handle_console_command("next", control)
    await handle_console_command("select v1 unknown", control)

    registry = control.session.registry
    assert registry.selected_count == 4
    assert not registry.is_all_selected_on_page
    assert any("Unknown record 'unknown'" in line for line in printed)


@pytest.mark.asyncio
async def test_pick_destructive_operation_through_console(control, printed):
    await handle_console_command("select u1 u2", control)
    await handle_console_command("pick user_suspend", control)

    assert control.session.gate.state is GateState.AWAITING_REASON
    assert any("Reason (required)" in line for line in printed)

    await handle_console_command("confirm", control)
    assert any("A reason is required" in line for line in printed)
    assert control.backend.get("u1").is_active is True

    await handle_console_command("confirm duplicate account", control)
    assert control.backend.get("u1").is_active is False
    assert control.backend.get("u2").is_active is False
    assert any(line.strip().startswith("Operation Completed") for line in printed)
    assert control.session.registry.selected_count == 0


@pytest.mark.asyncio
async def test_pick_by_menu_number_and_retry(control, printed):
    control.backend.fail_ids.add("v2")
    await handle_console_command("select v1 v2", control)

    await handle_console_command("pick 1", control)

    result = control.session.lifecycle.last_result
    assert result.operation_kind is OperationKind.APPROVE_MEDIA
    assert result.failed_ids == ["v2"]
    assert any("Retry Failed (1)" in line for line in printed)

    control.backend.fail_ids.clear()
    await handle_console_command("retry", control)

    assert control.session.lifecycle.last_result.success
    assert control.backend.get("v2").verification_status == "approved"


@pytest.mark.asyncio
async def test_session_errors_are_printed_not_raised(control, printed):
    await handle_console_command("retry", control)

    assert any("no completed operation" in line for line in printed)


@pytest.mark.asyncio
async def test_unexpected_handler_error_is_logged(control, printed):
    with patch.object(control.session, "retry_failed", AsyncMock(side_effect=RuntimeError("boom"))):
        await handle_console_command("retry", control)

    assert any("Error executing command: boom" in line for line in printed)


@pytest.mark.asyncio
async def test_audit_disabled_message(control, printed):
    await handle_console_command("audit", control)

    assert any("Audit trail is disabled" in line for line in printed)


@pytest.mark.asyncio
async def test_shutdown_sets_event(control, printed):
    await handle_console_command("exit", control)

    assert control.is_shutdown_requested()


@pytest.mark.asyncio
async def test_console_session_requests_shutdown_on_exit(control, monkeypatch):
    async def idle_console(ctrl):
        await ctrl.shutdown_event.wait()

    monkeypatch.setattr(console, "run_console", idle_console)

    async with console_session(control):
        assert not control.is_shutdown_requested()

    assert control.is_shutdown_requested()
