"""Interactive operator console driving a bulk moderation session."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import List

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import PromptSession

from bulkmod.backends.memory_backend import InMemoryModerationBackend
from bulkmod.configuration.bulk_settings import BulkOperationSettings
from bulkmod.database.audit_log import AuditTrail
from bulkmod.datatypes.operation_datatypes import ExecutionResult, OperationDefinition, OperationKind
from bulkmod.datatypes.record_datatypes import RecordKind, SelectableRecord, display_name
from bulkmod.moderation.bulk_operation_session import BulkOperationSession
from bulkmod.moderation.errors import BulkModerationError
from bulkmod.util.format_utils import format_result_lines, humanize_timestamp, progress_percentage
from bulkmod.util.logger import get_logger

# Box drawing helpers for aligned console output
BOX_WIDTH = 45

def box_title(title: str) -> list[str]:
    inner_width = BOX_WIDTH - 2
    pad_left = (inner_width - len(title)) // 2
    pad_right = inner_width - len(title) - pad_left
    return [
        f"╔{'═' * inner_width}╗",
        f"║{' ' * pad_left}{title}{' ' * pad_right}║",
        f"╚{'═' * inner_width}╝"
    ]

logger = get_logger("console")

# Type alias for command handler functions
CommandHandler = Callable[["ConsoleControl", list[str]], Awaitable[None]]


@dataclass
class Command:
    """Definition of a console command."""
    name: str
    handler: CommandHandler
    aliases: list[str]
    description: str
    usage: str = ""

    def matches(self, input_cmd: str) -> bool:
        """Check if input matches this command or any alias."""
        return input_cmd == self.name or input_cmd in self.aliases


def console_print(message: str, style: str = "") -> None:
    """Render text via prompt_toolkit without breaking the active prompt."""
    formatted: FormattedText | str
    if style:
        formatted = FormattedText([(style, message)])
    else:
        formatted = message
    print_formatted_text(formatted)


class ConsoleControl:
    """State shared by console commands: the session, its backend, paging and audit."""

    def __init__(
        self,
        session: BulkOperationSession,
        backend: InMemoryModerationBackend,
        settings: BulkOperationSettings | None = None,
        audit: AuditTrail | None = None,
    ) -> None:
        self.session = session
        self.backend = backend
        self.settings = settings if settings is not None else session.settings
        self.audit = audit
        self.page_index = 0
        self.shutdown_event = asyncio.Event()

    # --------------------------
    # Paging
    # --------------------------
    @property
    def page_count(self) -> int:
        total = len(self.backend.records())
        size = self.settings.page_size
        return max((total + size - 1) // size, 1)

    def load_page(self, index: int) -> None:
        """Show page ``index`` (0-based), replacing the page membership."""
        self.page_index = min(max(index, 0), self.page_count - 1)
        size = self.settings.page_size
        start = self.page_index * size
        self.session.registry.page.replace(self.backend.records()[start:start + size])

    def find_record(self, record_id: str) -> SelectableRecord | None:
        return self.backend.get(record_id)

    # --------------------------
    # Lifecycle
    # --------------------------
    def request_shutdown(self) -> None:
        self.shutdown_event.set()

    def is_shutdown_requested(self) -> bool:
        return self.shutdown_event.is_set()


def describe_record(record: SelectableRecord) -> str:
    match record.kind:
        case RecordKind.ACCOUNT:
            state = "active" if record.is_active else "suspended"
            badge = ", verified" if record.is_verified else ""
            return f"{record.role} ({state}{badge})"
        case RecordKind.MEDIA_ASSET:
            return f"video ({record.verification_status})"
        case RecordKind.SCHEDULED_EVENT:
            return f"event ({record.status}, {'active' if record.is_active else 'inactive'})"
    return str(record.kind)


def print_result(control: ConsoleControl, result: ExecutionResult) -> None:
    style = "ansigreen" if result.success else "ansired"
    total = result.submitted_count
    lifecycle = control.session.lifecycle
    label = lifecycle.definition.progress_label if lifecycle is not None else "Processing"
    console_print(f"  {label}: {progress_percentage(result.processed_count, total)}% of {total} item(s) processed", "ansibrightblack")
    for index, line in enumerate(format_result_lines(result, control.settings.error_preview)):
        console_print(f"  {line}", style if index == 0 else "")
    console_print("")


def print_confirmation(control: ConsoleControl, definition: OperationDefinition) -> None:
    for line in box_title(definition.title):
        console_print(line, "ansired" if definition.is_destructive else "ansiyellow")
    console_print(f"  {definition.consequence}")

    affected = control.session.gate.affected_items
    names, remaining = control.session.gate.preview(control.settings.affected_items_preview)
    console_print(f"  Affected Items ({len(affected)})")
    for name in names:
        console_print(f"    • {name}")
    if remaining:
        console_print(f"    +{remaining} more", "ansibrightblack")

    if definition.asks_for_reason or definition.is_destructive:
        console_print(f"  Reason {definition.reason_requirement}: use 'reason <text>'", "ansicyan")
    if definition.is_destructive:
        console_print("  This action cannot be undone. Please make sure you want to proceed.", "ansired")
    console_print("  Type 'confirm' to proceed or 'cancel' to abort.\n", "ansibrightblack")


# ==================== Command Handlers ====================

async def cmd_help(control: ConsoleControl, args: list[str]) -> None:
    """Display available commands and their descriptions."""
    for line in box_title("Console Commands Reference"):
        console_print(line, "ansigreen")

    for cmd in COMMANDS:
        aliases_str = f" (aliases: {', '.join(cmd.aliases)})" if cmd.aliases else ""
        console_print(f"\n  {cmd.name}{aliases_str}", "ansicyan")
        console_print(f"    {cmd.description}")
        if cmd.usage:
            console_print(f"    Usage: {cmd.usage}", "ansibrightblack")

    console_print("")


async def cmd_show(control: ConsoleControl, args: list[str]) -> None:
    """List the records on the current page with their selection state."""
    registry = control.session.registry
    title = f"Page {control.page_index + 1} of {control.page_count}"
    for line in box_title(title):
        console_print(line, "ansiblue")

    if not registry.has_page:
        console_print("  No records on this page.", "ansiyellow")
        return

    marker = "[x]" if registry.is_all_selected_on_page else "[ ]"
    console_print(f"  {marker} Select all on page ({len(registry.page)})", "ansibrightblack")
    for record in registry.page:
        mark = "[x]" if registry.is_selected(record.id) else "[ ]"
        console_print(f"  {mark} {record.id:<8} {display_name(record):<28} {describe_record(record)}")
    if registry.selected_count:
        console_print(f"\n  {registry.summary()}", "ansicyan")
    console_print("")


async def cmd_page(control: ConsoleControl, args: list[str]) -> None:
    """Jump to a page (1-based) and show it."""
    if args:
        try:
            control.load_page(int(args[0]) - 1)
        except ValueError:
            console_print(f"Invalid page number '{args[0]}'.", "ansired")
            return
    else:
        control.load_page(control.page_index)
    await cmd_show(control, [])


async def cmd_next(control: ConsoleControl, args: list[str]) -> None:
    control.load_page(control.page_index + 1)
    await cmd_show(control, [])


async def cmd_prev(control: ConsoleControl, args: list[str]) -> None:
    control.load_page(control.page_index - 1)
    await cmd_show(control, [])


async def cmd_select(control: ConsoleControl, args: list[str]) -> None:
    """Select records by id, on any page."""
    if not args:
        console_print("Usage: select <id> [<id> ...]", "ansiyellow")
        return
    for record_id in args:
        record = control.find_record(record_id)
        if record is None:
            console_print(f"Unknown record '{record_id}'.", "ansiyellow")
            continue
        control.session.registry.select(record)
    console_print(control.session.registry.summary(), "ansicyan")


async def cmd_deselect(control: ConsoleControl, args: list[str]) -> None:
    if not args:
        console_print("Usage: deselect <id> [<id> ...]", "ansiyellow")
        return
    for record_id in args:
        control.session.registry.deselect(record_id)
    console_print(control.session.registry.summary(), "ansicyan")


async def cmd_toggle(control: ConsoleControl, args: list[str]) -> None:
    """Toggle "select all on page"; a partially selected page becomes fully selected."""
    control.session.registry.toggle_select_all_on_page()
    await cmd_show(control, [])


async def cmd_clear(control: ConsoleControl, args: list[str]) -> None:
    control.session.registry.clear()
    console_print("Selection cleared.", "ansigreen")


async def cmd_selected(control: ConsoleControl, args: list[str]) -> None:
    """List every selected record across all pages."""
    registry = control.session.registry
    if not registry.selected_count:
        console_print("Nothing selected.", "ansiyellow")
        return
    console_print(registry.summary(), "ansicyan")
    for record in registry.all_selected():
        console_print(f"  • {record.id:<8} {display_name(record):<28} {record.kind}")


def _operation_menu(control: ConsoleControl) -> List[OperationDefinition]:
    return control.session.available_operations()


async def cmd_ops(control: ConsoleControl, args: list[str]) -> None:
    """List the bulk operations available for the current selection."""
    operations = _operation_menu(control)
    if not operations:
        console_print("Select records to see the available bulk operations.", "ansiyellow")
        return

    for line in box_title(f"Bulk Operations ({control.session.registry.selected_count})"):
        console_print(line, "ansiblue")
    for number, definition in enumerate(operations, start=1):
        flags = []
        if definition.requires_confirmation:
            flags.append("confirm")
        if definition.is_destructive:
            flags.append("destructive")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        style = "ansired" if definition.is_destructive else ""
        console_print(f"  {number}. {definition.label:<18} {definition.description}{suffix}", style)
    console_print("")


def _resolve_operation(control: ConsoleControl, token: str) -> OperationKind | None:
    operations = _operation_menu(control)
    if token.isdigit():
        index = int(token) - 1
        return operations[index].kind if 0 <= index < len(operations) else None
    try:
        return OperationKind(token)
    except ValueError:
        return None


async def cmd_pick(control: ConsoleControl, args: list[str]) -> None:
    """Pick an operation by menu number or kind (e.g. ``user_suspend``)."""
    if not args:
        console_print("Usage: pick <number|operation>", "ansiyellow")
        return
    operation = _resolve_operation(control, args[0])
    if operation is None:
        console_print(f"No operation '{args[0]}' in the current menu. Type 'ops' to list them.", "ansired")
        return

    result = await control.session.pick(operation)
    if result is None:
        definition = control.session.gate.definition
        if definition is not None:
            print_confirmation(control, definition)
        return
    print_result(control, result)
    control.load_page(control.page_index)


async def cmd_reason(control: ConsoleControl, args: list[str]) -> None:
    control.session.set_reason(" ".join(args))
    state = "enabled" if control.session.gate.can_confirm else "disabled until a reason is given"
    console_print(f"Reason recorded. Confirm is {state}.", "ansicyan")


async def cmd_confirm(control: ConsoleControl, args: list[str]) -> None:
    """Confirm the pending operation."""
    if args:
        control.session.set_reason(" ".join(args))
    result = await control.session.confirm()
    if result is None:
        console_print("A reason is required for this operation.", "ansired")
        return
    print_result(control, result)
    control.load_page(control.page_index)


async def cmd_cancel(control: ConsoleControl, args: list[str]) -> None:
    control.session.cancel()
    console_print("Operation cancelled.", "ansiyellow")


async def cmd_retry(control: ConsoleControl, args: list[str]) -> None:
    """Retry only the items that failed in the last attempt."""
    result = await control.session.retry_failed()
    print_result(control, result)
    control.load_page(control.page_index)


async def cmd_dismiss(control: ConsoleControl, args: list[str]) -> None:
    control.session.dismiss()
    console_print("Result dismissed.", "ansibrightblack")


async def cmd_audit(control: ConsoleControl, args: list[str]) -> None:
    """Show the most recent audit entries."""
    if control.audit is None:
        console_print("Audit trail is disabled.", "ansiyellow")
        return
    try:
        limit = int(args[0]) if args else 10
    except ValueError:
        console_print(f"Invalid count '{args[0]}'.", "ansired")
        return

    entries = await control.audit.recent(limit)
    if not entries:
        console_print("No operations recorded yet.", "ansiyellow")
        return
    for line in box_title(f"Audit Trail ({len(entries)})"):
        console_print(line, "ansiblue")
    for entry in entries:
        status = "ok" if entry.success else f"{entry.failed_count} failed"
        reason = f' reason="{entry.reason}"' if entry.reason else ""
        console_print(
            f"  {humanize_timestamp(entry.recorded_at)}  {entry.operation_id}  "
            f"{entry.operation_kind}  processed={entry.processed_count} ({status}){reason}"
        )
    console_print("")


async def cmd_shutdown(control: ConsoleControl, args: list[str]) -> None:
    """Request console shutdown."""
    console_print("Shutdown requested.", "ansiyellow")
    control.request_shutdown()


# ==================== Command Registry ====================

COMMANDS: list[Command] = [
    Command(name="help", handler=cmd_help, aliases=["h", "?"], description="Show this help message with all available commands"),
    Command(name="show", handler=cmd_show, aliases=["ls"], description="List the records on the current page"),
    Command(name="page", handler=cmd_page, aliases=["p"], description="Go to a results page", usage="page <number>"),
    Command(name="next", handler=cmd_next, aliases=["n"], description="Go to the next results page"),
    Command(name="prev", handler=cmd_prev, aliases=["b"], description="Go to the previous results page"),
    Command(name="select", handler=cmd_select, aliases=["s"], description="Select records by id", usage="select <id> [<id> ...]"),
    Command(name="deselect", handler=cmd_deselect, aliases=["d"], description="De-select records by id", usage="deselect <id> [<id> ...]"),
    Command(name="toggle", handler=cmd_toggle, aliases=["all"], description="Toggle 'select all on page'"),
    Command(name="clear", handler=cmd_clear, aliases=["none"], description="Clear the whole selection"),
    Command(name="selected", handler=cmd_selected, aliases=["sel"], description="List every selected record"),
    Command(name="ops", handler=cmd_ops, aliases=["menu"], description="List bulk operations for the selection"),
    Command(name="pick", handler=cmd_pick, aliases=["op"], description="Pick a bulk operation", usage="pick <number|operation>"),
    Command(name="reason", handler=cmd_reason, aliases=["r"], description="Give the reason for the pending operation", usage="reason <text>"),
    Command(name="confirm", handler=cmd_confirm, aliases=["yes"], description="Confirm the pending operation", usage="confirm [reason]"),
    Command(name="cancel", handler=cmd_cancel, aliases=["no"], description="Cancel the pending operation"),
    Command(name="retry", handler=cmd_retry, aliases=[], description="Retry only the failed items of the last operation"),
    Command(name="dismiss", handler=cmd_dismiss, aliases=["close"], description="Dismiss the last operation result"),
    Command(name="audit", handler=cmd_audit, aliases=["log"], description="Show recent audit entries", usage="audit [count]"),
    Command(name="shutdown", handler=cmd_shutdown, aliases=["stop", "quit", "exit"], description="Leave the console"),
]


# ==================== Command Dispatcher ====================

async def handle_console_command(command: str, control: ConsoleControl) -> None:
    """Interpret and execute a single console command line."""
    if not command.strip():
        return

    parts = command.strip().split()
    cmd_name = parts[0].lower()
    args = parts[1:]

    for cmd in COMMANDS:
        if cmd.matches(cmd_name):
            try:
                await cmd.handler(control, args)
            except BulkModerationError as exc:
                console_print(str(exc), "ansiyellow")
            except Exception as exc:
                logger.exception("[CONSOLE] Error executing command '%s': %s", cmd_name, exc)
                console_print(f"Error executing command: {exc}", "ansired")
            return

    console_print(f"Unknown command '{cmd_name}'. Type 'help' for available commands.", "ansired")


async def run_console(control: ConsoleControl) -> None:
    """Run the interactive operator console until shutdown is requested."""
    session = PromptSession("bulkmod> ")

    for line in box_title("bulkmod Operator Console"):
        console_print(line, "ansigreen")
    console_print("Type 'help' for available commands or 'exit' to quit.\n", "ansibrightblack")
    control.load_page(control.page_index)

    with patch_stdout():
        while not control.is_shutdown_requested():
            try:
                line = await session.prompt_async()
                if line.strip():
                    await handle_console_command(line, control)
            except (EOFError, KeyboardInterrupt):
                console_print("\nShutdown requested by user.", "ansiyellow")
                control.request_shutdown()
                break
            except Exception as exc:
                logger.exception("[CONSOLE] Error in console input loop: %s", exc)
                console_print(f"Error: {exc}", "ansired")


@asynccontextmanager
async def console_session(control: ConsoleControl) -> AsyncIterator[ConsoleControl]:
    """Run the console as a background task, cancelling it on exit."""
    console_task = asyncio.create_task(run_console(control))
    try:
        yield control
    finally:
        control.request_shutdown()
        console_task.cancel()
        try:
            await console_task
        except asyncio.CancelledError:
            pass
