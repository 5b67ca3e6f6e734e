"""
Operator session tying the bulk moderation components together.

A ``BulkOperationSession`` owns one selection registry, one confirmation
gate and the lifecycle state of the operation being worked on. It is the
caller of the execution engine: it snapshots the selection, enforces a
single in-flight attempt, clears the selection after a fully successful
attempt (when configured), and notifies completion listeners.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List

from bulkmod.configuration.bulk_settings import BulkOperationSettings
from bulkmod.datatypes.operation_datatypes import ExecutionResult, OperationDefinition, OperationKind
from bulkmod.datatypes.record_datatypes import SelectableRecord
from bulkmod.moderation.confirmation_gate import ConfirmationGate
from bulkmod.moderation.errors import (
    NoOperationSelectedError,
    OperationInFlightError,
    UnknownOperationError,
)
from bulkmod.moderation.execution_engine import ExecutionEngine
from bulkmod.moderation.operation_catalog import compute_available_operations
from bulkmod.moderation.retry_coordinator import RetryCoordinator
from bulkmod.moderation.selection_registry import SelectionRegistry
from bulkmod.util.logger import get_logger

logger = get_logger("bulk_operation_session")

OperationCompleteCallback = Callable[[ExecutionResult], Awaitable[None] | None]


@dataclass(slots=True)
class ExecutionLifecycleState:
    """State of the operation the operator picked, until it is dismissed.

    Attributes:
        definition: Catalog entry that was picked.
        items: Snapshot of the records the first attempt submits; retries
            resolve failed ids against it.
        reason: Reason confirmed for the first attempt, reused by retries.
        in_flight: True while an attempt is awaiting its executors.
        last_result: Result of the most recent attempt.
        attempts: Number of completed attempts, retries included.
    """

    definition: OperationDefinition
    items: List[SelectableRecord] = field(default_factory=list)
    reason: str | None = None
    in_flight: bool = False
    last_result: ExecutionResult | None = None
    attempts: int = 0


class BulkOperationSession:
    """One operator's bulk moderation session."""

    def __init__(
        self,
        engine: ExecutionEngine,
        registry: SelectionRegistry | None = None,
        settings: BulkOperationSettings | None = None,
    ) -> None:
        self.engine = engine
        self.registry = registry if registry is not None else SelectionRegistry()
        self.settings = settings if settings is not None else BulkOperationSettings()
        self.gate = ConfirmationGate()
        self.retry_coordinator = RetryCoordinator(engine)
        self.lifecycle: ExecutionLifecycleState | None = None
        self._listeners: List[OperationCompleteCallback] = []

    # --------------------------
    # Listeners
    # --------------------------
    def add_completion_listener(self, callback: OperationCompleteCallback) -> None:
        """Register a callback invoked with every execution result, retries included."""
        self._listeners.append(callback)

    async def on_operation_complete(self, result: ExecutionResult) -> None:
        for callback in list(self._listeners):
            try:
                outcome = callback(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception("[SESSION] Completion listener failed for %s", result.operation_id)

    # --------------------------
    # Operation lifecycle
    # --------------------------
    @property
    def is_in_flight(self) -> bool:
        return self.lifecycle is not None and self.lifecycle.in_flight

    def _ensure_idle(self) -> None:
        if self.is_in_flight:
            logger.warning("[SESSION] Ignoring request: an operation is already in flight")
            raise OperationInFlightError("An operation is already in progress")

    def available_operations(self) -> List[OperationDefinition]:
        return compute_available_operations(self.registry.all_selected())

    async def pick(self, operation: OperationKind) -> ExecutionResult | None:
        """Pick an operation from the current catalog.

        Operations that need no confirmation execute immediately and their
        result is returned. Otherwise the gate opens and ``None`` is returned.

        Raises:
            OperationInFlightError: If an attempt is still pending.
            UnknownOperationError: If ``operation`` is not offered for the selection.
        """
        self._ensure_idle()

        definition = next((d for d in self.available_operations() if d.kind is operation), None)
        if definition is None:
            raise UnknownOperationError(f"{operation} is not available for the current selection")

        items = self.registry.selected_of_kind(definition.record_kind)
        self.lifecycle = ExecutionLifecycleState(definition=definition, items=items)
        logger.info("[SESSION] Picked %s for %d record(s)", operation, len(items))

        confirmed = self.gate.choose(definition, items)
        if confirmed is None:
            return None
        return await self._run(confirmed.reason)

    def set_reason(self, reason: str) -> None:
        self.gate.set_reason(reason)

    async def confirm(self) -> ExecutionResult | None:
        """Confirm the gated operation; returns ``None`` while a required reason is missing."""
        self._ensure_idle()
        confirmed = self.gate.confirm()
        if confirmed is None:
            return None
        return await self._run(confirmed.reason)

    def cancel(self) -> None:
        """Cancel the operation awaiting confirmation."""
        self._ensure_idle()
        self.gate.cancel()
        if self.lifecycle is not None and self.lifecycle.last_result is None:
            self.lifecycle = None

    async def retry_failed(self) -> ExecutionResult:
        """Retry the failed records of the last attempt with the original reason.

        Raises:
            NoOperationSelectedError: If there is no previous result to retry.
            OperationInFlightError: If an attempt is still pending.
        """
        self._ensure_idle()
        if self.lifecycle is None or self.lifecycle.last_result is None:
            raise NoOperationSelectedError("There is no completed operation to retry")
        if not self.lifecycle.last_result.errors:
            logger.info("[SESSION] %s has no failed items to retry", self.lifecycle.last_result.operation_id)
            return self.lifecycle.last_result
        return await self._run(self.lifecycle.reason, retry=True)

    def dismiss(self) -> None:
        """Discard the lifecycle state once the operator closes the result."""
        self._ensure_idle()
        self.gate.reset()
        self.lifecycle = None

    async def _run(self, reason: str | None, *, retry: bool = False) -> ExecutionResult:
        state = self.lifecycle
        if state is None:
            raise NoOperationSelectedError("No operation has been picked")

        operation = state.definition.kind
        state.in_flight = True
        try:
            if retry and state.last_result is not None:
                result = await self.retry_coordinator.retry(operation, state.last_result, state.items, state.reason)
            else:
                state.reason = reason
                result = await self.engine.execute(operation, state.items, reason)
        finally:
            state.in_flight = False

        state.last_result = result
        state.attempts += 1
        self.gate.reset()

        if result.success and self.settings.clear_selection_on_success:
            self.registry.clear()

        await self.on_operation_complete(result)
        return result
