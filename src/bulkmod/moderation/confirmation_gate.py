"""
Confirmation gate for bulk moderation operations.

Some operations execute as soon as they are picked. Others pause until the
operator confirms, and destructive ones additionally refuse to proceed
without a non-blank reason. A blank reason on a destructive operation is a
validation outcome handled entirely here: ``confirm()`` returns ``None`` and
the gate keeps waiting, so nothing reaches the execution engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

from bulkmod.datatypes.operation_datatypes import OperationDefinition
from bulkmod.datatypes.record_datatypes import SelectableRecord, display_name
from bulkmod.moderation.errors import NoOperationSelectedError
from bulkmod.util.logger import get_logger

logger = get_logger("confirmation_gate")


class GateState(Enum):
    """States of the confirmation gate for the operation being prepared."""

    NOT_STARTED = "not_started"
    AWAITING_REASON = "awaiting_reason"
    CONFIRMED = "confirmed"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class ConfirmedOperation:
    """An operation cleared for execution.

    Attributes:
        definition: Catalog entry the operator picked.
        reason: Trimmed operator reason, or None when none was given.
    """

    definition: OperationDefinition
    reason: str | None = None


class ConfirmationGate:
    """Per-session gate between picking an operation and executing it."""

    def __init__(self) -> None:
        self.state = GateState.NOT_STARTED
        self.definition: OperationDefinition | None = None
        self.reason: str = ""
        self._items: List[SelectableRecord] = []

    def choose(
        self,
        definition: OperationDefinition,
        items: Sequence[SelectableRecord] = (),
    ) -> ConfirmedOperation | None:
        """Start gating ``definition``.

        Returns a ``ConfirmedOperation`` right away when the operation needs
        no confirmation; otherwise moves to ``AWAITING_REASON`` and returns
        ``None``.
        """
        self.definition = definition
        self.reason = ""
        self._items = list(items)

        if not definition.requires_confirmation:
            self.state = GateState.CONFIRMED
            logger.debug("[GATE] %s needs no confirmation", definition.kind)
            return ConfirmedOperation(definition=definition, reason=None)

        self.state = GateState.AWAITING_REASON
        logger.debug(
            "[GATE] %s awaiting confirmation (destructive=%s)",
            definition.kind,
            definition.is_destructive,
        )
        return None

    def set_reason(self, reason: str) -> None:
        """Record the operator's free-text reason while awaiting confirmation."""
        if self.state is not GateState.AWAITING_REASON:
            raise NoOperationSelectedError("No operation is awaiting confirmation")
        self.reason = reason

    @property
    def can_confirm(self) -> bool:
        """Whether the confirm affordance is enabled."""
        if self.state is not GateState.AWAITING_REASON or self.definition is None:
            return False
        return not self.definition.is_destructive or bool(self.reason.strip())

    def confirm(self) -> ConfirmedOperation | None:
        """Confirm the pending operation.

        Returns:
            ConfirmedOperation | None: The cleared operation, or ``None`` if a
            destructive operation still lacks a reason.

        Raises:
            NoOperationSelectedError: If no operation is awaiting confirmation.
        """
        if self.state is not GateState.AWAITING_REASON or self.definition is None:
            raise NoOperationSelectedError("No operation is awaiting confirmation")

        if not self.can_confirm:
            logger.info("[GATE] A reason is required to %s", self.definition.label.lower())
            return None

        trimmed = self.reason.strip()
        self.state = GateState.CONFIRMED
        self.reason = ""
        logger.debug("[GATE] %s confirmed (reason given: %s)", self.definition.kind, bool(trimmed))
        return ConfirmedOperation(definition=self.definition, reason=trimmed or None)

    def cancel(self) -> None:
        """Abandon the pending operation and forget any partially typed reason."""
        if self.definition is not None:
            logger.debug("[GATE] %s cancelled from %s", self.definition.kind, self.state)
        self.reset()

    def reset(self) -> None:
        self.state = GateState.NOT_STARTED
        self.definition = None
        self.reason = ""
        self._items = []

    # --------------------------
    # Confirmation dialog preview
    # --------------------------
    @property
    def affected_items(self) -> List[SelectableRecord]:
        return list(self._items)

    def preview(self, limit: int = 3) -> Tuple[List[str], int]:
        """Display names of the first ``limit`` affected items and how many more there are."""
        names = [display_name(record) for record in self._items[:limit]]
        return names, max(len(self._items) - limit, 0)
