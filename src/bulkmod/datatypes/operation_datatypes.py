"""
Operation and result types for bulk moderation.

This module defines the closed set of bulk operations, the catalog entry
offered to an operator, and the uniform result of one execution attempt.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from bulkmod.datatypes.record_datatypes import RecordKind


class OperationKind(Enum):
    """Enumeration of supported bulk moderation operations."""

    SUSPEND_ACCOUNTS = "user_suspend"
    VERIFY_ACCOUNTS = "user_verify"
    ACTIVATE_ACCOUNTS = "user_activate"
    APPROVE_MEDIA = "video_approve"
    REJECT_MEDIA = "video_reject"
    FLAG_MEDIA = "video_flag"
    ACTIVATE_EVENTS = "event_activate"
    DEACTIVATE_EVENTS = "event_deactivate"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class OperationDefinition:
    """Immutable catalog entry describing one offerable operation.

    Attributes:
        kind: Operation this entry triggers.
        record_kind: Record variant the operation applies to.
        label: Short menu label ("Suspend Users").
        description_template: Menu description with ``{count}`` and ``{noun}`` placeholders.
        noun: Singular noun for the record variant ("user", "video", "event").
        title: Heading of the confirmation dialog.
        consequence: Sentence describing what confirming will do.
        progress_label: Present-participle label shown while running ("Suspending Users").
        operation_id_prefix: Prefix of operation ids minted for this operation.
        requires_confirmation: Whether the operation pauses at the confirmation gate.
        is_destructive: Whether the operation is irreversible and needs a reason.
        asks_for_reason: Whether the confirmation offers a reason field at all.
        selected_count: Number of selected records this entry was rendered for.
    """

    kind: OperationKind
    record_kind: RecordKind
    label: str
    description_template: str
    noun: str
    title: str
    consequence: str
    progress_label: str
    operation_id_prefix: str
    requires_confirmation: bool = False
    is_destructive: bool = False
    asks_for_reason: bool = False
    selected_count: int = 0

    @property
    def description(self) -> str:
        """Menu description rendered for ``selected_count`` with singular/plural noun."""
        noun = self.noun if self.selected_count == 1 else f"{self.noun}s"
        return self.description_template.format(count=self.selected_count, noun=noun)

    @property
    def reason_requirement(self) -> str:
        """Label suffix for the reason field: ``(required)``, ``(optional)`` or empty."""
        if self.is_destructive:
            return "(required)"
        if self.asks_for_reason:
            return "(optional)"
        return ""


@dataclass(slots=True, frozen=True)
class ItemError:
    """Failure of a single record within an execution attempt.

    Attributes:
        item_id: Id of the record that failed.
        error: Human-readable failure message.
    """

    item_id: str
    error: str

    def to_dict(self) -> Dict[str, str]:
        return {"itemId": self.item_id, "error": self.error}


@dataclass(slots=True)
class ExecutionResult:
    """Normalized outcome of one execution attempt.

    Invariants: ``processed_count + failed_count`` equals the number of
    records submitted in the attempt, and ``success`` is true exactly when
    ``failed_count`` is zero.

    Attributes:
        success: True when no record failed.
        processed_count: Records the executors reported as done.
        failed_count: Records that failed for any reason.
        errors: One entry per failed record.
        operation_id: Fresh audit correlation token for this attempt.
        operation_kind: Operation that was attempted.
        reason: Operator reason passed to the executors, if any.
    """

    success: bool
    processed_count: int
    failed_count: int
    errors: List[ItemError] = field(default_factory=list)
    operation_id: str = ""
    operation_kind: OperationKind | None = None
    reason: str | None = None

    @property
    def failed_ids(self) -> List[str]:
        """Ids of the failed records, in error order."""
        return [error.item_id for error in self.errors]

    @property
    def submitted_count(self) -> int:
        return self.processed_count + self.failed_count

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase shape consumed by the hosting dashboard."""
        return {
            "success": self.success,
            "processedCount": self.processed_count,
            "failedCount": self.failed_count,
            "errors": [error.to_dict() for error in self.errors],
            "operationId": self.operation_id,
        }
