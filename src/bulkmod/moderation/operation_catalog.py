"""
Operation catalog for bulk moderation.

Maps the record kinds present in a selection to the operations that may be
offered for it. Each kind contributes a fixed list of operations, and kinds
are always emitted in ``KIND_ORDER`` so the menu is stable across renders
for the same selection composition.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Tuple

from bulkmod.datatypes.operation_datatypes import OperationDefinition, OperationKind
from bulkmod.datatypes.record_datatypes import RecordKind, SelectableRecord, group_by_kind
from bulkmod.util.logger import get_logger

logger = get_logger("operation_catalog")


OPERATIONS_BY_KIND: Dict[RecordKind, Tuple[OperationDefinition, ...]] = {
    RecordKind.ACCOUNT: (
        OperationDefinition(
            kind=OperationKind.SUSPEND_ACCOUNTS,
            record_kind=RecordKind.ACCOUNT,
            label="Suspend Users",
            description_template="Suspend {count} selected {noun}",
            noun="user",
            title="Suspend Users",
            consequence="This will suspend the selected users and prevent them from accessing the platform.",
            progress_label="Suspending Users",
            operation_id_prefix="suspend",
            requires_confirmation=True,
            is_destructive=True,
            asks_for_reason=True,
        ),
        OperationDefinition(
            kind=OperationKind.VERIFY_ACCOUNTS,
            record_kind=RecordKind.ACCOUNT,
            label="Verify Users",
            description_template="Verify {count} selected {noun}",
            noun="user",
            title="Verify Users",
            consequence="This will mark the selected users as verified and grant them verified status.",
            progress_label="Verifying Users",
            operation_id_prefix="verify",
            requires_confirmation=True,
        ),
        OperationDefinition(
            kind=OperationKind.ACTIVATE_ACCOUNTS,
            record_kind=RecordKind.ACCOUNT,
            label="Activate Users",
            description_template="Activate {count} selected {noun}",
            noun="user",
            title="Activate Users",
            consequence="This will activate the selected users and restore their access to the platform.",
            progress_label="Activating Users",
            operation_id_prefix="activate",
        ),
    ),
    RecordKind.MEDIA_ASSET: (
        OperationDefinition(
            kind=OperationKind.APPROVE_MEDIA,
            record_kind=RecordKind.MEDIA_ASSET,
            label="Approve Videos",
            description_template="Approve {count} selected {noun}",
            noun="video",
            title="Approve Videos",
            consequence="This will approve the selected videos and make them visible to users.",
            progress_label="Approving Videos",
            operation_id_prefix="approve",
        ),
        OperationDefinition(
            kind=OperationKind.REJECT_MEDIA,
            record_kind=RecordKind.MEDIA_ASSET,
            label="Reject Videos",
            description_template="Reject {count} selected {noun}",
            noun="video",
            title="Reject Videos",
            consequence="This will reject the selected videos and remove them from public view.",
            progress_label="Rejecting Videos",
            operation_id_prefix="reject",
            requires_confirmation=True,
            is_destructive=True,
            asks_for_reason=True,
        ),
        OperationDefinition(
            kind=OperationKind.FLAG_MEDIA,
            record_kind=RecordKind.MEDIA_ASSET,
            label="Flag Videos",
            description_template="Flag {count} selected {noun} for review",
            noun="video",
            title="Flag Videos",
            consequence="This will flag the selected videos for manual review by moderators.",
            progress_label="Flagging Videos",
            operation_id_prefix="flag",
            requires_confirmation=True,
            asks_for_reason=True,
        ),
    ),
    RecordKind.SCHEDULED_EVENT: (
        OperationDefinition(
            kind=OperationKind.ACTIVATE_EVENTS,
            record_kind=RecordKind.SCHEDULED_EVENT,
            label="Activate Events",
            description_template="Activate {count} selected {noun}",
            noun="event",
            title="Activate Events",
            consequence="This will activate the selected events and make them visible to users.",
            progress_label="Activating Events",
            operation_id_prefix="event_activate",
        ),
        OperationDefinition(
            kind=OperationKind.DEACTIVATE_EVENTS,
            record_kind=RecordKind.SCHEDULED_EVENT,
            label="Deactivate Events",
            description_template="Deactivate {count} selected {noun}",
            noun="event",
            title="Deactivate Events",
            consequence="This will deactivate the selected events and hide them from users.",
            progress_label="Deactivating Events",
            operation_id_prefix="event_deactivate",
            requires_confirmation=True,
            is_destructive=True,
            asks_for_reason=True,
        ),
    ),
}


def operation_template(kind: OperationKind) -> OperationDefinition:
    """Return the unrendered catalog entry for ``kind``.

    Raises:
        KeyError: If ``kind`` has no catalog entry.
    """
    for definitions in OPERATIONS_BY_KIND.values():
        for definition in definitions:
            if definition.kind is kind:
                return definition
    raise KeyError(kind)


def compute_available_operations(selection: Iterable[SelectableRecord]) -> List[OperationDefinition]:
    """Compute the operations that may be offered for ``selection``.

    Every record kind present in the selection contributes its fixed list of
    operations, rendered for the number of records of that kind. An empty
    selection yields an empty catalog.

    Args:
        selection: Currently selected records, from any page.

    Returns:
        List[OperationDefinition]: Rendered entries in deterministic menu order.
    """
    operations: List[OperationDefinition] = []
    for record_kind, records in group_by_kind(selection).items():
        operations.extend(
            replace(definition, selected_count=len(records))
            for definition in OPERATIONS_BY_KIND[record_kind]
        )

    logger.debug(
        "[CATALOG] %d operation(s) available: %s",
        len(operations),
        ", ".join(str(definition.kind) for definition in operations) or "none",
    )
    return operations
