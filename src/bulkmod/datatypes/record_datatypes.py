"""
Selectable record types for bulk moderation.

Records are read-only references produced by the result listing. The bulk
moderation core only ever changes whether a record is selected, never what
it contains.

Key Features:
- `RecordKind`: closed discriminant shared by every record variant.
- `AccountRecord`, `MediaAssetRecord`, `ScheduledEventRecord`: the three variants.
- `record_from_mapping`: discriminates raw backend payloads by field presence.
- `group_by_kind`: partitions records in the fixed kind order used for menus and dispatch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Union


class RecordKind(Enum):
    """Discriminant of a selectable record."""

    ACCOUNT = "account"
    MEDIA_ASSET = "media_asset"
    SCHEDULED_EVENT = "scheduled_event"

    def __str__(self) -> str:
        return self.value


# Menu and dispatch order; never iterate RecordKind directly for ordering
KIND_ORDER: tuple[RecordKind, ...] = (
    RecordKind.ACCOUNT,
    RecordKind.MEDIA_ASSET,
    RecordKind.SCHEDULED_EVENT,
)


@dataclass(slots=True, frozen=True)
class AccountRecord:
    """A platform account (athlete, coach, organisation...).

    Attributes:
        id: Stable account identifier.
        email: Login email address.
        display_name: Name shown on the profile.
        role: Account role; its presence identifies the variant in raw payloads.
        is_active: Whether the account can currently sign in.
        is_verified: Whether the account carries the verified badge.
    """

    id: str
    email: str
    display_name: str
    role: str
    is_active: bool = True
    is_verified: bool = False
    kind: RecordKind = field(default=RecordKind.ACCOUNT, init=False)


@dataclass(slots=True, frozen=True)
class MediaAssetRecord:
    """An uploaded talent video awaiting or past verification.

    Attributes:
        id: Stable video identifier.
        title: Title given by the uploader.
        verification_status: ``pending``, ``approved`` or ``rejected``.
        owner_id: Account that uploaded the video.
        owner_name: Display name of the uploader.
        is_active: Whether the video is publicly listed.
    """

    id: str
    title: str
    verification_status: str
    owner_id: str = ""
    owner_name: str = ""
    is_active: bool = True
    kind: RecordKind = field(default=RecordKind.MEDIA_ASSET, init=False)


@dataclass(slots=True, frozen=True)
class ScheduledEventRecord:
    """A scheduled competition or event.

    Attributes:
        id: Stable event identifier.
        title: Event title.
        status: Lifecycle status (``upcoming``, ``ongoing``, ``ended``...).
        is_active: Whether the event is visible to users.
    """

    id: str
    title: str
    status: str
    is_active: bool = True
    kind: RecordKind = field(default=RecordKind.SCHEDULED_EVENT, init=False)


SelectableRecord = Union[AccountRecord, MediaAssetRecord, ScheduledEventRecord]


def _pick(payload: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key among camelCase/snake_case spellings."""
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


def record_from_mapping(payload: Mapping[str, Any]) -> SelectableRecord:
    """Build the matching record variant from a raw backend mapping.

    The variant is decided by field presence, in this order: a ``role``
    field means an account, a verification status means a media asset, and
    a ``title`` together with a ``status`` means a scheduled event.

    Args:
        payload: Raw record as returned by the listing backend.

    Returns:
        SelectableRecord: The discriminated record.

    Raises:
        ValueError: If the payload has no ``id`` or matches no variant.
    """
    record_id = _pick(payload, "id")
    if record_id is None or str(record_id).strip() == "":
        raise ValueError("Record payload has no 'id'")
    record_id = str(record_id)

    if "role" in payload:
        return AccountRecord(
            id=record_id,
            email=str(_pick(payload, "email", default="")),
            display_name=str(_pick(payload, "displayName", "display_name", default="")),
            role=str(payload["role"]),
            is_active=bool(_pick(payload, "isActive", "is_active", default=True)),
            is_verified=bool(_pick(payload, "isVerified", "is_verified", default=False)),
        )

    verification_status = _pick(payload, "verificationStatus", "verification_status")
    if verification_status is not None:
        return MediaAssetRecord(
            id=record_id,
            title=str(_pick(payload, "title", default="")),
            verification_status=str(verification_status),
            owner_id=str(_pick(payload, "userId", "owner_id", default="")),
            owner_name=str(_pick(payload, "userName", "owner_name", default="")),
            is_active=bool(_pick(payload, "isActive", "is_active", default=True)),
        )

    if "title" in payload and "status" in payload:
        return ScheduledEventRecord(
            id=record_id,
            title=str(payload["title"]),
            status=str(payload["status"]),
            is_active=bool(_pick(payload, "isActive", "is_active", default=True)),
        )

    raise ValueError(f"Cannot determine record kind for payload with id {record_id!r}")


def display_name(record: SelectableRecord) -> str:
    """Return the most human-friendly label for a record.

    Falls back from display name to title to email, and finally to the id.
    """
    match record.kind:
        case RecordKind.ACCOUNT:
            return record.display_name or record.email or record.id
        case RecordKind.MEDIA_ASSET | RecordKind.SCHEDULED_EVENT:
            return record.title or record.id
    return record.id


def group_by_kind(records: Iterable[SelectableRecord]) -> Dict[RecordKind, List[SelectableRecord]]:
    """Partition records by kind, keeping only non-empty partitions.

    Partitions are returned in ``KIND_ORDER`` and preserve the input order
    within each partition.
    """
    buckets: Dict[RecordKind, List[SelectableRecord]] = {kind: [] for kind in KIND_ORDER}
    for record in records:
        buckets[record.kind].append(record)
    return {kind: items for kind, items in buckets.items() if items}
