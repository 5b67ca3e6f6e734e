import pytest

from bulkmod.datatypes.record_datatypes import (
    AccountRecord,
    MediaAssetRecord,
    RecordKind,
    ScheduledEventRecord,
    display_name,
    group_by_kind,
    record_from_mapping,
)


def test_record_from_mapping_detects_account():
    record = record_from_mapping(
        {"id": "u1", "email": "a@example.com", "displayName": "Ayo", "role": "athlete", "isVerified": True}
    )

    assert isinstance(record, AccountRecord)
    assert record.kind is RecordKind.ACCOUNT
    assert record.display_name == "Ayo"
    assert record.is_verified is True
    assert record.is_active is True


def test_record_from_mapping_detects_media_asset():
    record = record_from_mapping({"id": "v1", "title": "Drills", "verificationStatus": "pending", "userId": "u1"})

    assert isinstance(record, MediaAssetRecord)
    assert record.verification_status == "pending"
    assert record.owner_id == "u1"


def test_record_from_mapping_accepts_snake_case():
    record = record_from_mapping({"id": 7, "title": "Drills", "verification_status": "approved", "is_active": False})

    assert isinstance(record, MediaAssetRecord)
    assert record.id == "7"
    assert record.is_active is False


def test_record_from_mapping_detects_event():
    record = record_from_mapping({"id": "e1", "title": "Trials", "status": "upcoming"})

    assert isinstance(record, ScheduledEventRecord)
    assert record.kind is RecordKind.SCHEDULED_EVENT


def test_role_wins_over_other_fields():
    record = record_from_mapping({"id": "u9", "role": "coach", "title": "x", "status": "y", "verificationStatus": "z"})

    assert record.kind is RecordKind.ACCOUNT


@pytest.mark.parametrize("payload", [{"role": "athlete"}, {"id": "  ", "role": "athlete"}, {"id": "x", "title": "only title"}])
def test_record_from_mapping_rejects_unknown_payloads(payload):
    with pytest.raises(ValueError):
        record_from_mapping(payload)


def test_display_name_fallbacks():
    assert display_name(AccountRecord(id="u1", email="a@example.com", display_name="Ayo", role="athlete")) == "Ayo"
    assert display_name(AccountRecord(id="u1", email="a@example.com", display_name="", role="athlete")) == "a@example.com"
    assert display_name(AccountRecord(id="u1", email="", display_name="", role="athlete")) == "u1"
    assert display_name(MediaAssetRecord(id="v1", title="", verification_status="pending")) == "v1"
    assert display_name(ScheduledEventRecord(id="e1", title="Cup", status="ongoing")) == "Cup"


def test_group_by_kind_uses_fixed_order_and_skips_empty_kinds():
    records = [
        ScheduledEventRecord(id="e1", title="Cup", status="ongoing"),
        AccountRecord(id="u1", email="", display_name="", role="athlete"),
        AccountRecord(id="u2", email="", display_name="", role="coach"),
    ]

    groups = group_by_kind(records)

    assert list(groups) == [RecordKind.ACCOUNT, RecordKind.SCHEDULED_EVENT]
    assert [r.id for r in groups[RecordKind.ACCOUNT]] == ["u1", "u2"]


def test_records_are_immutable():
    record = AccountRecord(id="u1", email="", display_name="", role="athlete")

    with pytest.raises(AttributeError):
        record.is_active = False  # type: ignore[misc]
