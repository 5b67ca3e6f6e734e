from bulkmod.datatypes.record_datatypes import AccountRecord, MediaAssetRecord, RecordKind
from bulkmod.moderation.page_membership import PageMembership
from bulkmod.moderation.selection_registry import SelectionRegistry


def _accounts(*ids):
    return [AccountRecord(id=i, email=f"{i}@example.com", display_name=i.upper(), role="athlete") for i in ids]


def test_page_membership_drops_repeated_ids():
    page = PageMembership(_accounts("u1", "u2", "u1"))

    assert page.ids == ["u1", "u2"]
    assert len(page) == 2
    assert "u2" in page.ids
    assert "u3" not in page.ids


def test_select_and_deselect():
    registry = SelectionRegistry()
    u1, u2 = _accounts("u1", "u2")

    registry.select(u1)
    registry.select(u2)
    registry.deselect("u1")
    registry.deselect("missing")

    assert not registry.is_selected("u1")
    assert registry.is_selected("u2")
    assert registry.selected_count == 1


def test_toggle_selects_partially_selected_page():
    records = _accounts("a", "b", "c", "d", "e")
    registry = SelectionRegistry(PageMembership(records))
    registry.select(records[0])
    registry.select(records[3])

    registry.toggle_select_all_on_page()

    assert registry.selected_count == 5
    assert registry.is_all_selected_on_page


def test_toggle_clears_fully_selected_page_only():
    page_one = _accounts("a", "b")
    other = _accounts("z")[0]
    registry = SelectionRegistry(PageMembership(page_one))
    registry.select(other)
    registry.select_all_on_page()

    registry.toggle_select_all_on_page()

    assert [r.id for r in registry.all_selected()] == ["z"]
    assert not registry.is_all_selected_on_page


def test_selection_survives_page_replacement():
    page = PageMembership(_accounts("a", "b"))
    registry = SelectionRegistry(page)
    off_page = _accounts("x")[0]
    registry.select(off_page)

    page.replace(_accounts("c", "d"))

    assert registry.is_selected("x")
    assert not registry.is_all_selected_on_page
    registry.select_all_on_page()
    assert registry.is_all_selected_on_page
    assert registry.selected_count == 3


def test_empty_page_is_never_all_selected():
    registry = SelectionRegistry()

    assert registry.has_page is False
    assert registry.is_all_selected_on_page is False
    registry.toggle_select_all_on_page()
    assert registry.selected_count == 0


def test_selected_of_kind_and_clear():
    registry = SelectionRegistry()
    registry.select(_accounts("u1")[0])
    registry.select(MediaAssetRecord(id="v1", title="Drills", verification_status="pending"))

    assert [r.id for r in registry.selected_of_kind(RecordKind.MEDIA_ASSET)] == ["v1"]
    assert registry.summary() == "2 items selected"

    registry.clear()

    assert registry.selected_count == 0
    assert registry.summary() == "0 items selected"


def test_reselect_keeps_latest_snapshot():
    registry = SelectionRegistry()
    registry.select(AccountRecord(id="u1", email="", display_name="Old", role="athlete"))
    registry.select(AccountRecord(id="u1", email="", display_name="New", role="athlete"))

    assert registry.selected_count == 1
    assert registry.get("u1").display_name == "New"
    assert registry.summary() == "1 item selected"
