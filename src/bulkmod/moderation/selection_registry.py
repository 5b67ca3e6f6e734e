"""
Selection registry for bulk moderation.

The registry holds every currently selected record keyed by id, across all
pages visited in a moderation session. Presence in the registry is exactly
"selected"; removal is the only way to de-select.

Page-scoped operations ("select all on this page") read the injected
``PageMembership`` but never change it, and never touch selections made on
other pages.
"""

from __future__ import annotations

from typing import Dict, List

from bulkmod.datatypes.record_datatypes import RecordKind, SelectableRecord
from bulkmod.moderation.page_membership import PageMembership
from bulkmod.util.logger import get_logger

logger = get_logger("selection_registry")


class SelectionRegistry:
    """Session-owned set of selected records.

    One instance belongs to one operator session. It is mutated only in
    response to operator input, so it carries no locking.
    """

    def __init__(self, page: PageMembership | None = None) -> None:
        self.page = page if page is not None else PageMembership()
        self._selected: Dict[str, SelectableRecord] = {}

    # --------------------------
    # Per-item selection
    # --------------------------
    def select(self, record: SelectableRecord) -> None:
        """Select ``record``, overwriting any earlier snapshot with the same id."""
        self._selected[record.id] = record

    def deselect(self, record_id: str) -> None:
        """De-select ``record_id``; unknown ids are ignored."""
        self._selected.pop(record_id, None)

    def is_selected(self, record_id: str) -> bool:
        return record_id in self._selected

    # --------------------------
    # Page-scoped selection
    # --------------------------
    def select_all_on_page(self) -> None:
        for record in self.page:
            self._selected[record.id] = record
        logger.debug("[SELECTION] Selected all %d record(s) on page", len(self.page))

    def deselect_all_on_page(self) -> None:
        for record_id in self.page.ids:
            self._selected.pop(record_id, None)
        logger.debug("[SELECTION] De-selected all %d record(s) on page", len(self.page))

    def toggle_select_all_on_page(self) -> None:
        """Clear the page if it is fully selected, otherwise select all of it.

        A partially selected page always becomes fully selected on the first
        toggle; it is never cleared.
        """
        if all(record_id in self._selected for record_id in self.page.ids):
            self.deselect_all_on_page()
        else:
            self.select_all_on_page()

    @property
    def has_page(self) -> bool:
        """Whether the current page shows any records at all."""
        return len(self.page) > 0

    @property
    def is_all_selected_on_page(self) -> bool:
        """True when the page is non-empty and every record on it is selected."""
        page_ids = self.page.ids
        return bool(page_ids) and all(record_id in self._selected for record_id in page_ids)

    # --------------------------
    # Whole-registry access
    # --------------------------
    def all_selected(self) -> List[SelectableRecord]:
        """All selected records regardless of page, in selection order."""
        return list(self._selected.values())

    def selected_of_kind(self, kind: RecordKind) -> List[SelectableRecord]:
        return [record for record in self._selected.values() if record.kind is kind]

    def get(self, record_id: str) -> SelectableRecord | None:
        return self._selected.get(record_id)

    @property
    def selected_count(self) -> int:
        return len(self._selected)

    def clear(self) -> None:
        """Drop every selection, on every page."""
        count = len(self._selected)
        self._selected.clear()
        logger.debug("[SELECTION] Cleared %d selection(s)", count)

    def summary(self) -> str:
        """Toolbar summary such as ``"3 items selected"``."""
        count = len(self._selected)
        return f"{count} item{'' if count == 1 else 's'} selected"
