"""Tracks which records are visible on the currently rendered results page."""

from __future__ import annotations

from typing import Iterable, Iterator, List

from bulkmod.datatypes.record_datatypes import SelectableRecord
from bulkmod.util.logger import get_logger

logger = get_logger("page_membership")


class PageMembership:
    """Ordered records of the active results page.

    The page is replaced wholesale whenever the underlying result set
    changes (new search, page or filter). It holds no selection state of its
    own; the selection registry reads it to answer page-scoped questions.
    """

    def __init__(self, records: Iterable[SelectableRecord] = ()) -> None:
        self._records: List[SelectableRecord] = []
        self.replace(records)

    def replace(self, records: Iterable[SelectableRecord]) -> None:
        """Replace the page with ``records``, dropping repeated ids."""
        seen: set[str] = set()
        page: List[SelectableRecord] = []
        for record in records:
            if record.id in seen:
                logger.debug("[PAGE] Duplicate id %s on page ignored", record.id)
                continue
            seen.add(record.id)
            page.append(record)
        self._records = page
        logger.debug("[PAGE] Page replaced with %d record(s)", len(page))

    @property
    def records(self) -> List[SelectableRecord]:
        return list(self._records)

    @property
    def ids(self) -> List[str]:
        return [record.id for record in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[SelectableRecord]:
        return iter(list(self._records))

