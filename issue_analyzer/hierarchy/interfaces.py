from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol, Sequence

from issue_analyzer.domain.entities import DateRange, WorkItem

RawRecord = Mapping[str, Any]


class RootSource(Protocol):
    """Supply root items that are closed as completed."""

    def list_closed_roots(self, date_range: DateRange | None) -> list[WorkItem]:
        ...


class ChildSource(Protocol):
    """Paginated access to the direct children of one item."""

    def iter_child_pages(self, item: WorkItem) -> Iterable[Sequence[RawRecord]]:
        """Yield one sequence of raw child records per page."""
        ...

    def parse_child(self, record: RawRecord, parent: WorkItem) -> WorkItem:
        """Convert a raw child record; raise ValueError if it is malformed."""
        ...
