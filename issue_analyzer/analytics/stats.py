from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Sequence

from issue_analyzer.common.time_utils import weekly_period_start
from issue_analyzer.domain.entities import WorkItem

UNASSIGNED = "Unassigned"


def _ratio(estimated: float, actual: float) -> float | None:
    if estimated > 0 and actual > 0:
        return actual / estimated
    return None


@dataclass(frozen=True)
class CollectionStats:
    total: int
    with_estimate: int
    with_actual: int
    with_size: int
    total_estimated: float
    total_actual: float
    total_size: float

    @property
    def ratio(self) -> float | None:
        return _ratio(self.total_estimated, self.total_actual)

    def to_dict(self) -> dict[str, object]:
        return {**asdict(self), "ratio": self.ratio}


def collection_stats(items: Sequence[WorkItem]) -> CollectionStats:
    """Totals over the items' own fields; unset fields are not counted."""
    est = [i.estimated_time for i in items if i.estimated_time is not None]
    act = [i.actual_time for i in items if i.actual_time is not None]
    size = [i.size for i in items if i.size is not None]
    return CollectionStats(
        total=len(items),
        with_estimate=len(est),
        with_actual=len(act),
        with_size=len(size),
        total_estimated=math.fsum(est),
        total_actual=math.fsum(act),
        total_size=math.fsum(size),
    )


@dataclass(frozen=True)
class MonthlyStats:
    month: str
    issue_count: int
    estimated_total: float
    actual_total: float

    @property
    def ratio(self) -> float | None:
        return _ratio(self.estimated_total, self.actual_total)

    def to_dict(self) -> dict[str, object]:
        return {**asdict(self), "ratio": self.ratio}


def monthly_stats(items: Iterable[WorkItem]) -> list[MonthlyStats]:
    """Group closed items by closing month (YYYY-MM in their own timezone)."""
    buckets: dict[str, list[WorkItem]] = defaultdict(list)
    for item in items:
        if item.closed_at is None:
            continue
        buckets[item.closed_at.strftime("%Y-%m")].append(item)

    out: list[MonthlyStats] = []
    for month in sorted(buckets):
        stats = collection_stats(buckets[month])
        out.append(
            MonthlyStats(
                month=month,
                issue_count=stats.total,
                estimated_total=stats.total_estimated,
                actual_total=stats.total_actual,
            )
        )
    return out


@dataclass(frozen=True)
class MissingTimeReport:
    total: int
    missing_both: tuple[str, ...] = ()
    missing_estimate: tuple[str, ...] = ()
    missing_actual: tuple[str, ...] = ()

    @property
    def missing_count(self) -> int:
        return len(self.missing_both) + len(self.missing_estimate) + len(self.missing_actual)

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "missing_count": self.missing_count,
            "missing_both": list(self.missing_both),
            "missing_estimate": list(self.missing_estimate),
            "missing_actual": list(self.missing_actual),
        }


def missing_time_report(items: Sequence[WorkItem]) -> MissingTimeReport:
    both: list[str] = []
    est_only: list[str] = []
    act_only: list[str] = []
    for item in items:
        no_est = item.estimated_time is None
        no_act = item.actual_time is None
        if no_est and no_act:
            both.append(item.url)
        elif no_est:
            est_only.append(item.url)
        elif no_act:
            act_only.append(item.url)
    return MissingTimeReport(
        total=len(items),
        missing_both=tuple(both),
        missing_estimate=tuple(est_only),
        missing_actual=tuple(act_only),
    )


def created_on_or_after(items: Iterable[WorkItem], start: datetime) -> list[WorkItem]:
    return [i for i in items if i.created_at >= start]


@dataclass(frozen=True)
class WeeklyPeriod:
    """Half-open period [start, end)."""

    start: datetime
    end: datetime
    weekday: int

    def contains(self, dt: datetime) -> bool:
        return self.start <= dt < self.end


def weekly_period(weekday: int, now: datetime) -> WeeklyPeriod:
    start = weekly_period_start(weekday, now)
    return WeeklyPeriod(start=start, end=start + timedelta(days=7), weekday=weekday % 7)


def closed_in_period(items: Iterable[WorkItem], period: WeeklyPeriod) -> list[WorkItem]:
    return [i for i in items if i.closed_at is not None and period.contains(i.closed_at)]


@dataclass
class PersonStats:
    person: str
    issues: list[str] = field(default_factory=list)
    with_estimate: int = 0
    with_actual: int = 0
    total_estimated: float = 0.0
    total_actual: float = 0.0
    missing_time: list[str] = field(default_factory=list)

    @property
    def ratio(self) -> float | None:
        return _ratio(self.total_estimated, self.total_actual)

    def add(self, item: WorkItem) -> None:
        self.issues.append(item.url)
        if item.estimated_time is not None:
            self.with_estimate += 1
            self.total_estimated += item.estimated_time
        if item.actual_time is not None:
            self.with_actual += 1
            self.total_actual += item.actual_time
        if item.estimated_time is None or item.actual_time is None:
            self.missing_time.append(item.url)

    def to_dict(self) -> dict[str, object]:
        return {**asdict(self), "issue_count": len(self.issues), "ratio": self.ratio}


def person_stats(items: Iterable[WorkItem]) -> list[PersonStats]:
    """Per-assignee statistics, sorted by login, with unassigned items last.

    An item with several assignees counts fully for each of them.
    """
    people: dict[str, PersonStats] = {}
    unassigned = PersonStats(person=UNASSIGNED)
    for item in items:
        if not item.assignees:
            unassigned.add(item)
            continue
        for login in item.assignees:
            people.setdefault(login, PersonStats(person=login)).add(item)

    out = [people[k] for k in sorted(people)]
    if unassigned.issues:
        out.append(unassigned)
    return out


@dataclass(frozen=True)
class HierarchyStats:
    root_count: int
    descendant_count: int
    depth_counts: dict[int, int]

    @property
    def average_descendants(self) -> float | None:
        if not self.root_count:
            return None
        return self.descendant_count / self.root_count

    def to_dict(self) -> dict[str, object]:
        return {
            "root_count": self.root_count,
            "descendant_count": self.descendant_count,
            "average_descendants": self.average_descendants,
            "depth_counts": {str(k): v for k, v in sorted(self.depth_counts.items())},
        }


def hierarchy_stats(roots: Sequence[WorkItem]) -> HierarchyStats:
    depth_counts: dict[int, int] = defaultdict(int)
    descendants = 0
    stack: list[tuple[WorkItem, int]] = [(r, 0) for r in roots]
    while stack:
        node, depth = stack.pop()
        depth_counts[depth] += 1
        if depth > 0:
            descendants += 1
        stack.extend((c, depth + 1) for c in node.children)
    return HierarchyStats(
        root_count=len(roots),
        descendant_count=descendants,
        depth_counts=dict(depth_counts),
    )
