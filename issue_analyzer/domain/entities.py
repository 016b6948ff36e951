from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Union

from issue_analyzer.domain.classification import (
    EPIC_LABELS,
    STORY_LABELS,
    Difficulty,
    difficulty_of,
    has_any_label,
)


class IssueState(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class StateReason(str, Enum):
    COMPLETED = "COMPLETED"
    NOT_PLANNED = "NOT_PLANNED"
    REOPENED = "REOPENED"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, raw: str | None) -> "StateReason | None":
        if not raw:
            return None
        try:
            return cls(raw.upper())
        except ValueError:
            return cls.OTHER


# --- Project field values ----------------------------------------------------


@dataclass(frozen=True)
class NumberValue:
    field: str
    number: float


@dataclass(frozen=True)
class TextValue:
    field: str
    text: str


@dataclass(frozen=True)
class DateValue:
    field: str
    date: date


@dataclass(frozen=True)
class SingleSelectValue:
    field: str
    name: str


FieldValue = Union[NumberValue, TextValue, DateValue, SingleSelectValue]


# --- Work items ---------------------------------------------------------------


def issue_number_from_url(url: str) -> int:
    tail = url.rstrip("/").rsplit("/", 1)[-1]
    try:
        return int(tail)
    except ValueError:
        raise ValueError(f"No issue number in URL: {url!r}") from None


@dataclass(frozen=True)
class WorkItem:
    """A GitHub issue as seen through a project board.

    Numeric fields are None when the project field is unset; 0.0 is a real
    value. `children` stays empty until a FamilyBuilder materializes it.
    Construction raises ValueError when the URL carries no issue number.
    """

    url: str
    title: str
    author: str
    created_at: datetime
    state: IssueState
    state_reason: StateReason | None = None
    closed_at: datetime | None = None
    assignees: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    repository: str = ""
    size: float | None = None
    estimated_time: float | None = None
    actual_time: float | None = None
    parent_ref: str | None = None
    children: tuple["WorkItem", ...] = ()

    def __post_init__(self) -> None:
        issue_number_from_url(self.url)

    @property
    def number(self) -> int:
        return issue_number_from_url(self.url)

    @property
    def is_root(self) -> bool:
        return self.parent_ref is None

    @property
    def is_completed(self) -> bool:
        return self.state is IssueState.CLOSED and self.state_reason is StateReason.COMPLETED

    @property
    def is_epic(self) -> bool:
        return has_any_label(self, EPIC_LABELS)

    @property
    def is_story(self) -> bool:
        return has_any_label(self, STORY_LABELS)

    @property
    def difficulty(self) -> Difficulty | None:
        return difficulty_of(self.labels)

    @property
    def responsible(self) -> tuple[str, ...]:
        if self.assignees:
            return self.assignees
        return (self.author,)

    def walk(self) -> "list[WorkItem]":
        """Return all descendants (not self) in pre-order."""
        out: list[WorkItem] = []
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            out.append(node)
            stack.extend(reversed(node.children))
        return out

    def to_dict(self) -> dict[str, object]:
        return {
            "url": self.url,
            "number": self.number,
            "title": self.title,
            "author": self.author,
            "assignees": list(self.assignees),
            "labels": list(self.labels),
            "repository": self.repository,
            "state": self.state.value,
            "state_reason": self.state_reason.value if self.state_reason else None,
            "created_at": self.created_at.isoformat(),
            "closed_at": self.closed_at.isoformat() if self.closed_at else None,
            "size": self.size,
            "estimated_time": self.estimated_time,
            "actual_time": self.actual_time,
            "children": [c.to_dict() for c in self.children],
        }


# --- Derived structures -------------------------------------------------------


@dataclass(frozen=True)
class Violation:
    url: str
    number: int
    title: str
    responsible: tuple[str, ...]
    author: str
    reason: str

    def __str__(self) -> str:
        return f"#{self.number}: {self.reason}"


@dataclass
class BuildDiagnostics:
    """What the FamilyBuilder left out of a tree, and why."""

    fetch_errors: list[tuple[str, str]] = field(default_factory=list)
    malformed: list[tuple[str, str]] = field(default_factory=list)
    revisited: list[str] = field(default_factory=list)
    truncated: list[str] = field(default_factory=list)
    pruned: list[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (self.fetch_errors or self.malformed or self.revisited)

    def to_dict(self) -> dict[str, object]:
        return {
            "fetch_errors": [{"url": u, "error": e} for u, e in self.fetch_errors],
            "malformed": [{"parent": u, "error": e} for u, e in self.malformed],
            "revisited": list(self.revisited),
            "truncated": list(self.truncated),
            "pruned": list(self.pruned),
        }


@dataclass(frozen=True)
class Family:
    root: WorkItem
    diagnostics: BuildDiagnostics

    def nodes(self) -> list[WorkItem]:
        return [self.root, *self.root.walk()]

    def edges(self) -> set[tuple[str, str]]:
        out: set[tuple[str, str]] = set()
        for node in self.nodes():
            for child in node.children:
                out.add((node.url, child.url))
        return out


@dataclass(frozen=True)
class Summary:
    url: str
    title: str
    size: float | None
    total_estimated: float
    total_actual: float
    descendant_count: int
    violations: tuple[Violation, ...] = ()

    @property
    def has_violations(self) -> bool:
        return bool(self.violations)

    @property
    def ratio(self) -> float | None:
        if self.total_estimated > 0 and self.total_actual > 0:
            return self.total_actual / self.total_estimated
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "url": self.url,
            "number": issue_number_from_url(self.url),
            "title": self.title,
            "size": self.size,
            "total_estimated": self.total_estimated,
            "total_actual": self.total_actual,
            "descendant_count": self.descendant_count,
            "ratio": self.ratio,
            "violations": [
                {
                    "url": v.url,
                    "number": v.number,
                    "title": v.title,
                    "responsible": list(v.responsible),
                    "reason": v.reason,
                }
                for v in self.violations
            ],
        }


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of timestamps."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Date range ends before it starts: {self.start} > {self.end}")

    def contains(self, dt: datetime) -> bool:
        return self.start <= dt <= self.end
