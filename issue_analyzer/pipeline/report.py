from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from issue_analyzer.analytics.stats import (
    CollectionStats,
    HierarchyStats,
    MissingTimeReport,
    MonthlyStats,
    PersonStats,
    WeeklyPeriod,
)
from issue_analyzer.domain.entities import Family, Summary


@dataclass(frozen=True)
class WeeklyReport:
    period: WeeklyPeriod
    stats: CollectionStats
    issues: tuple[str, ...]
    by_person: tuple[PersonStats, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.period.start.isoformat(),
            "end": self.period.end.isoformat(),
            "weekday": self.period.weekday,
            "stats": self.stats.to_dict(),
            "issues": list(self.issues),
            "by_person": [p.to_dict() for p in self.by_person],
        }


@dataclass(frozen=True)
class AnalysisReport:
    """Read-only snapshot handed to whatever renders the results."""

    families: tuple[Family, ...]
    summaries: tuple[Summary, ...]
    collection: CollectionStats
    monthly: tuple[MonthlyStats, ...]
    hierarchy: HierarchyStats
    created_after: MissingTimeReport | None = None
    weekly: WeeklyReport | None = None

    @property
    def violation_count(self) -> int:
        return sum(len(s.violations) for s in self.summaries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summaries": [s.to_dict() for s in self.summaries],
            "families": [
                {"root": f.root.to_dict(), "diagnostics": f.diagnostics.to_dict()} for f in self.families
            ],
            "collection": self.collection.to_dict(),
            "monthly": [m.to_dict() for m in self.monthly],
            "hierarchy": self.hierarchy.to_dict(),
            "created_after": self.created_after.to_dict() if self.created_after else None,
            "weekly": self.weekly.to_dict() if self.weekly else None,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False, default=str)
