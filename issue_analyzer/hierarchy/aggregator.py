from __future__ import annotations

import math
from dataclasses import dataclass

from issue_analyzer.domain.entities import Family, Summary, Violation, WorkItem
from issue_analyzer.hierarchy.validator import validate


@dataclass(frozen=True)
class Aggregate:
    descendant_count: int
    total_estimated: float
    total_actual: float
    violations: tuple[Violation, ...]


def aggregate(root: WorkItem) -> Aggregate:
    """Roll up the subtree below `root`; the root's own fields are ignored.

    Only story-class descendants contribute time, and only for fields that
    are set. Every descendant is counted and validated.
    """
    estimated: list[float] = []
    actual: list[float] = []
    violations: list[Violation] = []
    count = 0

    for node in root.walk():
        count += 1
        if node.is_story:
            if node.estimated_time is not None:
                estimated.append(node.estimated_time)
            if node.actual_time is not None:
                actual.append(node.actual_time)
        violation = validate(node)
        if violation is not None:
            violations.append(violation)

    return Aggregate(
        descendant_count=count,
        total_estimated=math.fsum(estimated),
        total_actual=math.fsum(actual),
        violations=tuple(violations),
    )


def summarize(root: WorkItem) -> Summary:
    agg = aggregate(root)
    own = validate(root)
    violations = ((own,) if own is not None else ()) + agg.violations
    return Summary(
        url=root.url,
        title=root.title,
        size=root.size,
        total_estimated=agg.total_estimated,
        total_actual=agg.total_actual,
        descendant_count=agg.descendant_count,
        violations=violations,
    )


def summarize_family(family: Family) -> Summary:
    return summarize(family.root)
