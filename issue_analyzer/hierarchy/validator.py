from __future__ import annotations

from issue_analyzer.domain.entities import Violation, WorkItem

SIZE_MISSING = "Size missing"
ESTIMATED_MISSING = "Estimated missing"
ACTUAL_MISSING = "Actual missing"
DIFFICULTY_MISSING = "Difficulty missing"


def missing_fields(item: WorkItem) -> list[str]:
    """Return the failed completeness checks for one item, in fixed order."""
    clauses: list[str] = []

    if item.is_epic and item.size is None:
        clauses.append(SIZE_MISSING)

    if item.is_story:
        if item.estimated_time is None:
            clauses.append(ESTIMATED_MISSING)
        if item.actual_time is None:
            clauses.append(ACTUAL_MISSING)
        if item.difficulty is None:
            clauses.append(DIFFICULTY_MISSING)

    return clauses


def validate(item: WorkItem) -> Violation | None:
    clauses = missing_fields(item)
    if not clauses:
        return None
    return Violation(
        url=item.url,
        number=item.number,
        title=item.title,
        responsible=item.responsible,
        author=item.author,
        reason=", ".join(clauses),
    )
