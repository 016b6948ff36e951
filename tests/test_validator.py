from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from issue_analyzer.domain.classification import Difficulty, STORY_LABELS, has_any_label
from issue_analyzer.domain.entities import IssueState, StateReason, WorkItem
from issue_analyzer.hierarchy.validator import validate


def _item(number: int, labels: tuple[str, ...] = (), **kwargs) -> WorkItem:
    return WorkItem(
        url=f"https://github.com/acme/app/issues/{number}",
        title=f"Issue {number}",
        author="alice",
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        state=IssueState.CLOSED,
        state_reason=StateReason.COMPLETED,
        labels=labels,
        **kwargs,
    )


def test_epic_without_size_reports_size_missing() -> None:
    epic = _item(1, labels=("pbi",))

    v = validate(epic)

    assert v is not None
    assert v.reason == "Size missing"
    assert str(v) == "#1: Size missing"


def test_setting_size_removes_only_the_size_clause() -> None:
    epic = _item(1, labels=("dev-pbi", "sbi"), estimated_time=1.0, actual_time=1.0)

    before = validate(epic)
    after = validate(replace(epic, size=3.0))

    assert before is not None and before.reason == "Size missing, Difficulty missing"
    assert after is not None and after.reason == "Difficulty missing"


def test_zero_size_counts_as_set() -> None:
    assert validate(_item(1, labels=("pbi",), size=0.0)) is None


def test_story_reports_every_missing_field() -> None:
    v = validate(_item(7, labels=("sbi",)))

    assert v is not None
    assert v.reason == "Estimated missing, Actual missing, Difficulty missing"


def test_complete_story_has_no_violation() -> None:
    story = _item(7, labels=("SBI", "Difficulty:High"), estimated_time=0.0, actual_time=2.5)

    assert validate(story) is None
    assert story.difficulty is Difficulty.HIGH


def test_multiple_difficulty_labels_are_accepted() -> None:
    story = _item(
        7,
        labels=("dev-sbi", "difficulty:low", "difficulty:high"),
        estimated_time=1.0,
        actual_time=1.0,
    )

    assert validate(story) is None


def test_unclassified_item_is_never_a_violation() -> None:
    assert validate(_item(3, labels=("bug",))) is None


def test_responsible_falls_back_to_author() -> None:
    unassigned = validate(_item(4, labels=("sbi",)))
    assigned = validate(_item(5, labels=("sbi",), assignees=("bob", "carol")))

    assert unassigned is not None and unassigned.responsible == ("alice",)
    assert assigned is not None and assigned.responsible == ("bob", "carol")


def test_has_any_label_is_case_insensitive() -> None:
    assert has_any_label(_item(1, labels=("Dev-SBI",)), STORY_LABELS)
    assert not has_any_label(_item(1, labels=("sbi-ish",)), STORY_LABELS)
