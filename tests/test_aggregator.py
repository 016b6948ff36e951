from __future__ import annotations

from collections import Counter
from dataclasses import replace
from datetime import datetime, timezone

from issue_analyzer.domain.entities import BuildDiagnostics, Family, IssueState, StateReason, WorkItem
from issue_analyzer.hierarchy.aggregator import aggregate, summarize_family


def _item(number: int, labels: tuple[str, ...] = (), children: tuple[WorkItem, ...] = (), **kwargs) -> WorkItem:
    return WorkItem(
        url=f"https://github.com/acme/app/issues/{number}",
        title=f"Issue {number}",
        author="alice",
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        state=IssueState.CLOSED,
        state_reason=StateReason.COMPLETED,
        labels=labels,
        children=children,
        **kwargs,
    )


def _reverse_tree(node: WorkItem) -> WorkItem:
    return replace(node, children=tuple(_reverse_tree(c) for c in reversed(node.children)))


def test_descendant_count_is_nodes_minus_one() -> None:
    tree = _item(
        1,
        children=(
            _item(2, children=(_item(4), _item(5, children=(_item(7),)))),
            _item(3, children=(_item(6),)),
        ),
    )
    family = Family(root=tree, diagnostics=BuildDiagnostics())

    assert aggregate(tree).descendant_count == len(family.nodes()) - 1 == 6


def test_only_story_class_fields_are_summed() -> None:
    root = _item(
        1,
        children=(
            _item(2, labels=("sbi", "difficulty:low"), estimated_time=4.0, actual_time=3.0),
            _item(3, labels=("pbi",), size=2.0, estimated_time=100.0, actual_time=50.0),
        ),
    )

    agg = aggregate(root)

    assert agg.total_estimated == 4.0
    assert agg.total_actual == 3.0
    assert agg.descendant_count == 2
    assert agg.violations == ()


def test_unset_fields_contribute_nothing_and_zero_is_kept() -> None:
    root = _item(
        1,
        children=(
            _item(2, labels=("sbi", "difficulty:low"), estimated_time=0.0, actual_time=None),
            _item(3, labels=("sbi", "difficulty:low"), estimated_time=None, actual_time=1.5),
        ),
    )

    agg = aggregate(root)

    assert agg.total_estimated == 0.0
    assert agg.total_actual == 1.5
    assert [v.reason for v in agg.violations] == ["Actual missing", "Estimated missing"]


def test_root_fields_are_not_aggregated() -> None:
    root = _item(1, labels=("sbi",), estimated_time=10.0, actual_time=10.0)

    agg = aggregate(root)

    assert agg.descendant_count == 0
    assert agg.total_estimated == 0.0
    assert agg.violations == ()


def test_traversal_order_does_not_change_results() -> None:
    root = _item(
        1,
        children=(
            _item(2, labels=("sbi",), estimated_time=0.1, actual_time=0.7),
            _item(
                3,
                labels=("sbi",),
                estimated_time=0.2,
                children=(_item(4, labels=("dev-sbi",), estimated_time=0.3, actual_time=1e16),),
            ),
            _item(5, labels=("pbi",)),
        ),
    )

    a = aggregate(root)
    b = aggregate(_reverse_tree(root))

    assert a.total_estimated == b.total_estimated
    assert a.total_actual == b.total_actual
    assert Counter(map(str, a.violations)) == Counter(map(str, b.violations))


def test_family_summary_end_to_end() -> None:
    s1 = _item(2, labels=("sbi", "difficulty:low"), estimated_time=4.0, actual_time=3.0)
    s2 = _item(3, labels=("sbi",), actual_time=2.0)
    root = _item(1, labels=("pbi",), size=5.0, children=(s1, s2))

    summary = summarize_family(Family(root=root, diagnostics=BuildDiagnostics()))

    assert summary.size == 5.0
    assert summary.total_estimated == 4.0
    assert summary.total_actual == 5.0
    assert summary.descendant_count == 2
    assert [str(v) for v in summary.violations] == ["#3: Estimated missing, Difficulty missing"]
    assert summary.ratio == 5.0 / 4.0


def test_root_violation_comes_first() -> None:
    root = _item(1, labels=("pbi",), children=(_item(2, labels=("pbi",)),))

    summary = summarize_family(Family(root=root, diagnostics=BuildDiagnostics()))

    assert [v.number for v in summary.violations] == [1, 2]
    assert summary.has_violations
    assert summary.ratio is None
