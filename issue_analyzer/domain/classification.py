from __future__ import annotations

from enum import Enum
from typing import Iterable, Protocol, Sequence

EPIC_LABELS: frozenset[str] = frozenset({"pbi", "dev-pbi"})
STORY_LABELS: frozenset[str] = frozenset({"sbi", "dev-sbi"})


class Difficulty(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


DIFFICULTY_LABELS: dict[str, Difficulty] = {
    "difficulty:low": Difficulty.LOW,
    "difficulty:medium": Difficulty.MEDIUM,
    "difficulty:high": Difficulty.HIGH,
}


class Labelled(Protocol):
    labels: Sequence[str]


def has_any_label(item: Labelled, labels: Iterable[str]) -> bool:
    """Case-insensitive check that `item` carries at least one of `labels`."""
    wanted = {label.lower() for label in labels}
    return any(label.lower() in wanted for label in item.labels)


def difficulty_of(labels: Iterable[str]) -> Difficulty | None:
    # First matching label wins; several difficulty labels are not an error.
    for label in labels:
        found = DIFFICULTY_LABELS.get(label.lower())
        if found is not None:
            return found
    return None
