from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Iterator, Mapping

from issue_analyzer.common.time_utils import TimeSettings, parse_local_timestamp
from issue_analyzer.domain.entities import (
    DateValue,
    FieldValue,
    IssueState,
    NumberValue,
    SingleSelectValue,
    StateReason,
    TextValue,
    WorkItem,
    issue_number_from_url,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldNames:
    """Project field names holding the numeric work-item metrics."""

    size: str = "Size"
    estimated: str = "見積時間"
    actual: str = "実績時間"


def _field_name(node: Mapping[str, Any]) -> str:
    return str((node.get("field") or {}).get("name") or "")


def parse_field_value(node: Mapping[str, Any]) -> FieldValue | None:
    """Resolve one `fieldValues` node into its tagged variant.

    Returns None for value types that carry nothing we use, and for nodes
    without a field name or payload.
    """
    typename = node.get("__typename")
    name = _field_name(node)
    if not name:
        return None

    if typename == "ProjectV2ItemFieldNumberValue":
        number = node.get("number")
        if number is None:
            return None
        try:
            return NumberValue(field=name, number=float(number))
        except (TypeError, ValueError):
            raise ValueError(f"Non-numeric value {number!r} in field {name}") from None
    if typename == "ProjectV2ItemFieldTextValue":
        text = node.get("text")
        return TextValue(field=name, text=str(text)) if text is not None else None
    if typename == "ProjectV2ItemFieldDateValue":
        raw = node.get("date")
        if not raw:
            return None
        try:
            return DateValue(field=name, date=date.fromisoformat(str(raw)[:10]))
        except ValueError:
            logger.debug("Ignoring unparseable date %r in field %s", raw, name)
            return None
    if typename == "ProjectV2ItemFieldSingleSelectValue":
        option = node.get("name")
        return SingleSelectValue(field=name, name=str(option)) if option is not None else None
    return None


def parse_field_values(nodes: Iterable[Mapping[str, Any]]) -> list[FieldValue]:
    out: list[FieldValue] = []
    for node in nodes:
        value = parse_field_value(node or {})
        if value is not None:
            out.append(value)
    return out


def numeric_fields(
    values: Iterable[FieldValue], names: FieldNames
) -> tuple[float | None, float | None, float | None]:
    """Return (size, estimated, actual); later values win."""
    size = estimated = actual = None
    for value in values:
        if not isinstance(value, NumberValue):
            continue
        if value.field == names.estimated:
            estimated = value.number
        elif value.field == names.actual:
            actual = value.number
        elif value.field == names.size:
            size = value.number
    return size, estimated, actual


def _logins(connection: Mapping[str, Any] | None, key: str) -> tuple[str, ...]:
    nodes = (connection or {}).get("nodes") or []
    return tuple(str(n[key]) for n in nodes if n and n.get(key))


def parse_issue(
    content: Mapping[str, Any],
    field_values: Iterable[FieldValue],
    *,
    settings: TimeSettings,
    names: FieldNames,
    parent_ref: str | None,
) -> WorkItem:
    """Build a WorkItem from an Issue node.

    Raises ValueError when required keys are missing or timestamps cannot
    be parsed.
    """
    try:
        url = str(content["url"])
        created_raw = str(content["createdAt"])
        state = IssueState(str(content["state"]).upper())
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Issue node missing required field: {exc}") from exc

    number = issue_number_from_url(url)
    try:
        created_at = parse_local_timestamp(created_raw, settings)
        closed_raw = content.get("closedAt")
        closed_at = parse_local_timestamp(str(closed_raw), settings) if closed_raw else None
    except ValueError as exc:
        raise ValueError(f"Error parsing timestamps for issue #{number}: {exc}") from exc

    size, estimated, actual = numeric_fields(field_values, names)
    author = (content.get("author") or {}).get("login") or "ghost"

    return WorkItem(
        url=url,
        title=str(content.get("title") or ""),
        author=str(author),
        created_at=created_at,
        closed_at=closed_at,
        state=state,
        state_reason=StateReason.parse(content.get("stateReason")),
        assignees=_logins(content.get("assignees"), "login"),
        labels=_logins(content.get("labels"), "name"),
        repository=str((content.get("repository") or {}).get("name") or ""),
        size=size,
        estimated_time=estimated,
        actual_time=actual,
        parent_ref=parent_ref,
    )


def iter_project_item_field_nodes(sub_issue: Mapping[str, Any]) -> Iterator[Mapping[str, Any]]:
    for project_item in (sub_issue.get("projectItems") or {}).get("nodes") or []:
        yield from ((project_item or {}).get("fieldValues") or {}).get("nodes") or []
