from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

from issue_analyzer.adapters.github.github_client import GitHubClient
from issue_analyzer.adapters.github.parsing import (
    FieldNames,
    iter_project_item_field_nodes,
    parse_field_values,
    parse_issue,
)
from issue_analyzer.adapters.github.queries import PARENT_QUERY, PROJECT_ITEMS_QUERY, SUB_ISSUES_QUERY
from issue_analyzer.common.time_utils import TimeSettings
from issue_analyzer.domain.entities import DateRange, WorkItem
from issue_analyzer.hierarchy.interfaces import RawRecord

logger = logging.getLogger(__name__)


def split_issue_url(url: str) -> tuple[str, str, int]:
    """Return (owner, repo, number) for https://github.com/<owner>/<repo>/issues/<n>."""
    parts = url.rstrip("/").split("/")
    if len(parts) < 7:
        raise ValueError(f"invalid issue URL format: {url}")
    try:
        number = int(parts[6])
    except ValueError:
        raise ValueError(f"invalid issue number in URL: {url}") from None
    return parts[3], parts[4], number


def in_allowed_repository(item: WorkItem, allowed: Sequence[str]) -> bool:
    if not allowed:
        return True
    try:
        _, repo, _ = split_issue_url(item.url)
    except ValueError:
        return False
    return repo in allowed


@dataclass(frozen=True)
class ParentInfo:
    url: str
    number: int
    title: str
    parent_number: int | None = None
    parent_url: str | None = None

    @property
    def is_root(self) -> bool:
        return self.parent_url is None


@dataclass
class ProjectIssueProvider:
    """Issues of one organization's Projects v2 board, and their sub-issues."""

    client: GitHubClient
    org: str
    project_number: int
    repositories: list[str] = field(default_factory=list)
    settings: TimeSettings = field(default_factory=TimeSettings)
    names: FieldNames = field(default_factory=FieldNames)

    # --- board items ---------------------------------------------------------

    def _iter_item_pages(self) -> Iterator[list[dict[str, Any]]]:
        cursor: str | None = None
        while True:
            variables: dict[str, Any] = {"org": self.org, "projectNum": self.project_number}
            if cursor:
                variables["cursor"] = cursor
            data = self.client.graphql(PROJECT_ITEMS_QUERY, variables)
            items = (((data or {}).get("organization") or {}).get("projectV2") or {}).get("items") or {}
            yield list(items.get("nodes") or [])

            page_info = items.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                return
            cursor = page_info.get("endCursor")

    def list_project_items(self) -> list[WorkItem]:
        """All issues on the board, unfiltered. Malformed issues are skipped."""
        out: list[WorkItem] = []
        for page in self._iter_item_pages():
            for node in page:
                content = (node or {}).get("content") or {}
                if content.get("__typename") != "Issue":
                    continue
                parent = content.get("parent")
                parent_ref = str(parent.get("url") or parent.get("id")) if parent else None
                try:
                    values = parse_field_values(((node.get("fieldValues") or {}).get("nodes")) or [])
                    item = parse_issue(
                        content,
                        values,
                        settings=self.settings,
                        names=self.names,
                        parent_ref=parent_ref,
                    )
                except ValueError as exc:
                    logger.warning("Skipping project item: %s", exc)
                    continue
                out.append(item)
        logger.info("Fetched %d issues from project %s/%s", len(out), self.org, self.project_number)
        return out

    def select_closed_roots(self, items: Sequence[WorkItem], date_range: DateRange | None) -> list[WorkItem]:
        out: list[WorkItem] = []
        for item in items:
            if not in_allowed_repository(item, self.repositories):
                continue
            if not item.is_root or not item.is_completed:
                continue
            if date_range is not None and item.closed_at is not None:
                if not date_range.contains(item.closed_at):
                    continue
            out.append(item)
        return out

    def list_closed_roots(self, date_range: DateRange | None) -> list[WorkItem]:
        return self.select_closed_roots(self.list_project_items(), date_range)

    # --- sub-issues ----------------------------------------------------------

    def iter_child_pages(self, item: WorkItem) -> Iterator[list[RawRecord]]:
        owner, repo, number = split_issue_url(item.url)
        cursor: str | None = None
        while True:
            variables: dict[str, Any] = {"owner": owner, "repo": repo, "issueNumber": number}
            if cursor:
                variables["cursor"] = cursor
            data = self.client.graphql(SUB_ISSUES_QUERY, variables)
            issue = ((data or {}).get("repository") or {}).get("issue")
            if issue is None:
                raise ValueError(f"issue not found: {item.url}")
            sub_issues = issue.get("subIssues") or {}
            yield list(sub_issues.get("nodes") or [])

            page_info = sub_issues.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                return
            cursor = page_info.get("endCursor")

    def parse_child(self, record: RawRecord, parent: WorkItem) -> WorkItem:
        values = parse_field_values(iter_project_item_field_nodes(record))
        return parse_issue(record, values, settings=self.settings, names=self.names, parent_ref=parent.url)

    # --- single issue --------------------------------------------------------

    def fetch_parent(self, owner: str, repo: str, number: int) -> ParentInfo:
        data = self.client.graphql(PARENT_QUERY, {"owner": owner, "name": repo, "number": number})
        issue = ((data or {}).get("repository") or {}).get("issue")
        if issue is None:
            raise ValueError(f"issue not found: {owner}/{repo}#{number}")
        parent = issue.get("parent")
        return ParentInfo(
            url=str(issue.get("url") or ""),
            number=int(issue.get("number") or number),
            title=str(issue.get("title") or ""),
            parent_number=int(parent["number"]) if parent and parent.get("number") is not None else None,
            parent_url=str(parent.get("url") or parent.get("id")) if parent else None,
        )
