from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from issue_analyzer.domain.entities import BuildDiagnostics, Family, WorkItem
from issue_analyzer.hierarchy.interfaces import ChildSource, RawRecord

logger = logging.getLogger(__name__)


@dataclass
class FamilyBuilder:
    """Materialize the completed sub-issue tree under a root item.

    The walk is depth-first and top-down. A node's child pages are drained
    completely before any child is expanded. Only children closed as
    COMPLETED are kept; a child failing that test is dropped together with
    its whole subtree, which is never fetched. Nodes at `max_depth` are not
    fetched at all.

    Every failure mode stays local to one node and is recorded on the
    family's BuildDiagnostics:
    - fetch errors turn the node into a leaf,
    - malformed child records are skipped,
    - a child whose identity was already visited in this family is skipped,
      so provider cycles cannot cause unbounded recursion.
    """

    source: ChildSource
    max_depth: int = 5

    def __post_init__(self) -> None:
        if self.max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")

    def build(self, root: WorkItem) -> Family:
        diagnostics = BuildDiagnostics()
        visited = {root.url}
        logger.info("Fetching sub-issues for top-level issue #%s: %s", root.number, root.title)
        built = self._expand(root, 0, visited, diagnostics)
        return Family(root=built, diagnostics=diagnostics)

    def _expand(
        self,
        node: WorkItem,
        depth: int,
        visited: set[str],
        diagnostics: BuildDiagnostics,
    ) -> WorkItem:
        if depth >= self.max_depth:
            logger.info("Reached maximum recursion depth (%d) for issue: %s", self.max_depth, node.url)
            diagnostics.truncated.append(node.url)
            return replace(node, children=())

        try:
            records = self._drain(node)
        except Exception as exc:
            logger.warning("Error fetching sub-issues for issue #%s: %s", node.number, exc)
            diagnostics.fetch_errors.append((node.url, str(exc)))
            return replace(node, children=())

        accepted: list[WorkItem] = []
        for record in records:
            try:
                child = self.source.parse_child(record, node)
            except ValueError as exc:
                logger.warning("Skipping malformed sub-issue of #%s: %s", node.number, exc)
                diagnostics.malformed.append((node.url, str(exc)))
                continue

            if not child.is_completed:
                logger.info(
                    "Skipping sub-issue #%s with state %s and state reason %s",
                    child.number,
                    child.state.value,
                    child.state_reason.value if child.state_reason else "",
                )
                diagnostics.pruned.append(child.url)
                continue

            if child.url in visited:
                logger.warning("Sub-issue #%s already visited under #%s; cycle pruned", child.number, node.number)
                diagnostics.revisited.append(child.url)
                continue

            visited.add(child.url)
            accepted.append(child)

        children = tuple(self._expand(child, depth + 1, visited, diagnostics) for child in accepted)
        return replace(node, children=children)

    def _drain(self, node: WorkItem) -> list[RawRecord]:
        records: list[RawRecord] = []
        for page in self.source.iter_child_pages(node):
            records.extend(page)
        return records
