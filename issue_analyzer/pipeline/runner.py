from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

from issue_analyzer.adapters.github.github_client import GitHubClient, resolve_token
from issue_analyzer.adapters.github.project_provider import ProjectIssueProvider
from issue_analyzer.analytics.stats import (
    closed_in_period,
    collection_stats,
    created_on_or_after,
    hierarchy_stats,
    missing_time_report,
    monthly_stats,
    person_stats,
    weekly_period,
)
from issue_analyzer.domain.entities import Family, WorkItem
from issue_analyzer.hierarchy.aggregator import summarize_family
from issue_analyzer.hierarchy.family_builder import FamilyBuilder
from issue_analyzer.pipeline.config import AnalyzerConfig
from issue_analyzer.pipeline.progress_ui import Ui
from issue_analyzer.pipeline.report import AnalysisReport, WeeklyReport

logger = logging.getLogger(__name__)


@dataclass
class AnalyzerRunner:
    config: AnalyzerConfig
    provider: ProjectIssueProvider
    ui: Ui | None = None

    @classmethod
    def from_config(
        cls,
        config: AnalyzerConfig,
        ui: Ui | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "AnalyzerRunner":
        """Validate the configuration and wire up the GitHub provider.

        Every configuration error surfaces here, before the first request.
        """
        config.project.require_complete()
        config.closed_date_range()
        config.check_start()

        env = os.environ if environ is None else environ
        gh = config.github
        token = resolve_token(env, gh.token_env_var, gh.token_file_env_var)
        client = GitHubClient(token=token, api_base_url=gh.api_base_url, timeout_s=gh.timeout_s)
        provider = ProjectIssueProvider(
            client=client,
            org=config.project.org,
            project_number=config.project.number,
            repositories=list(config.project.repositories),
            settings=config.time_settings(),
            names=config.field_names.to_names(),
        )
        return cls(config=config, provider=provider, ui=ui)

    def _log(self, message: str) -> None:
        if self.ui is not None:
            self.ui.log(message)
        logger.info(message)

    def build_families(self, roots: list[WorkItem]) -> list[Family]:
        builder = FamilyBuilder(source=self.provider, max_depth=self.config.hierarchy.max_depth)
        if self.ui is None:
            return [builder.build(root) for root in roots]

        families: list[Family] = []
        with self.ui.stage("Building issue families", total=len(roots)) as advance:
            for root in roots:
                families.append(builder.build(root))
                advance(f"#{root.number}")
        return families

    def run(self, now: datetime | None = None) -> AnalysisReport:
        cfg = self.config
        settings = cfg.time_settings()
        now = now or settings.now()

        items = self.provider.list_project_items()
        all_roots = self.provider.select_closed_roots(items, None)
        roots = self.provider.select_closed_roots(items, cfg.closed_date_range())
        self._log(
            f"Found {len(roots)} issues matching criteria in repositories: "
            f"{', '.join(cfg.project.repositories)}"
        )

        created_after = None
        check_start = cfg.check_start()
        if check_start is not None:
            created_after = missing_time_report(created_on_or_after(roots, check_start))

        weekly = None
        if cfg.filters.weekday is not None:
            period = weekly_period(cfg.filters.weekday, now.astimezone(settings.tz))
            in_week = closed_in_period(all_roots, period)
            weekly = WeeklyReport(
                period=period,
                stats=collection_stats(in_week),
                issues=tuple(i.url for i in in_week),
                by_person=tuple(person_stats(in_week)),
            )

        families = self.build_families(roots)
        summaries = [summarize_family(f) for f in families]

        report = AnalysisReport(
            families=tuple(families),
            summaries=tuple(summaries),
            collection=collection_stats(roots),
            monthly=tuple(monthly_stats(roots)),
            hierarchy=hierarchy_stats([f.root for f in families]),
            created_after=created_after,
            weekly=weekly,
        )

        incomplete = [f for f in families if not f.diagnostics.is_clean]
        if incomplete:
            message = f"{len(incomplete)} families were built with fetch errors, malformed records or cycles"
            logger.warning(message)
            if self.ui is not None:
                self.ui.warn(message)
        self._log(f"Checked {len(families)} families, {report.violation_count} rule violations")
        return report
