from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, Field, field_validator

from issue_analyzer.adapters.github.parsing import FieldNames
from issue_analyzer.common.time_utils import TimeSettings, end_of_day, parse_local_date
from issue_analyzer.domain.entities import DateRange


def _expand(path: str) -> Path:
    return Path(os.path.expanduser(path)).resolve()


def _read_toml(path: Path) -> dict[str, Any]:
    """Read TOML into a dict, supporting Python 3.10+.

    Uses tomllib when available, falls back to tomli.
    """
    data = path.read_bytes()
    try:
        import tomllib  # type: ignore[attr-defined]

        return tomllib.loads(data.decode("utf-8"))
    except ModuleNotFoundError:
        import tomli  # type: ignore[import-not-found]

        return tomli.loads(data.decode("utf-8"))


class GithubConfig(BaseModel):
    token_env_var: str = Field(default="GITHUB_TOKEN")
    token_file_env_var: str = Field(
        default="GITHUB_TOKEN_FILE",
        description="Env var naming a file that holds the token, used when token_env_var is empty.",
    )
    api_base_url: str = Field(default="https://api.github.com")
    timeout_s: float = Field(default=60.0, gt=0)


class ProjectConfig(BaseModel):
    org: str = Field(default="", description="Organization that owns the project board.")
    number: int = Field(default=0, description="Projects v2 number.")
    repositories: list[str] = Field(
        default_factory=list,
        description="Repository names (inside org) whose issues are analyzed.",
    )

    @field_validator("repositories")
    @classmethod
    def _strip(cls, value: list[str]) -> list[str]:
        return [r.strip() for r in value if r.strip()]

    def require_complete(self) -> None:
        missing = []
        if not self.org:
            missing.append("project.org")
        if self.number <= 0:
            missing.append("project.number")
        if not self.repositories:
            missing.append("project.repositories")
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")


class FieldsConfig(BaseModel):
    size: str = Field(default="Size")
    estimated: str = Field(default="見積時間")
    actual: str = Field(default="実績時間")

    def to_names(self) -> FieldNames:
        return FieldNames(size=self.size, estimated=self.estimated, actual=self.actual)


class FiltersConfig(BaseModel):
    start_date: str | None = Field(default=None, description="YYYY-MM-DD, closed on or after.")
    end_date: str | None = Field(default=None, description="YYYY-MM-DD, closed on or before (inclusive).")
    check_start_date: str | None = Field(
        default=None,
        description="YYYY-MM-DD; report roots created since then with missing time fields.",
    )
    weekday: int | None = Field(
        default=None,
        ge=0,
        le=7,
        description="0/7=Sunday ... 6=Saturday; enables the weekly summary.",
    )


class HierarchyConfig(BaseModel):
    max_depth: int = Field(default=5, gt=0, le=50)


class TimeConfig(BaseModel):
    utc_offset_hours: float = Field(default=9.0, ge=-12, le=14)
    timezone_name: str = Field(default="JST")

    def to_settings(self) -> TimeSettings:
        return TimeSettings(utc_offset_hours=self.utc_offset_hours, timezone_name=self.timezone_name)


class OutputConfig(BaseModel):
    logs_dir: str | None = Field(default=None)
    report_path: str | None = Field(default=None, description="Write the JSON report here as well.")

    def resolved_report_path(self) -> Path | None:
        return _expand(self.report_path) if self.report_path else None


class AnalyzerConfig(BaseModel):
    github: GithubConfig = Field(default_factory=GithubConfig)
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    field_names: FieldsConfig = Field(default_factory=FieldsConfig)
    filters: FiltersConfig = Field(default_factory=FiltersConfig)
    hierarchy: HierarchyConfig = Field(default_factory=HierarchyConfig)
    time: TimeConfig = Field(default_factory=TimeConfig)
    outputs: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def load(cls, path: Path) -> "AnalyzerConfig":
        raw = _read_toml(path)
        return cls.model_validate(raw)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AnalyzerConfig":
        """Build a config from ORG/PROJECT/REPOS style environment variables."""
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            value = env.get(name, "").strip()
            return value or None

        project_raw = get("PROJECT")
        try:
            project_number = int(project_raw) if project_raw else 0
        except ValueError:
            raise ValueError(f"Invalid PROJECT number: {project_raw!r}") from None

        raw: dict[str, Any] = {
            "project": {
                "org": get("ORG") or "",
                "number": project_number,
                "repositories": (get("REPOS") or "").split(","),
            },
            "filters": {
                "start_date": get("START_DATE"),
                "end_date": get("END_DATE"),
                "check_start_date": get("CHECK_START_DATE"),
                "weekday": get("WEEKDAY"),
            },
        }
        if get("MAX_DEPTH"):
            raw["hierarchy"] = {"max_depth": get("MAX_DEPTH")}
        return cls.model_validate(raw)

    def time_settings(self) -> TimeSettings:
        return self.time.to_settings()

    def closed_date_range(self) -> DateRange | None:
        """Closing-date filter; only applied when both ends are configured."""
        f = self.filters
        if not (f.start_date and f.end_date):
            return None
        settings = self.time_settings()
        start = parse_local_date(f.start_date, settings)
        end = end_of_day(parse_local_date(f.end_date, settings))
        return DateRange(start=start, end=end)

    def check_start(self) -> datetime | None:
        if not self.filters.check_start_date:
            return None
        return parse_local_date(self.filters.check_start_date, self.time_settings())
