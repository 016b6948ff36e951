from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

from issue_analyzer.adapters.github.github_client import resolve_token
from issue_analyzer.common.time_utils import TimeSettings, parse_iso8601
from issue_analyzer.pipeline.config import AnalyzerConfig

JST = timezone(timedelta(hours=9))


def test_defaults() -> None:
    cfg = AnalyzerConfig()

    assert cfg.hierarchy.max_depth == 5
    assert cfg.field_names.to_names().estimated == "見積時間"
    assert cfg.time_settings() == TimeSettings(utc_offset_hours=9.0, timezone_name="JST")
    assert cfg.closed_date_range() is None
    assert cfg.check_start() is None


def test_from_env() -> None:
    cfg = AnalyzerConfig.from_env(
        {
            "ORG": "acme",
            "PROJECT": "7",
            "REPOS": "app, api ,,",
            "START_DATE": "2025-04-01",
            "END_DATE": "2025-04-30",
            "CHECK_START_DATE": "2025-03-01",
            "WEEKDAY": "1",
            "MAX_DEPTH": "3",
        }
    )

    assert cfg.project.org == "acme"
    assert cfg.project.number == 7
    assert cfg.project.repositories == ["app", "api"]
    assert cfg.filters.weekday == 1
    assert cfg.hierarchy.max_depth == 3
    cfg.project.require_complete()

    rng = cfg.closed_date_range()
    assert rng is not None
    assert rng.start == datetime(2025, 4, 1, tzinfo=JST)
    assert rng.end == datetime(2025, 4, 30, 23, 59, 59, tzinfo=JST)
    assert rng.contains(datetime(2025, 4, 30, 23, 59, 59, tzinfo=JST))
    assert not rng.contains(datetime(2025, 5, 1, tzinfo=JST))
    assert cfg.check_start() == datetime(2025, 3, 1, tzinfo=JST)


def test_from_env_requires_project_fields() -> None:
    cfg = AnalyzerConfig.from_env({})

    with pytest.raises(ValueError, match="project.org"):
        cfg.project.require_complete()


def test_from_env_rejects_bad_project_number() -> None:
    with pytest.raises(ValueError):
        AnalyzerConfig.from_env({"ORG": "acme", "PROJECT": "seven"})


@pytest.mark.parametrize("env", [{"MAX_DEPTH": "0"}, {"WEEKDAY": "8"}, {"WEEKDAY": "-1"}])
def test_invalid_values_fail_validation(env: dict[str, str]) -> None:
    with pytest.raises(ValidationError):
        AnalyzerConfig.from_env(env)


def test_one_sided_date_filter_is_ignored() -> None:
    cfg = AnalyzerConfig.from_env({"START_DATE": "2025-04-01"})

    assert cfg.closed_date_range() is None


def test_reversed_or_malformed_dates_raise() -> None:
    reversed_range = AnalyzerConfig.from_env({"START_DATE": "2025-05-01", "END_DATE": "2025-04-01"})
    malformed = AnalyzerConfig.from_env({"START_DATE": "04/01/2025", "END_DATE": "2025-04-30"})

    with pytest.raises(ValueError):
        reversed_range.closed_date_range()
    with pytest.raises(ValueError):
        malformed.closed_date_range()


def test_load_toml(tmp_path: Path) -> None:
    path = tmp_path / "analyzer_config.toml"
    path.write_text(
        "\n".join(
            [
                "[project]",
                'org = "acme"',
                "number = 3",
                'repositories = ["app"]',
                "[field_names]",
                'estimated = "Estimate"',
                "[hierarchy]",
                "max_depth = 2",
                "[time]",
                "utc_offset_hours = 0",
                'timezone_name = "UTC"',
            ]
        ),
        encoding="utf-8",
    )

    cfg = AnalyzerConfig.load(path)

    assert cfg.project.number == 3
    assert cfg.field_names.estimated == "Estimate"
    assert cfg.field_names.actual == "実績時間"
    assert cfg.hierarchy.max_depth == 2
    assert cfg.time_settings().tz.utcoffset(None) == timedelta(0)


def test_example_config_loads() -> None:
    example = Path(__file__).resolve().parents[1] / "analyzer_config.example.toml"

    cfg = AnalyzerConfig.load(example)

    assert cfg.project.org == "your-org"
    cfg.project.require_complete()


def test_resolve_token(tmp_path: Path) -> None:
    token_file = tmp_path / "token"
    token_file.write_text("  from-file\n", encoding="utf-8")

    assert resolve_token({"GITHUB_TOKEN": "abc"}, "GITHUB_TOKEN", "GITHUB_TOKEN_FILE") == "abc"
    assert resolve_token({"GITHUB_TOKEN_FILE": str(token_file)}, "GITHUB_TOKEN", "GITHUB_TOKEN_FILE") == "from-file"
    with pytest.raises(RuntimeError):
        resolve_token({}, "GITHUB_TOKEN", "GITHUB_TOKEN_FILE")
    with pytest.raises(RuntimeError):
        resolve_token({"GITHUB_TOKEN_FILE": str(tmp_path / "nope")}, "GITHUB_TOKEN", "GITHUB_TOKEN_FILE")


def test_parse_iso8601() -> None:
    assert parse_iso8601("2025-04-01T00:00:00Z") == datetime(2025, 4, 1, tzinfo=timezone.utc)
    assert parse_iso8601("2025-04-01T09:00:00+09:00") == datetime(2025, 4, 1, tzinfo=timezone.utc)
    with pytest.raises(ValueError):
        parse_iso8601("2025-04-01T00:00:00")
