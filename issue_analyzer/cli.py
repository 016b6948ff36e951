from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from issue_analyzer.adapters.github.github_client import GitHubApiError, GitHubClient, resolve_token
from issue_analyzer.adapters.github.project_provider import ProjectIssueProvider
from issue_analyzer.common.logging_config import configure_logging
from issue_analyzer.pipeline.config import AnalyzerConfig, HierarchyConfig
from issue_analyzer.pipeline.progress_ui import progress_ui
from issue_analyzer.pipeline.runner import AnalyzerRunner


app = typer.Typer(add_completion=False)


def _load_config(config: Optional[str]) -> AnalyzerConfig:
    try:
        if config:
            return AnalyzerConfig.load(Path(config).expanduser())
        return AnalyzerConfig.from_env()
    except (ValidationError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def analyze(
    config: Optional[str] = typer.Option(
        None,
        help="Path to analyzer_config.toml. Without it, ORG/PROJECT/REPOS/... env vars are used.",
    ),
    output: Optional[str] = typer.Option(None, help="Also write the JSON report to this file."),
    max_depth: Optional[int] = typer.Option(None, help="Override hierarchy.max_depth."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Hide progress and console messages."),
) -> None:
    """Build issue families for closed roots and report summaries as JSON."""
    cfg = _load_config(config)
    if max_depth is not None:
        try:
            cfg.hierarchy = HierarchyConfig(max_depth=max_depth)
        except ValidationError as exc:
            raise typer.BadParameter(str(exc), param_hint="--max-depth") from exc

    configure_logging(logging.DEBUG if verbose else logging.INFO, log_dir=cfg.outputs.logs_dir)

    with progress_ui(quiet=quiet) as ui:
        try:
            runner = AnalyzerRunner.from_config(cfg, ui=ui)
        except (ValueError, RuntimeError) as exc:
            raise typer.BadParameter(str(exc)) from exc
        try:
            report = runner.run()
        except GitHubApiError as exc:
            typer.echo(f"Error fetching issues from project: {exc}", err=True)
            raise typer.Exit(code=1) from exc

    payload = report.to_json()
    out_path = Path(output).expanduser() if output else cfg.outputs.resolved_report_path()
    if out_path is not None:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(payload, encoding="utf-8")
        typer.echo(f"Wrote {out_path}", err=True)
    typer.echo(payload)


@app.command()
def init_config(
    path: str = typer.Argument(
        "analyzer_config.toml",
        help="Where to write the analyzer configuration TOML",
    ),
) -> None:
    """Write an example analyzer_config.toml."""
    project_root = Path(__file__).resolve().parents[1]
    template = project_root / "analyzer_config.example.toml"
    if not template.exists():
        raise RuntimeError(f"Missing template file: {template}")

    out = Path(path).expanduser()
    if out.exists():
        raise typer.BadParameter(f"Refusing to overwrite existing file: {out}")

    out.write_text(template.read_text(encoding="utf-8"), encoding="utf-8")
    typer.echo(f"Wrote {out} (edit it, then run: issue-analyzer analyze --config {out})")


@app.command()
def parent(
    repo: str = typer.Argument(..., help="owner/repo"),
    number: int = typer.Argument(..., help="Issue number"),
    config: Optional[str] = typer.Option(None, help="Path to analyzer_config.toml"),
) -> None:
    """Show whether an issue is a family root, or which issue is its parent."""
    if "/" not in repo:
        raise typer.BadParameter("repo must look like owner/repo")
    owner, name = repo.split("/", 1)

    cfg = _load_config(config)
    configure_logging(logging.WARNING)
    try:
        token = resolve_token(os.environ, cfg.github.token_env_var, cfg.github.token_file_env_var)
    except RuntimeError as exc:
        raise typer.BadParameter(str(exc)) from exc

    client = GitHubClient(token=token, api_base_url=cfg.github.api_base_url, timeout_s=cfg.github.timeout_s)
    provider = ProjectIssueProvider(client=client, org=owner, project_number=0)
    try:
        info = provider.fetch_parent(owner, name, number)
    except (GitHubApiError, ValueError) as exc:
        typer.echo(f"GraphQL query failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if info.is_root:
        typer.echo(f"Issue #{info.number} ({info.title}) is a root issue.")
    else:
        typer.echo(f"Issue #{info.number} ({info.title}) is a sub-issue of #{info.parent_number} ({info.parent_url}).")


def main() -> None:
    app()
