from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)


@dataclass(frozen=True)
class Ui:
    """Console feedback for an analysis run; everything goes to stderr."""

    console: Console
    progress: Progress

    def log(self, message: str) -> None:
        self.console.print(message)

    def warn(self, message: str) -> None:
        self.console.print(f"[yellow]{message}[/yellow]")

    @contextmanager
    def stage(self, description: str, total: int) -> Iterator[Callable[[str], None]]:
        """Track one stage; the yielded callback advances it by one item."""
        task = self.progress.add_task(description, total=total, current="")

        def advance(current: str) -> None:
            self.progress.update(task, advance=1, current=current)

        try:
            yield advance
        finally:
            self.progress.remove_task(task)


@contextmanager
def progress_ui(*, quiet: bool = False) -> Iterator[Ui]:
    # stdout carries the JSON report.
    console = Console(stderr=True, quiet=quiet)
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("{task.fields[current]}", style="dim"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )
    with progress:
        yield Ui(console=console, progress=progress)
