from __future__ import annotations

import logging
from pathlib import Path
from typing import Final


DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: int = logging.INFO, log_dir: str | None = None) -> None:
    """Configure standard library logging for the CLI.

    Logs go to stderr so stdout stays free for the JSON report. If log_dir
    is provided, logs are also written to '<log_dir>/analyze.log'.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        log_path = Path(log_dir).expanduser()
        log_path.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path / "analyze.log", encoding="utf-8"))

    logging.basicConfig(level=level, format=DEFAULT_LOG_FORMAT, handlers=handlers, force=True)
