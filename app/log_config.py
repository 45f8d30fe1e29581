from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str, console: Console | None = None) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.captureWarnings(True)
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    handler.setLevel(log_level)
    logging.basicConfig(
        level=log_level,
        format="%(name)s: %(message)s",
        handlers=[handler],
        force=True,
    )
