from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_console_logging(level: int = logging.INFO, console: Console | None = None) -> None:
    """
    Call once at app start. Routes log records to stderr through rich.
    """
    root = logging.getLogger()
    if root.handlers:
        # already configured (avoid duplicates)
        root.setLevel(level)
        return

    root.setLevel(level)
    h = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        log_time_format="[%H:%M:%S]",
    )
    h.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(h)
