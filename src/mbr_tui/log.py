"""Logging setup for mbr-tui.

Log records are routed to the Textual devtools console while the dashboard
runs, and optionally to a file. Nothing is written to stderr once the app owns
the terminal.
"""

import logging
from pathlib import Path
from typing import Optional

from textual.logging import TextualHandler


LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Configure the ``mbr_tui`` logger hierarchy.

    Args:
        verbose: Log at DEBUG instead of INFO.
        log_file: Optional path that receives a copy of every record.
    """
    root = logging.getLogger("mbr_tui")
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.propagate = False

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.addHandler(TextualHandler())

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)
