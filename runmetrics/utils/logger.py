"""Logging configuration."""

import logging
from pathlib import Path
from typing import Optional
from rich.logging import RichHandler
from ..config import settings

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def setup_logging(level: Optional[str] = None, log_file: Optional[Path] = None) -> None:
    """Install the console and file handlers on the root logger.

    Safe to call more than once; only the level changes on later calls.
    """
    global _configured

    level_name = (level or settings.log_level).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    if _configured:
        return

    # Console handler with rich
    console_handler = RichHandler(
        rich_tracebacks=True,
        show_time=True,
        show_path=False,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(console_handler)

    # File handler
    log_file = log_file or settings.log_file
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root.addHandler(file_handler)

    _configured = True
