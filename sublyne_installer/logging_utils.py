from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from rich.logging import RichHandler

from . import console

DEFAULT_LOG_PATH = "/var/log/sublyne-installer.log"
FALLBACK_LOG_NAME = "sublyne-installer.log"

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
FILE_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _open_log_file(log_path: str) -> logging.FileHandler:
    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path)
    except OSError:
        # /var/log is not writable without root (dry runs on a workstation)
        return logging.FileHandler(Path.cwd() / FALLBACK_LOG_NAME)


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Send every command and decision to the install log.

    Warnings and errors are also rendered through the rich console used by
    ``sublyne_installer.console``, so they interleave with the step lines.
    Calling this again is a no-op. Returns the log file actually opened.
    """

    root = logging.getLogger()
    if getattr(root, "_sublyne_log_path", None):
        return getattr(root, "_sublyne_log_path")

    root.setLevel(level)

    file_handler = _open_log_file(log_path)
    file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=FILE_DATEFMT))
    handlers: List[logging.Handler] = [file_handler]

    if also_console:
        rich_handler = RichHandler(
            console=console.console,
            level=logging.WARNING,
            show_time=False,
            show_path=False,
            markup=False,
        )
        rich_handler.setFormatter(logging.Formatter("%(message)s"))
        handlers.append(rich_handler)

    for h in handlers:
        root.addHandler(h)

    chosen_path = file_handler.baseFilename
    setattr(root, "_sublyne_log_path", chosen_path)
    logging.getLogger(__name__).info("Logging to %s (requested %s)", chosen_path, log_path)
    return chosen_path
