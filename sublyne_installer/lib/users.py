from __future__ import annotations

import logging

from .command import run_cmd

logger = logging.getLogger(__name__)


def user_exists(name: str, *, dry_run: bool = False) -> bool:
    if dry_run:
        return False
    return run_cmd(["id", name], check=False).ok


def ensure_system_user(name: str, home: str, *, shell: str = "/bin/bash", dry_run: bool = False) -> bool:
    """Create a system account unless it exists. Returns True when created."""

    if user_exists(name, dry_run=dry_run):
        logger.info("User %s already exists", name)
        return False

    run_cmd(["useradd", "-r", "-s", shell, "-d", home, name], dry_run=dry_run)
    logger.info("Created system user %s (home=%s)", name, home)
    return True


def chown_tree(path: str, user: str, group: str | None = None, *, dry_run: bool = False) -> None:
    run_cmd(["chown", "-R", f"{user}:{group or user}", path], dry_run=dry_run)
