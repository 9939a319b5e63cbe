from __future__ import annotations

import logging

from .command import run_cmd

logger = logging.getLogger(__name__)


def read_crontab(user: str, *, dry_run: bool = False) -> str:
    # "no crontab for <user>" exits 1; treat it as empty
    r = run_cmd(["crontab", "-l", "-u", user], check=False, dry_run=dry_run)
    return r.stdout if r.ok else ""


def install_reboot_job(user: str, command: str, *, dry_run: bool = False) -> bool:
    """Ensure '@reboot <command>' is in the user's crontab. Returns True when added."""

    entry = f"@reboot {command}"
    current = read_crontab(user, dry_run=dry_run)
    lines = [ln for ln in current.splitlines() if ln.strip()]
    if entry in (ln.strip() for ln in lines):
        logger.info("Crontab entry already present for %s", user)
        return False

    lines.append(entry)
    run_cmd(["crontab", "-u", user, "-"], input_text="\n".join(lines) + "\n", dry_run=dry_run)
    logger.info("Installed crontab entry for %s: %s", user, entry)
    return True
