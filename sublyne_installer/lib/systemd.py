from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from .command import run_cmd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnitSpec:
    description: str
    user: str
    working_dir: str
    venv_dir: str
    exec_start: str
    restart_sec: int = 5
    group: str | None = None


def render_unit(spec: UnitSpec) -> str:
    group = spec.group or spec.user
    return "\n".join(
        [
            "[Unit]",
            f"Description={spec.description}",
            "After=network.target",
            "",
            "[Service]",
            "Type=simple",
            f"User={spec.user}",
            f"Group={group}",
            f"WorkingDirectory={spec.working_dir}",
            f"Environment=PATH={spec.venv_dir}/bin",
            f"ExecStart={spec.exec_start}",
            "Restart=always",
            f"RestartSec={spec.restart_sec}",
            "",
            "[Install]",
            "WantedBy=multi-user.target",
            "",
        ]
    )


def write_unit(unit_dir: str, unit_name: str, contents: str, *, dry_run: bool = False) -> Path:
    p = Path(unit_dir) / unit_name
    if dry_run:
        logger.info("Would write %s", str(p))
        return p
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(contents, encoding="utf-8")
    p.chmod(0o644)
    logger.info("Wrote unit %s", str(p))
    return p


def daemon_reload(*, dry_run: bool = False) -> None:
    run_cmd(["systemctl", "daemon-reload"], dry_run=dry_run)


def enable(unit: str, *, dry_run: bool = False) -> None:
    run_cmd(["systemctl", "enable", unit], dry_run=dry_run)


def restart(unit: str, *, dry_run: bool = False) -> None:
    # restart starts a stopped unit and picks up new code on re-installs
    run_cmd(["systemctl", "restart", unit], dry_run=dry_run)


def is_active(unit: str, *, dry_run: bool = False) -> bool:
    r = run_cmd(["systemctl", "is-active", "--quiet", unit], check=False, dry_run=dry_run)
    return r.ok


def wait_active(
    unit: str,
    *,
    attempts: int = 5,
    interval: float = 2.0,
    dry_run: bool = False,
) -> bool:
    """Poll is-active until it succeeds or attempts run out."""

    for attempt in range(1, attempts + 1):
        if is_active(unit, dry_run=dry_run):
            logger.info("%s active (attempt %d/%d)", unit, attempt, attempts)
            return True
        if attempt < attempts:
            time.sleep(interval)
    logger.warning("%s not active after %d attempts", unit, attempts)
    return False


def journal_tail(unit: str, *, lines: int = 50, dry_run: bool = False) -> str:
    r = run_cmd(
        ["journalctl", "-u", unit, "-n", str(lines), "--no-pager"],
        check=False,
        dry_run=dry_run,
    )
    return r.stdout
