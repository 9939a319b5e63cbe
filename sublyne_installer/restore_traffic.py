"""Reconnect FORWARD rules for active tunnels after a reboot.

The installer copies this file into the deployed backend directory and
registers it as an ``@reboot`` cron job, so it must stay runnable with the
standard library alone.
"""

from __future__ import annotations

import argparse
import logging
import os
import shutil
import sqlite3
import subprocess
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence

logger = logging.getLogger("restore_traffic")

DEFAULT_DB_PATH = "/opt/sublyne/database/sublyne.db"

# cron starts jobs with PATH=/usr/bin:/bin, which misses iptables on Debian
SBIN_PATH = "/usr/local/sbin:/usr/sbin:/sbin"

Runner = Callable[[Sequence[str]], int]


def _run(argv: Sequence[str]) -> int:
    return subprocess.run(list(argv), stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL).returncode


def find_iptables() -> str:
    search = os.pathsep.join(p for p in (SBIN_PATH, os.environ.get("PATH", "")) if p)
    found = shutil.which("iptables", path=search)
    if found is None:
        raise FileNotFoundError(f"iptables not found in {search}")
    return found


def active_interfaces(db_path: str, table: str = "tunnels") -> List[str]:
    if not table.isidentifier():
        raise ValueError(f"Invalid table name: {table}")
    conn = sqlite3.connect(f"file:{db_path}?mode=ro", uri=True)
    try:
        rows = conn.execute(
            f"SELECT interface_name FROM {table} "
            "WHERE status = 'active' AND interface_name IS NOT NULL AND interface_name != ''"
        ).fetchall()
    finally:
        conn.close()
    # De-dup while preserving order
    seen: List[str] = []
    for (iface,) in rows:
        if iface not in seen:
            seen.append(iface)
    return seen


def forward_rules(interface: str) -> List[List[str]]:
    return [
        ["FORWARD", "-i", interface, "-j", "ACCEPT"],
        ["FORWARD", "-o", interface, "-j", "ACCEPT"],
    ]


def restore(
    db_path: str,
    *,
    table: str = "tunnels",
    runner: Runner = _run,
    iptables: str = "iptables",
) -> int:
    """Append missing FORWARD rules; returns how many rules were added."""

    added = 0
    for iface in active_interfaces(db_path, table):
        for rule in forward_rules(iface):
            if runner([iptables, "-C", *rule]) == 0:
                continue
            rc = runner([iptables, "-A", *rule])
            if rc != 0:
                logger.error("Failed to add rule %s (exit %s)", " ".join(rule), rc)
                continue
            added += 1
        logger.info("Restored traffic rules for %s", iface)
    return added


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="restore-traffic")
    p.add_argument("--db", default=DEFAULT_DB_PATH, help="Path to the backend SQLite database")
    p.add_argument("--table", default="tunnels")
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not Path(args.db).exists():
        logger.error("Database not found: %s", args.db)
        return 1

    try:
        added = restore(args.db, table=args.table, iptables=find_iptables())
    except sqlite3.Error as e:
        logger.error("Could not read tunnels from %s: %s", args.db, e)
        return 1
    except OSError as e:
        logger.error("Could not run iptables: %s", e)
        return 1

    logger.info("Restore finished (%d rules added)", added)
    return 0


if __name__ == "__main__":
    sys.exit(main())
