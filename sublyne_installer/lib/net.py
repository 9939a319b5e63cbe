from __future__ import annotations

import logging
import socket

from .command import run_cmd

logger = logging.getLogger(__name__)


def host_ip(*, dry_run: bool = False) -> str:
    """Best-effort primary address of this host, for printing URLs."""

    r = run_cmd(["hostname", "-I"], check=False, dry_run=dry_run)
    addrs = (r.stdout or "").split() if r.ok else []
    if addrs:
        return addrs[0]

    # No packets are sent; connect() on UDP only selects a route.
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("1.1.1.1", 80))
            return s.getsockname()[0]
    except OSError:
        return "localhost"


def port_listening(port: int, *, host: str = "127.0.0.1", timeout: float = 2.0) -> bool:
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False
