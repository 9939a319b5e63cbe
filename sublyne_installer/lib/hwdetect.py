from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def normalize_arch(machine: str) -> str:
    """Map `uname -m` to the architecture names used in gost release assets."""

    m = machine.lower()
    return {
        "x86_64": "amd64",
        "amd64": "amd64",
        "i386": "386",
        "i686": "386",
        "aarch64": "armv8",
        "arm64": "armv8",
        "armv7l": "armv7",
        "armv6l": "armv6",
    }.get(m, m)


def parse_os_release(text: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        out[key.strip()] = value.strip().strip('"').strip("'")
    return out


def _read_text(path: Path) -> Optional[str]:
    try:
        txt = path.read_text(encoding="utf-8", errors="ignore").strip()
        return txt or None
    except OSError:
        return None


def detect_host(os_release_path: str = "/etc/os-release") -> Dict[str, Any]:
    """Collect the host facts later steps decide on."""

    machine = platform.machine()
    osr = parse_os_release(_read_text(Path(os_release_path)) or "")
    like = osr.get("ID_LIKE", "").split()

    host: Dict[str, Any] = {
        "machine": machine,
        "arch": normalize_arch(machine),
        "os_id": osr.get("ID"),
        "os_version": osr.get("VERSION_ID"),
        "os_pretty": osr.get("PRETTY_NAME"),
        "debian_family": osr.get("ID") in {"debian", "ubuntu"} or "debian" in like,
    }
    logger.info("Host: %s", host)
    return host
