from __future__ import annotations

import logging
import os
from typing import Any, Dict

from ..config import InstallConfig
from ..errors import PreflightError
from ..lib.command import have
from ..lib.download import git_remote_reachable, url_reachable
from ..lib.hwdetect import detect_host
from ..state_store import record_decision

logger = logging.getLogger(__name__)

REQUIRED_TOOLS = ("apt-get", "systemctl", "useradd", "sudo")


def check_source(cfg: InstallConfig) -> bool:
    """Check the configured source is reachable. False when neither git nor curl exists yet."""

    url = cfg.source_url
    if cfg.source_method == "git" and have("git"):
        ok = git_remote_reachable(cfg.repo_url, cfg.branch, dry_run=cfg.dry_run)
    elif have("curl"):
        if cfg.source_method == "git":
            url = cfg.repo_url[: -len(".git")] if cfg.repo_url.endswith(".git") else cfg.repo_url
        ok = url_reachable(url, dry_run=cfg.dry_run)
    else:
        return False

    if not ok:
        raise PreflightError(f"Application source is not reachable: {url}")
    logger.info("Source reachable: %s", url)
    return True


class PreflightStep:
    step_id = "00_preflight"
    title = "Checking prerequisites"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig(raw=state.get("config") or {})

        if not cfg.dry_run and os.geteuid() != 0:
            raise PreflightError("Please run as root (use sudo)")

        host = detect_host()
        state["host"] = host

        if not cfg.dry_run:
            if not host.get("debian_family"):
                logger.warning("Untested distribution %s; apt-based install may fail", host.get("os_id"))
            missing = [t for t in REQUIRED_TOOLS if not have(t)]
            if missing:
                raise PreflightError(f"Missing required tools: {', '.join(missing)}")

        # Fail before any user, file or unit is created on the host.
        checked = check_source(cfg)
        if not checked:
            logger.warning("Neither git nor curl available yet; source is checked after package install")

        record_decision(state, "source_method", cfg.source_method)
        record_decision(state, "source_url", cfg.source_url)
        record_decision(state, "source_checked", checked)
        return state
