from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import InstallConfig
from ..lib.net import host_ip

logger = logging.getLogger(__name__)


class SummaryStep:
    step_id = "95_summary"
    title = "Collecting access details"
    always_run = True

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig(raw=state.get("config") or {})

        ip = host_ip(dry_run=cfg.dry_run)
        access = {
            "api_url": f"http://{ip}:{cfg.api_port}",
            "admin_username": cfg.admin_username,
            "admin_password": cfg.admin_password,
            "service": cfg.service_name,
        }
        state.setdefault("execution", {}).setdefault("summary", {})["access"] = access

        logger.info("Summary: %s", (state.get("execution") or {}).get("decisions") or {})
        logger.info("API available at %s", access["api_url"])
        return state
