from __future__ import annotations

import logging
import time
from typing import Any, Dict

from ..config import InstallConfig
from ..errors import ServiceStartError
from ..lib import systemd
from ..lib.net import port_listening
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class HealthCheckStep:
    step_id = "90_health_check"
    title = "Checking service health"
    always_run = True

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig(raw=state.get("config") or {})
        dry_run = cfg.dry_run
        unit = cfg.unit_name

        if not dry_run:
            time.sleep(cfg.health_initial_delay)

        if not systemd.wait_active(unit, attempts=cfg.health_attempts, interval=cfg.health_interval, dry_run=dry_run):
            journal = systemd.journal_tail(unit, lines=cfg.journal_lines, dry_run=dry_run)
            raise ServiceStartError(
                f"Service failed to start. Check logs: journalctl -u {cfg.service_name}",
                journal=journal,
            )

        listening = True if dry_run else port_listening(cfg.api_port)
        if not listening:
            logger.warning("%s is active but nothing answers on port %s yet", unit, cfg.api_port)

        record_decision(state, "health", {"active": True, "port_listening": listening})
        return state
