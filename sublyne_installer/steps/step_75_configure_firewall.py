from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import InstallConfig
from ..lib.firewall import configure_firewall
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class ConfigureFirewallStep:
    step_id = "75_configure_firewall"
    title = "Configuring firewall"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig(raw=state.get("config") or {})

        if not cfg.firewall_enabled:
            logger.info("Firewall disabled by config; inbound traffic left unrestricted")
            record_decision(state, "firewall", {"enabled": False})
            return state

        written = configure_firewall(
            ssh_port=cfg.ssh_port,
            api_port=cfg.api_port,
            rules_dir=cfg.iptables_dir,
            ipv6=cfg.firewall_ipv6,
            dry_run=cfg.dry_run,
        )
        record_decision(
            state,
            "firewall",
            {"enabled": True, "allowed_tcp": [cfg.ssh_port, cfg.api_port], "rules_files": written},
        )
        return state
