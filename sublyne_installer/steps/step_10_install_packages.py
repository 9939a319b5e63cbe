from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import InstallConfig
from ..errors import PreflightError
from ..lib.manifests import load_packages_manifest, manifest_packages
from ..lib.pkg import apt_install, apt_update, dedup, preseed_iptables_persistent
from ..state_store import record_decision
from .step_00_preflight import check_source

logger = logging.getLogger(__name__)


class InstallPackagesStep:
    step_id = "10_install_packages"
    title = "Installing system packages"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig(raw=state.get("config") or {})
        dry_run = cfg.dry_run

        manifest = load_packages_manifest()
        packages = dedup(manifest_packages(manifest, ["base", "firewall"]) + cfg.extra_packages)

        preseed_iptables_persistent(dry_run=dry_run)
        apt_update(dry_run=dry_run)
        apt_install(packages, dry_run=dry_run)

        # Minimal images ship without git or curl, so preflight may not have
        # checked the source. Do it now, before the service user exists.
        decisions = (state.get("execution") or {}).get("decisions") or {}
        if not decisions.get("source_checked"):
            checked = check_source(cfg)
            if not checked and not dry_run:
                raise PreflightError("Cannot check the application source: git and curl are still missing")
            record_decision(state, "source_checked", checked)

        state.setdefault("execution", {}).setdefault("plan", {})["packages"] = packages
        logger.info("Installed %d packages", len(packages))
        return state
