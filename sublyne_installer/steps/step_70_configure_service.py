from __future__ import annotations

import logging
import os
import posixpath
from pathlib import Path
from typing import Any, Dict

from ..config import InstallConfig
from ..lib import systemd
from ..state_store import record_decision

logger = logging.getLogger(__name__)


def unit_spec(cfg: InstallConfig) -> systemd.UnitSpec:
    return systemd.UnitSpec(
        description=cfg.service_description,
        user=cfg.service_user,
        working_dir=cfg.backend_dir,
        venv_dir=cfg.venv_dir,
        exec_start=f"{cfg.venv_python} main.py",
        restart_sec=cfg.restart_sec,
    )


class ConfigureServiceStep:
    step_id = "70_configure_service"
    title = "Creating system service"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig(raw=state.get("config") or {})
        dry_run = cfg.dry_run

        startup = Path(posixpath.join(cfg.backend_dir, "startup.sh"))
        if not dry_run and startup.is_file():
            os.chmod(startup, startup.stat().st_mode | 0o111)
            logger.info("Marked %s executable", startup)

        unit_path = systemd.write_unit(
            cfg.systemd_dir,
            cfg.unit_name,
            systemd.render_unit(unit_spec(cfg)),
            dry_run=dry_run,
        )
        systemd.daemon_reload(dry_run=dry_run)
        systemd.enable(cfg.unit_name, dry_run=dry_run)

        record_decision(state, "unit_path", str(unit_path))
        return state
