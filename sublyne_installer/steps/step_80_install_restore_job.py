from __future__ import annotations

import logging
import posixpath
import shutil
from pathlib import Path
from typing import Any, Dict

from .. import restore_traffic
from ..config import InstallConfig
from ..lib.cron import install_reboot_job
from ..lib.users import chown_tree
from ..state_store import record_decision

logger = logging.getLogger(__name__)

SCRIPT_NAME = "restore_traffic.py"


def restore_command(cfg: InstallConfig) -> str:
    script = posixpath.join(cfg.backend_dir, SCRIPT_NAME)
    return f"{cfg.venv_python} {script} --db {cfg.database_path}"


class InstallRestoreJobStep:
    step_id = "80_install_restore_job"
    title = "Installing traffic restore job"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig(raw=state.get("config") or {})
        dry_run = cfg.dry_run

        if not cfg.restore_job_enabled:
            record_decision(state, "restore_job", {"enabled": False})
            return state

        target = Path(cfg.backend_dir) / SCRIPT_NAME
        if dry_run:
            logger.info("Would copy %s -> %s", restore_traffic.__file__, target)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(restore_traffic.__file__, target)
            target.chmod(0o755)
        chown_tree(str(target), cfg.service_user, dry_run=dry_run)

        command = restore_command(cfg)
        added = install_reboot_job(cfg.restore_job_user, command, dry_run=dry_run)

        record_decision(
            state,
            "restore_job",
            {"enabled": True, "user": cfg.restore_job_user, "command": command, "added": added},
        )
        return state
