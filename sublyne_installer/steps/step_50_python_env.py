from __future__ import annotations

import logging
import posixpath
from typing import Any, Dict

from ..config import InstallConfig
from ..lib.command import as_user, run_cmd

logger = logging.getLogger(__name__)


class PythonEnvStep:
    step_id = "50_python_env"
    title = "Setting up Python environment"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig(raw=state.get("config") or {})
        dry_run = cfg.dry_run
        user = cfg.service_user

        decisions = (state.get("execution") or {}).get("decisions") or {}
        requirements = posixpath.join(cfg.app_dir, str(decisions.get("requirements") or "requirements.txt"))

        # venv creation is a no-op on an existing environment
        run_cmd(as_user(user, ["python3", "-m", "venv", cfg.venv_dir]), cwd=cfg.app_dir, dry_run=dry_run)
        run_cmd(as_user(user, [cfg.venv_pip, "install", "-q", "--upgrade", "pip"]), cwd=cfg.app_dir, dry_run=dry_run)
        run_cmd(as_user(user, [cfg.venv_pip, "install", "-q", "-r", requirements]), cwd=cfg.app_dir, dry_run=dry_run)

        logger.info("Virtualenv ready at %s (requirements=%s)", cfg.venv_dir, requirements)
        return state
