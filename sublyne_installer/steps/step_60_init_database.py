from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import InstallConfig
from ..lib.command import as_user, run_cmd
from ..state_store import record_decision

logger = logging.getLogger(__name__)

INIT_DB_SNIPPET = "from app.db.init_db import init_database; init_database()"


class InitDatabaseStep:
    step_id = "60_init_database"
    title = "Initializing database"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig(raw=state.get("config") or {})
        dry_run = cfg.dry_run
        user = cfg.service_user

        run_cmd(
            ["install", "-d", "-o", user, "-g", user, "-m", "750", cfg.database_dir],
            dry_run=dry_run,
        )

        r = run_cmd(
            as_user(user, [cfg.venv_python, "-c", INIT_DB_SNIPPET]),
            cwd=cfg.backend_dir,
            check=False,
            dry_run=dry_run,
        )
        if r.ok:
            logger.info("Database initialized at %s", cfg.database_path)
        else:
            # init_database() raises when tables exist; re-runs must not fail here.
            logger.warning("Database already exists (init exited %s): %s", r.returncode, r.stderr.strip()[-500:])

        record_decision(state, "database", {"path": cfg.database_path, "initialized": r.ok})
        return state
