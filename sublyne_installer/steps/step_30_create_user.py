from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import InstallConfig
from ..lib.users import ensure_system_user
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class CreateUserStep:
    step_id = "30_create_user"
    title = "Creating service user"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig(raw=state.get("config") or {})

        created = ensure_system_user(cfg.service_user, cfg.app_dir, dry_run=cfg.dry_run)
        record_decision(state, "service_user", {"name": cfg.service_user, "created": created})
        return state
