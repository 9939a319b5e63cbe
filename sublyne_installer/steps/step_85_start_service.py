from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import InstallConfig
from ..lib import systemd

logger = logging.getLogger(__name__)


class StartServiceStep:
    step_id = "85_start_service"
    title = "Starting service"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig(raw=state.get("config") or {})
        systemd.restart(cfg.unit_name, dry_run=cfg.dry_run)
        return state
