from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict

from ..config import InstallConfig
from ..errors import CommandError, SourceError
from ..lib.archive import extract, single_top_dir
from ..lib.assets import clear_dir, copy_tree
from ..lib.command import run_cmd
from ..lib.download import download
from ..lib.users import chown_tree
from ..state_store import record_decision

logger = logging.getLogger(__name__)

# Survive re-installs: the database and the virtualenv belong to the host.
PRESERVED = ("database", "venv")

REQUIREMENTS_CANDIDATES = ("requirements.txt", "backend/requirements.txt")


def locate_requirements(root: Path) -> str:
    for rel in REQUIREMENTS_CANDIDATES:
        if (root / rel).is_file():
            return rel
    raise SourceError(f"requirements.txt not found in {root}")


def validate_layout(root: Path) -> str:
    """Check the fetched tree looks like the application; returns the requirements path."""

    if not (root / "backend").is_dir():
        raise SourceError(f"backend directory not found in {root}")
    if not (root / "backend" / "main.py").is_file():
        raise SourceError(f"backend/main.py not found in {root}")
    return locate_requirements(root)


class FetchSourceStep:
    step_id = "40_fetch_source"
    title = "Fetching application source"

    def _fetch(self, cfg: InstallConfig, work: Path) -> Path:
        if cfg.source_method == "git":
            dest = work / "src"
            try:
                run_cmd(
                    ["git", "clone", "-q", "--depth", "1", "--branch", cfg.branch, cfg.repo_url, str(dest)],
                    env={"GIT_TERMINAL_PROMPT": "0"},
                    dry_run=cfg.dry_run,
                )
            except CommandError as e:
                raise SourceError(f"git clone of {cfg.repo_url} ({cfg.branch}) failed") from e
            return dest

        url = cfg.source_url
        archive = download(url, str(work / f"{cfg.app_name}.zip"), timeout=cfg.download_timeout, dry_run=cfg.dry_run)
        if cfg.dry_run:
            return work / "src"
        try:
            extracted = extract(archive, str(work / "src"))
        except (ValueError, OSError) as e:
            raise SourceError(f"Could not extract {url}: {e}") from e
        return single_top_dir(str(extracted))

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig(raw=state.get("config") or {})
        dry_run = cfg.dry_run

        Path(cfg.tmp_dir).mkdir(parents=True, exist_ok=True)
        work = Path(tempfile.mkdtemp(prefix=f"{cfg.app_name}-download-", dir=cfg.tmp_dir))
        try:
            root = self._fetch(cfg, work)

            if dry_run:
                requirements = REQUIREMENTS_CANDIDATES[0]
                logger.info("Would deploy %s into %s", cfg.source_url, cfg.app_dir)
            else:
                # Validate before touching the application directory.
                requirements = validate_layout(root)
                clear_dir(cfg.app_dir, keep=PRESERVED)
                copy_tree(str(root), cfg.app_dir, skip_top={".git"})
        finally:
            shutil.rmtree(work, ignore_errors=True)

        chown_tree(cfg.app_dir, cfg.service_user, dry_run=dry_run)

        record_decision(state, "requirements", requirements)
        logger.info("Deployed %s source (%s) to %s", cfg.source_method, cfg.source_url, cfg.app_dir)
        return state
