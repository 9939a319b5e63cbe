from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import InstallConfig
from ..errors import DownloadError
from ..lib.archive import extract, find_file
from ..lib.command import run_cmd
from ..lib.download import download
from ..state_store import record_decision

logger = logging.getLogger(__name__)


def installed_gost_version(path: str) -> Optional[str]:
    if not os.access(path, os.X_OK):
        return None
    r = run_cmd([path, "-V"], check=False)
    out = (r.stdout or r.stderr or "").strip()
    # "gost 2.11.5 (go1.17.6 linux/amd64)"
    parts = out.split()
    return parts[1] if len(parts) > 1 and parts[0] == "gost" else None


class InstallGostStep:
    step_id = "20_install_gost"
    title = "Installing gost"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig(raw=state.get("config") or {})
        dry_run = cfg.dry_run
        dest = cfg.gost_install_path

        if not dry_run and installed_gost_version(dest) == cfg.gost_version:
            logger.info("gost %s already installed at %s", cfg.gost_version, dest)
            record_decision(state, "gost", {"path": dest, "version": cfg.gost_version, "downloaded": False})
            return state

        arch = cfg.gost_arch or (state.get("host") or {}).get("arch") or "amd64"
        url = cfg.gost_url(arch)

        Path(cfg.tmp_dir).mkdir(parents=True, exist_ok=True)
        work = Path(tempfile.mkdtemp(prefix="gost-", dir=cfg.tmp_dir))
        try:
            archive = download(
                url,
                str(work / url.rsplit("/", 1)[-1]),
                timeout=cfg.download_timeout,
                dry_run=dry_run,
            )
            if dry_run:
                logger.info("Would install gost binary to %s", dest)
            else:
                try:
                    extracted = extract(archive, str(work / "x"))
                except (ValueError, OSError) as e:
                    raise DownloadError(f"Could not unpack gost from {url}: {e}") from e
                binary = find_file(str(extracted), "gost")
                if binary is None:
                    # single-file .gz assets are named after the archive
                    files = [p for p in extracted.iterdir() if p.is_file()]
                    binary = files[0] if len(files) == 1 else None
                if binary is None:
                    raise DownloadError(f"gost binary not found in {url}")

                Path(dest).parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(binary, dest)
                os.chmod(dest, 0o755)
        finally:
            shutil.rmtree(work, ignore_errors=True)

        record_decision(state, "gost", {"path": dest, "version": cfg.gost_version, "arch": arch, "url": url, "downloaded": True})
        logger.info("gost %s (%s) installed at %s", cfg.gost_version, arch, dest)
        return state
