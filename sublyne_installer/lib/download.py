from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from ..errors import DownloadError
from .command import have, run_cmd

logger = logging.getLogger(__name__)


def _with_timeout(argv: Sequence[str], timeout: Optional[int]) -> list[str]:
    if timeout and have("timeout"):
        return ["timeout", str(int(timeout)), *argv]
    return list(argv)


def download_argvs(url: str, dest: str, *, timeout: Optional[int] = None) -> list[list[str]]:
    """Download attempts in order of preference: wget, then curl."""

    return [
        _with_timeout(["wget", "-q", "-O", dest, url], timeout),
        _with_timeout(["curl", "-fsSL", "-o", dest, url], timeout),
    ]


def download(url: str, dest: str, *, timeout: Optional[int] = None, dry_run: bool = False) -> str:
    """Fetch url into dest, falling back to the next tool when one fails.

    Raises DownloadError only when every attempt failed.
    """

    Path(dest).parent.mkdir(parents=True, exist_ok=True)

    failures: list[str] = []
    for argv in download_argvs(url, dest, timeout=timeout):
        r = run_cmd(argv, check=False, dry_run=dry_run)
        if r.ok and (dry_run or Path(dest).exists()):
            logger.info("Downloaded %s -> %s", url, dest)
            return dest
        tool = argv[2] if argv[0] == "timeout" else argv[0]
        failures.append(f"{tool}: exit {r.returncode}")
        logger.warning("Download attempt failed (%s); trying next tool", failures[-1])
        Path(dest).unlink(missing_ok=True)

    raise DownloadError(f"Failed to download {url} ({'; '.join(failures)})")


def url_reachable(url: str, *, timeout: int = 30, dry_run: bool = False) -> bool:
    """HEAD-request an HTTP(S) URL without downloading the body."""

    r = run_cmd(
        ["curl", "-fsIL", "--max-time", str(timeout), "-o", "/dev/null", url],
        check=False,
        dry_run=dry_run,
    )
    return r.ok


def git_remote_reachable(repo_url: str, branch: str, *, dry_run: bool = False) -> bool:
    r = run_cmd(
        ["git", "ls-remote", "--exit-code", "--heads", repo_url, branch],
        check=False,
        env={"GIT_TERMINAL_PROMPT": "0"},
        dry_run=dry_run,
    )
    return r.ok
