from __future__ import annotations

import logging
from typing import Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def apt_update(*, dry_run: bool = False) -> None:
    run_cmd(["apt-get", "update", "-qq"], env=APT_ENV, dry_run=dry_run)


def apt_install(
    packages: Sequence[str],
    *,
    with_recommends: bool = False,
    dry_run: bool = False,
) -> None:
    if not packages:
        return
    argv = [
        "apt-get",
        "install",
        "-y",
        "-q",
    ]
    if not with_recommends:
        argv.append("--no-install-recommends")
    run_cmd([*argv, *packages], env=APT_ENV, dry_run=dry_run)


def preseed_iptables_persistent(*, dry_run: bool = False) -> None:
    """Answer iptables-persistent's debconf questions so apt never prompts.

    Autosave is declined; the firewall step persists rules itself.
    """

    selections = "\n".join(
        [
            "iptables-persistent iptables-persistent/autosave_v4 boolean false",
            "iptables-persistent iptables-persistent/autosave_v6 boolean false",
            "",
        ]
    )
    run_cmd(["debconf-set-selections"], input_text=selections, dry_run=dry_run)


def dedup(packages: Sequence[str]) -> list[str]:
    # De-dup while preserving order
    out: list[str] = []
    for p in packages:
        if p and p not in out:
            out.append(p)
    return out
