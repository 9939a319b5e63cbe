from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from .command import run_cmd

logger = logging.getLogger(__name__)


def build_rules(*, ssh_port: int = 22, api_port: int = 8000, ipv6: bool = False) -> list[list[str]]:
    """INPUT policy as iptables argument lists, in application order.

    The DROP policy comes last so an SSH session survives the apply. The
    ip6tables variant also admits ICMPv6 for neighbor discovery.
    """

    rules = [
        ["-F", "INPUT"],
        ["-A", "INPUT", "-i", "lo", "-j", "ACCEPT"],
        ["-A", "INPUT", "-m", "conntrack", "--ctstate", "ESTABLISHED,RELATED", "-j", "ACCEPT"],
    ]
    if ipv6:
        rules.append(["-A", "INPUT", "-p", "ipv6-icmp", "-j", "ACCEPT"])
    rules += [
        ["-A", "INPUT", "-p", "tcp", "--dport", str(ssh_port), "-j", "ACCEPT"],
        ["-A", "INPUT", "-p", "tcp", "--dport", str(api_port), "-j", "ACCEPT"],
        ["-P", "INPUT", "DROP"],
    ]
    return rules


def apply_rules(binary: str, rules: Iterable[list[str]], *, dry_run: bool = False) -> None:
    for rule in rules:
        run_cmd([binary, *rule], dry_run=dry_run)


def persist_rules(rules_dir: str, *, ipv6: bool = True, dry_run: bool = False) -> list[str]:
    """Write iptables-save output where iptables-persistent restores it at boot."""

    d = Path(rules_dir)
    targets = [("iptables-save", d / "rules.v4")]
    if ipv6:
        targets.append(("ip6tables-save", d / "rules.v6"))

    written: list[str] = []
    for tool, path in targets:
        r = run_cmd([tool], dry_run=dry_run)
        if dry_run:
            logger.info("Would write %s", str(path))
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(r.stdout, encoding="utf-8")
        written.append(str(path))
    return written


def configure_firewall(
    *,
    ssh_port: int,
    api_port: int,
    rules_dir: str,
    ipv6: bool = True,
    dry_run: bool = False,
) -> list[str]:
    apply_rules("iptables", build_rules(ssh_port=ssh_port, api_port=api_port), dry_run=dry_run)
    if ipv6:
        apply_rules("ip6tables", build_rules(ssh_port=ssh_port, api_port=api_port, ipv6=True), dry_run=dry_run)
    logger.info("Firewall applied: allow lo, established, tcp/%s, tcp/%s; drop the rest", ssh_port, api_port)
    return persist_rules(rules_dir, ipv6=ipv6, dry_run=dry_run)
