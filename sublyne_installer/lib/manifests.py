from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import yaml


def _package_root() -> Path:
    # sublyne_installer/lib/manifests.py -> sublyne_installer
    return Path(__file__).resolve().parents[1]


def load_yaml_rel(rel_path: str) -> Dict[str, Any]:
    """Load a YAML file relative to the package root (manifests/...)."""

    p = _package_root() / rel_path.lstrip("/")
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a mapping/dict: {p}")
    return data


def load_packages_manifest() -> Dict[str, Any]:
    return load_yaml_rel("manifests/packages.yaml")


def manifest_packages(manifest: Dict[str, Any], groups: List[str]) -> List[str]:
    groups_cfg = manifest.get("package_groups") or {}
    if not isinstance(groups_cfg, dict):
        raise ValueError("manifests/packages.yaml: package_groups must be a mapping")

    packages: List[str] = []
    for group in groups:
        pkgs = (groups_cfg.get(group) or {}).get("packages") or []
        if not isinstance(pkgs, list):
            raise ValueError(f"Package group {group} packages must be a list")
        packages.extend([str(p).strip() for p in pkgs if str(p).strip()])
    return packages
