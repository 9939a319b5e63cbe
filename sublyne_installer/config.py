from __future__ import annotations

import copy
import os
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError

SOURCE_METHODS = ("git", "archive", "release")

DEFAULT_REPO_URL = "https://github.com/PatrickStatus/Sublyne.git"
GOST_URL_TEMPLATE = (
    "https://github.com/ginuerzh/gost/releases/download/v{version}/gost-linux-{arch}-{version}.tar.gz"
)

# Overrides read from the environment: variable -> (section, key, type)
ENV_OVERRIDES = {
    "SUBLYNE_REPO_URL": ("source", "repo_url", str),
    "SUBLYNE_BRANCH": ("source", "branch", str),
    "SUBLYNE_SOURCE_METHOD": ("source", "method", str),
    "SUBLYNE_API_PORT": (None, "api_port", int),
}


def default_config() -> Dict[str, Any]:
    return {
        "app_name": "sublyne",
        "app_dir": "/opt/sublyne",
        "service_user": None,
        "api_port": 8000,
        "ssh_port": 22,
        "dry_run": False,
        "packages": [],
        "source": {
            "method": "git",
            "repo_url": DEFAULT_REPO_URL,
            "branch": "main",
            "archive_url": None,
            "release_url": None,
        },
        "gost": {
            "version": "2.11.5",
            "arch": None,
            "install_path": "/usr/local/bin/gost",
            "url": None,
        },
        "download": {
            "timeout": 300,
        },
        "admin": {
            "username": "admin",
            "password": "admin123",
        },
        "firewall": {
            "enabled": False,
            "ipv6": True,
        },
        "restore_job": {
            "enabled": False,
            "user": None,
        },
        "service": {
            "description": "Sublyne Tunnel Service",
            "restart_sec": 5,
        },
        "health": {
            "initial_delay": 3,
            "attempts": 5,
            "interval": 2,
            "journal_lines": 50,
        },
        "paths": {
            "systemd_dir": "/etc/systemd/system",
            "iptables_dir": "/etc/iptables",
            "tmp_dir": "/tmp",
        },
    }


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two configuration mappings; nested mappings merge key by key."""

    result = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_config(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def apply_env_overrides(raw: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    env = os.environ if environ is None else environ
    for var, (section, key, conv) in ENV_OVERRIDES.items():
        value = env.get(var)
        if not value:
            continue
        try:
            converted = conv(value)
        except ValueError as e:
            raise ConfigError(f"{var}={value!r} is not a valid {conv.__name__}") from e
        target = raw.setdefault(section, {}) if section else raw
        target[key] = converted
    return raw


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    return raw.get(name) or {}


def _default(value: Any, fallback: Any) -> Any:
    # Only a missing key falls back; an explicit 0 must reach validate().
    return fallback if value is None else value


@dataclass(frozen=True)
class InstallConfig:
    raw: Dict[str, Any]

    @property
    def app_name(self) -> str:
        return str(self.raw.get("app_name") or "sublyne")

    @property
    def service_name(self) -> str:
        return self.app_name

    @property
    def unit_name(self) -> str:
        return f"{self.service_name}.service"

    @property
    def service_user(self) -> str:
        return str(self.raw.get("service_user") or self.app_name)

    @property
    def app_dir(self) -> str:
        return str(self.raw.get("app_dir") or f"/opt/{self.app_name}")

    @property
    def backend_dir(self) -> str:
        return posixpath.join(self.app_dir, "backend")

    @property
    def venv_dir(self) -> str:
        return posixpath.join(self.app_dir, "venv")

    @property
    def venv_python(self) -> str:
        return posixpath.join(self.venv_dir, "bin", "python")

    @property
    def venv_pip(self) -> str:
        return posixpath.join(self.venv_dir, "bin", "pip")

    @property
    def database_dir(self) -> str:
        return posixpath.join(self.app_dir, "database")

    @property
    def database_path(self) -> str:
        return posixpath.join(self.database_dir, f"{self.app_name}.db")

    @property
    def api_port(self) -> int:
        return int(_default(self.raw.get("api_port"), 8000))

    @property
    def ssh_port(self) -> int:
        return int(_default(self.raw.get("ssh_port"), 22))

    @property
    def dry_run(self) -> bool:
        return bool(self.raw.get("dry_run", False))

    @property
    def extra_packages(self) -> List[str]:
        return [str(p).strip() for p in (self.raw.get("packages") or []) if str(p).strip()]

    # source
    @property
    def source_method(self) -> str:
        return str(_section(self.raw, "source").get("method") or "git")

    @property
    def repo_url(self) -> str:
        return str(_section(self.raw, "source").get("repo_url") or DEFAULT_REPO_URL)

    @property
    def branch(self) -> str:
        return str(_section(self.raw, "source").get("branch") or "main")

    @property
    def _repo_web_url(self) -> str:
        url = self.repo_url.rstrip("/")
        return url[: -len(".git")] if url.endswith(".git") else url

    @property
    def archive_url(self) -> str:
        explicit = _section(self.raw, "source").get("archive_url")
        if explicit:
            return str(explicit)
        return f"{self._repo_web_url}/archive/refs/heads/{self.branch}.zip"

    @property
    def release_url(self) -> str:
        explicit = _section(self.raw, "source").get("release_url")
        if explicit:
            return str(explicit)
        return f"{self._repo_web_url}/releases/latest/download/{self.app_name}.zip"

    @property
    def source_url(self) -> str:
        """URL the configured source method will fetch from."""

        return {
            "git": self.repo_url,
            "archive": self.archive_url,
            "release": self.release_url,
        }[self.source_method]

    # gost
    @property
    def gost_version(self) -> str:
        return str(_section(self.raw, "gost").get("version") or "2.11.5")

    @property
    def gost_arch(self) -> Optional[str]:
        arch = _section(self.raw, "gost").get("arch")
        return str(arch) if arch else None

    @property
    def gost_install_path(self) -> str:
        return str(_section(self.raw, "gost").get("install_path") or "/usr/local/bin/gost")

    def gost_url(self, arch: str) -> str:
        explicit = _section(self.raw, "gost").get("url")
        if explicit:
            return str(explicit)
        return GOST_URL_TEMPLATE.format(version=self.gost_version, arch=arch)

    @property
    def download_timeout(self) -> Optional[int]:
        t = _section(self.raw, "download").get("timeout")
        return int(t) if t else None

    # admin credentials reported in the summary
    @property
    def admin_username(self) -> str:
        return str(_section(self.raw, "admin").get("username") or "admin")

    @property
    def admin_password(self) -> str:
        return str(_section(self.raw, "admin").get("password") or "admin123")

    # firewall / restore job
    @property
    def firewall_enabled(self) -> bool:
        return bool(_section(self.raw, "firewall").get("enabled", False))

    @property
    def firewall_ipv6(self) -> bool:
        return bool(_section(self.raw, "firewall").get("ipv6", True))

    @property
    def restore_job_enabled(self) -> bool:
        return bool(_section(self.raw, "restore_job").get("enabled", False))

    @property
    def restore_job_user(self) -> str:
        return str(_section(self.raw, "restore_job").get("user") or "root")

    # service
    @property
    def service_description(self) -> str:
        return str(_section(self.raw, "service").get("description") or "Sublyne Tunnel Service")

    @property
    def restart_sec(self) -> int:
        return int(_section(self.raw, "service").get("restart_sec") or 5)

    # health check
    @property
    def health_initial_delay(self) -> float:
        return float(_section(self.raw, "health").get("initial_delay", 3))

    @property
    def health_attempts(self) -> int:
        return max(1, int(_section(self.raw, "health").get("attempts", 5)))

    @property
    def health_interval(self) -> float:
        return float(_section(self.raw, "health").get("interval", 2))

    @property
    def journal_lines(self) -> int:
        return int(_section(self.raw, "health").get("journal_lines", 50))

    # host paths
    @property
    def systemd_dir(self) -> str:
        return str(_section(self.raw, "paths").get("systemd_dir") or "/etc/systemd/system")

    @property
    def iptables_dir(self) -> str:
        return str(_section(self.raw, "paths").get("iptables_dir") or "/etc/iptables")

    @property
    def tmp_dir(self) -> str:
        return str(_section(self.raw, "paths").get("tmp_dir") or "/tmp")

    def validate(self) -> "InstallConfig":
        if self.source_method not in SOURCE_METHODS:
            raise ConfigError(
                f"source.method must be one of {', '.join(SOURCE_METHODS)} (got {self.source_method!r})"
            )
        for name in ("api_port", "ssh_port"):
            try:
                port = getattr(self, name)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"{name} must be an integer") from e
            if not 1 <= port <= 65535:
                raise ConfigError(f"{name} out of range: {port}")
        for name, key in (
            ("health_initial_delay", "health.initial_delay"),
            ("health_attempts", "health.attempts"),
            ("health_interval", "health.interval"),
            ("journal_lines", "health.journal_lines"),
            ("restart_sec", "service.restart_sec"),
            ("download_timeout", "download.timeout"),
        ):
            try:
                value = getattr(self, name)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"{key} must be a number") from e
            if value is not None and value < 0:
                raise ConfigError(f"{key} must not be negative (got {value})")
        if not posixpath.isabs(self.app_dir):
            raise ConfigError(f"app_dir must be an absolute path (got {self.app_dir!r})")
        if not isinstance(self.raw.get("packages") or [], list):
            raise ConfigError("packages must be a list of strings")
        return self


def load_config_file(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {path}")

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError("installer config must be YAML")

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping/object")
    return raw


def resolve_config(
    *,
    config_path: Optional[str] = None,
    saved: Optional[Dict[str, Any]] = None,
    overrides: Optional[Dict[str, Any]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Build the effective raw config.

    Precedence (lowest first): defaults, config saved in a previous run's
    state, YAML file, environment, command-line overrides.
    """

    raw = default_config()
    if saved:
        raw = merge_config(raw, saved)
    if config_path:
        raw = merge_config(raw, load_config_file(config_path))
    raw = apply_env_overrides(raw, environ)
    if overrides:
        raw = merge_config(raw, overrides)

    InstallConfig(raw=raw).validate()
    return raw
