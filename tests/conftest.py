from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

from sublyne_installer.config import resolve_config
from sublyne_installer.lib import command
from sublyne_installer.state_store import ensure_defaults


class FakeRunner:
    """Stands in for subprocess.run; answers by argv prefix, records every call."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.inputs: List[Optional[str]] = []
        self.cwds: List[Optional[str]] = []
        self._responses: List[tuple] = []

    def respond(
        self,
        *prefix: str,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        effect: Optional[Callable[[List[str]], None]] = None,
    ) -> None:
        # Later registrations win over earlier ones.
        self._responses.insert(0, (list(prefix), returncode, stdout, stderr, effect))

    def __call__(self, argv, input=None, cwd=None, **kwargs: Any) -> subprocess.CompletedProcess:
        argv = list(argv)
        self.calls.append(argv)
        self.inputs.append(input)
        self.cwds.append(cwd)
        for prefix, rc, out, err, effect in self._responses:
            if argv[: len(prefix)] == prefix:
                if effect is not None:
                    effect(argv)
                return subprocess.CompletedProcess(argv, rc, out, err)
        return subprocess.CompletedProcess(argv, 0, "", "")

    def ran(self, *prefix: str) -> List[List[str]]:
        return [c for c in self.calls if c[: len(prefix)] == list(prefix)]


@pytest.fixture
def fake_run(monkeypatch) -> FakeRunner:
    runner = FakeRunner()
    monkeypatch.setattr(command.subprocess, "run", runner)
    return runner


@pytest.fixture
def raw_config(tmp_path: Path) -> Dict[str, Any]:
    """Effective config with every host path redirected under tmp_path."""

    return resolve_config(
        overrides={
            "app_dir": str(tmp_path / "opt" / "sublyne"),
            "gost": {"install_path": str(tmp_path / "bin" / "gost")},
            "download": {"timeout": 0},
            "health": {"initial_delay": 0, "attempts": 2, "interval": 0},
            "paths": {
                "systemd_dir": str(tmp_path / "systemd"),
                "iptables_dir": str(tmp_path / "iptables"),
                "tmp_dir": str(tmp_path / "tmp"),
            },
        },
        environ={},
    )


@pytest.fixture
def state(raw_config) -> Dict[str, Any]:
    s = ensure_defaults({})
    s["config"] = raw_config
    s["host"] = {"arch": "amd64", "debian_family": True}
    return s
