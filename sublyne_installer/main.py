from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, Mapping, Optional

from . import __version__
from . import console
from .config import SOURCE_METHODS, resolve_config
from .errors import InstallerError, ServiceStartError
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import Step, run_pipeline
from .state_store import ensure_defaults, load_state, save_state
from .steps import (
    ConfigureFirewallStep,
    ConfigureServiceStep,
    CreateUserStep,
    FetchSourceStep,
    HealthCheckStep,
    InitDatabaseStep,
    InstallGostStep,
    InstallPackagesStep,
    InstallRestoreJobStep,
    PreflightStep,
    PythonEnvStep,
    StartServiceStep,
    SummaryStep,
)

logger = logging.getLogger(__name__)


DEFAULT_STATE_PATH = "/var/lib/sublyne-installer/state.json"


def build_steps():
    return [
        PreflightStep(),
        InstallPackagesStep(),
        InstallGostStep(),
        CreateUserStep(),
        FetchSourceStep(),
        PythonEnvStep(),
        InitDatabaseStep(),
        ConfigureServiceStep(),
        ConfigureFirewallStep(),
        InstallRestoreJobStep(),
        StartServiceStep(),
        HealthCheckStep(),
        SummaryStep(),
    ]


def _announce(index: int, total: int, step: Step, skipped: bool) -> None:
    console.step(index, total, step.title, skipped=skipped)


def run(
    *,
    state_path: str = DEFAULT_STATE_PATH,
    log_path: str = DEFAULT_LOG_PATH,
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    force: bool = False,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Run the installer pipeline, persisting state for resume.

    A dry run reads the existing state but never writes it back, so its
    "completed" marks cannot make a later real run skip work.
    """

    actual_log_path = configure_logging(log_path=log_path)

    state = ensure_defaults(load_state(state_path))
    saved = dict(state.get("config") or {})
    saved.pop("dry_run", None)
    state["config"] = resolve_config(
        config_path=config_path,
        saved=saved,
        overrides=overrides,
        environ=dict(environ) if environ is not None else None,
    )
    dry_run = bool(state["config"].get("dry_run", False))

    paths = state.setdefault("execution", {}).setdefault("paths", {})
    paths["log_path_requested"] = log_path
    paths["log_path_actual"] = actual_log_path
    state["execution"]["summary"] = {}

    steps = build_steps()

    try:
        result = run_pipeline(
            state=state,
            steps=steps,
            start_at=start_at,
            stop_after=stop_after,
            force=force,
            on_step=_announce,
        )
        state = result.state
        state.setdefault("execution", {}).setdefault("summary", {})["ran_steps"] = result.ran_steps
        state.setdefault("execution", {}).setdefault("summary", {})["skipped_steps"] = result.skipped_steps
        return state
    except Exception as e:
        logger.exception("Installer failed")
        state.setdefault("execution", {}).setdefault("errors", []).append(
            {
                "step": (state.get("execution") or {}).get("current_step"),
                "error": str(e),
            }
        )
        raise
    finally:
        if dry_run:
            logger.info("Dry run: state not saved to %s", state_path)
        else:
            save_state(state_path, state)


def _overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    o: Dict[str, Any] = {}

    def put(section: Optional[str], key: str, value: Any) -> None:
        if value is None:
            return
        (o.setdefault(section, {}) if section else o)[key] = value

    put(None, "app_dir", args.app_dir)
    put(None, "api_port", args.api_port)
    put(None, "dry_run", True if args.dry_run else None)
    put("source", "method", args.source)
    put("source", "repo_url", args.repo_url)
    put("source", "branch", args.branch)
    put("gost", "version", args.gost_version)
    put("gost", "install_path", args.gost_path)
    put("firewall", "enabled", args.firewall)
    put("restore_job", "enabled", args.restore_job)
    return o


def main(argv: Optional[list[str]] = None) -> int:
    step_ids = [s.step_id for s in build_steps()]

    p = argparse.ArgumentParser(prog="sublyne-installer", description="Provision this host for Sublyne.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--config", default=None, help="Installer config (YAML)")
    p.add_argument("--state", default=DEFAULT_STATE_PATH, help="Path to installer state (json|yaml)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to installer log")
    p.add_argument("--start-at", default=None, help="Start at step_id (e.g. 40_fetch_source)")
    p.add_argument("--stop-after", default=None, help="Stop after step_id")
    p.add_argument("--force", action="store_true", help="Re-run steps even if marked completed")
    p.add_argument("--dry-run", action="store_true", help="Log commands without executing them")
    p.add_argument("--list-steps", action="store_true", help="Print step ids and exit")
    p.add_argument("--source", choices=SOURCE_METHODS, default=None, help="How to fetch the application")
    p.add_argument("--repo-url", default=None)
    p.add_argument("--branch", default=None)
    p.add_argument("--app-dir", default=None)
    p.add_argument("--api-port", type=int, default=None)
    p.add_argument("--gost-version", default=None)
    p.add_argument("--gost-path", default=None, help="Where to install the gost binary")
    p.add_argument("--firewall", action=argparse.BooleanOptionalAction, default=None,
                   help="Apply the default-drop INPUT policy")
    p.add_argument("--restore-job", action=argparse.BooleanOptionalAction, default=None,
                   help="Install the @reboot traffic restore job")

    args = p.parse_args(argv)

    if args.list_steps:
        for sid in step_ids:
            print(sid)
        return 0

    for opt in ("start_at", "stop_after"):
        value = getattr(args, opt)
        if value is not None and value not in step_ids:
            p.error(f"--{opt.replace('_', '-')}: unknown step {value!r} (see --list-steps)")

    console.banner("Sublyne Installation")
    try:
        state = run(
            state_path=args.state,
            log_path=args.log,
            config_path=args.config,
            overrides=_overrides_from_args(args),
            start_at=args.start_at,
            stop_after=args.stop_after,
            force=args.force,
        )
    except ServiceStartError as e:
        console.journal(e.journal)
        console.error(str(e))
        return 1
    except InstallerError as e:
        console.error(str(e))
        return 1

    exe = state.get("execution") or {}
    ran = (exe.get("summary") or {}).get("ran_steps") or []
    health = (exe.get("decisions") or {}).get("health") or {}
    if "90_health_check" in ran and not health.get("port_listening", True):
        console.warning("Service is active but the API port is not answering yet")

    access = (exe.get("summary") or {}).get("access")
    if access:
        console.summary(access, log_path=(exe.get("paths") or {}).get("log_path_actual"))
    else:
        console.success("Stopped after requested step")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
