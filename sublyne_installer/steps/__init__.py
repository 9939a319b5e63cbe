from .step_00_preflight import PreflightStep
from .step_10_install_packages import InstallPackagesStep
from .step_20_install_gost import InstallGostStep
from .step_30_create_user import CreateUserStep
from .step_40_fetch_source import FetchSourceStep
from .step_50_python_env import PythonEnvStep
from .step_60_init_database import InitDatabaseStep
from .step_70_configure_service import ConfigureServiceStep
from .step_75_configure_firewall import ConfigureFirewallStep
from .step_80_install_restore_job import InstallRestoreJobStep
from .step_85_start_service import StartServiceStep
from .step_90_health_check import HealthCheckStep
from .step_95_summary import SummaryStep

__all__ = [
    "PreflightStep",
    "InstallPackagesStep",
    "InstallGostStep",
    "CreateUserStep",
    "FetchSourceStep",
    "PythonEnvStep",
    "InitDatabaseStep",
    "ConfigureServiceStep",
    "ConfigureFirewallStep",
    "InstallRestoreJobStep",
    "StartServiceStep",
    "HealthCheckStep",
    "SummaryStep",
]
