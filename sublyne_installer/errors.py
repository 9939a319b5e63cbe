from __future__ import annotations

from typing import Sequence


class InstallerError(RuntimeError):
    """Base class for failures that abort an installer run."""


class ConfigError(InstallerError):
    pass


class PreflightError(InstallerError):
    pass


class CommandError(InstallerError):
    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        detail = f"\n{stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"Command failed ({returncode}): {' '.join(self.argv)}{detail}")


class DownloadError(InstallerError):
    pass


class SourceError(InstallerError):
    pass


class ServiceError(InstallerError):
    pass


class ServiceStartError(ServiceError):
    def __init__(self, message: str, journal: str = "") -> None:
        super().__init__(message)
        self.journal = journal
