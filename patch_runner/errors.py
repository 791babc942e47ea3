from __future__ import annotations

from typing import Optional


class RunnerError(Exception):
    """Base for every failure the runner surfaces to the user."""

    title = "Runner error"
    exit_code = 1


class AlreadyRunning(RunnerError):
    title = "Already running"
    exit_code = 3


class RunCancelled(RunnerError):
    title = "Cancelled"
    exit_code = 2


class LockfilePresent(RunnerError):
    title = "Launcher is already running"

    def __init__(self, age_s: float, path: Optional[str] = None):
        self.age_s = age_s
        self.path = path
        where = f" at {path}" if path else ""
        super().__init__(f"A lockfile{where} was created {age_s:.0f}s ago by another launcher")


class NetworkUnreachable(RunnerError):
    title = "No network connection"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class DownloadFailed(RunnerError):
    title = "Download failed"


class ManifestInvalid(RunnerError):
    title = "Invalid manifest"


class PlaceholderUnresolved(ManifestInvalid):
    title = "Unresolved manifest variable"

    def __init__(self, name: str, template: str):
        self.name = name
        self.template = template
        super().__init__(f"Unresolved placeholder {{{name}}} in {template!r}")


class PermissionDenied(RunnerError):
    title = "Permission denied"


class SpawnFailed(RunnerError):
    title = "Failed to start the launcher"

    def __init__(self, reason: str, path: Optional[str] = None):
        self.reason = reason
        self.path = path
        super().__init__(f"{path}: {reason}" if path else reason)


class LauncherDataError(RunnerError):
    title = "Invalid launcher data"
