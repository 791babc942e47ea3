from __future__ import annotations

import logging
import os
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import SpawnFailed
from .command import spawn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HandOff:
    executable: Path
    argv: List[str]
    pid: int
    exit_code: Optional[int] = None


def locate_executable(executable: str | Path, *, cwd: Optional[Path] = None) -> Path:
    """Absolute path for `executable`: as given, relative to cwd, or from PATH."""

    p = Path(executable)
    if p.is_absolute():
        return p
    candidate = (cwd or Path.cwd()) / p
    if candidate.exists():
        return candidate
    found = shutil.which(str(p))
    if found:
        return Path(found)
    return candidate


def _is_app_bundle(p: Path) -> bool:
    return sys.platform == "darwin" and p.suffix == ".app" and p.is_dir()


class LaunchSequencer:
    """Validates the resolved target and hands control to it."""

    def __init__(self, *, cwd: Optional[Path] = None, wait_for_exit: bool = False):
        self.cwd = cwd
        self.wait_for_exit = wait_for_exit

    def validate(self, executable: str | Path) -> Path:
        path = locate_executable(executable, cwd=self.cwd)
        if not path.exists():
            raise SpawnFailed("executable not found", str(path))
        if _is_app_bundle(path):
            return path
        if not path.is_file():
            raise SpawnFailed("not a regular file", str(path))
        if os.name != "nt" and not os.access(path, os.X_OK):
            raise SpawnFailed("permission denied (not executable)", str(path))
        return path

    def launch(self, executable: str | Path, argv: Sequence[str]) -> HandOff:
        path = self.validate(executable)
        if _is_app_bundle(path):
            cmd = ["/usr/bin/open", str(path)]
            if argv:
                cmd += ["--args", *argv]
        else:
            cmd = [str(path), *argv]

        cwd = str(self.cwd) if self.cwd else None
        try:
            proc = spawn(cmd, cwd=cwd, detach=not self.wait_for_exit)
        except OSError as e:
            raise SpawnFailed(e.strerror or str(e), str(path)) from e

        exit_code: Optional[int] = None
        if self.wait_for_exit:
            exit_code = proc.process.wait()
            logger.info("Launcher exited with status %s", exit_code)
        return HandOff(executable=path, argv=list(argv), pid=proc.pid, exit_code=exit_code)
