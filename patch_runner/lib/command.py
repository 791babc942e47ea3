from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Spawned:
    argv: list[str]
    pid: int
    process: subprocess.Popen


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def spawn(
    argv: Sequence[str],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    detach: bool = True,
) -> Spawned:
    """Start a process from a literal argument vector (never through a shell).

    With detach=True the child gets its own session/process group so it
    outlives the runner.
    """

    argv_list = list(argv)
    logger.info("SPAWN %s", _fmt_argv(argv_list))

    kwargs: dict = {}
    if detach:
        if os.name == "nt":
            kwargs["creationflags"] = getattr(subprocess, "DETACHED_PROCESS", 0) | getattr(
                subprocess, "CREATE_NEW_PROCESS_GROUP", 0
            )
        else:
            kwargs["start_new_session"] = True

    p = subprocess.Popen(
        argv_list,
        cwd=cwd,
        env=dict(os.environ, **(env or {})),
        stdin=subprocess.DEVNULL,
        close_fds=True,
        **kwargs,
    )
    logger.info("Started pid %s", p.pid)
    return Spawned(argv=argv_list, pid=p.pid, process=p)
