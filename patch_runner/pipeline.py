from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

import requests

from .config import DebugOverrides, RunnerConfig
from .errors import AlreadyRunning, PermissionDenied, RunCancelled, RunnerError
from .interaction import Action, DecisionRequest, Elevator, RunnerUI, ask
from .lib.api import PatchKitClient
from .lib.datfile import LauncherData
from .lib.instance import SingleInstanceGuard
from .lib.launcher import HandOff, LaunchSequencer
from .lib.ledger import VersionLedger
from .lib.lockfile import LockfileManager
from .lib.manifests import Manifest
from .lib.net import NetworkStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunCtx:
    """Collaborators for one run. Everything touching the outside world is injectable."""

    cfg: RunnerConfig
    ui: RunnerUI
    overrides: DebugOverrides = field(default_factory=DebugOverrides)
    session: Optional[requests.Session] = None
    sleep: Callable[[float], None] = time.sleep
    client: Optional[PatchKitClient] = None
    launcher: Optional[LaunchSequencer] = None
    elevate: Optional[Elevator] = None


@dataclass
class RunState:
    overrides: DebugOverrides = field(default_factory=DebugOverrides)
    current_step: Optional[str] = None
    guard: Optional[SingleInstanceGuard] = None
    launcher_data: Optional[LauncherData] = None
    lockfile: Optional[LockfileManager] = None
    # True while this run created the lockfile and has not handed it off.
    lockfile_owned: bool = False
    network_status: Optional[NetworkStatus] = None
    exedir: Optional[Path] = None
    installdir: Optional[Path] = None
    ledger: Optional[VersionLedger] = None
    previous_files: List[Path] = field(default_factory=list)
    version: Optional[str] = None
    upgraded: bool = False
    manifest: Optional[Manifest] = None
    target: Optional[str] = None
    argv: List[str] = field(default_factory=list)
    handoff: Optional[HandOff] = None
    elevated: bool = False


class Step(Protocol):
    """A single orchestration step. Steps run strictly in order."""

    step_id: str

    def run(self, ctx: RunCtx, state: RunState) -> RunState:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: RunState
    ran_steps: List[str]


def _rollback_lockfile(state: RunState) -> None:
    if state.lockfile is None or not state.lockfile_owned:
        return
    logger.info("Rolling back lockfile %s (never handed off)", state.lockfile.path)
    try:
        state.lockfile.delete()
    except RunnerError as e:
        logger.error("Lockfile rollback failed: %s", e)
    state.lockfile_owned = False


def _surface(ctx: RunCtx, state: RunState, error: RunnerError) -> None:
    if isinstance(error, RunCancelled):
        # The user picked this outcome in an earlier decision.
        return

    if isinstance(error, PermissionDenied):
        if ctx.elevate is not None:
            request = DecisionRequest(
                title=error.title,
                description=f"{error}\n\nRetry restarts the launcher with administrator rights.",
                actions=(Action.RETRY, Action.EXIT),
            )
            if ask(ctx.ui, request) == Action.RETRY and ctx.elevate():
                logger.info("Elevated runner started; ending this run")
                state.elevated = True
            return
        request = DecisionRequest(
            title=error.title,
            description=f"{error}\n\nRestart the launcher with administrator rights.",
            actions=(Action.EXIT,),
        )
        ask(ctx.ui, request)
        return

    ask(ctx.ui, DecisionRequest.for_error(error, (Action.EXIT,)))


def run_pipeline(*, ctx: RunCtx, state: RunState, steps: Sequence[Step]) -> PipelineResult:
    """Run steps in order; the first failure stops the run.

    On failure the lockfile created by this run is removed (ownership was
    never handed off), the error is logged and surfaced to the UI, and then
    re-raised. Extracted files and the ledger are left as they are.
    """

    ran: List[str] = []

    try:
        for step in steps:
            state.current_step = step.step_id
            logger.info("Running step %s", step.step_id)
            state = step.run(ctx, state)
            ran.append(step.step_id)
    except RunnerError as e:
        if isinstance(e, AlreadyRunning):
            logger.warning("%s", e)
        else:
            logger.error("Step %s failed: %s: %s", state.current_step, type(e).__name__, e)
        _rollback_lockfile(state)
        _surface(ctx, state, e)
        if state.elevated:
            return PipelineResult(state=state, ran_steps=ran)
        raise
    except Exception as e:
        logger.exception("Unexpected failure in step %s", state.current_step)
        _rollback_lockfile(state)
        request = DecisionRequest(
            title=RunnerError.title,
            description=f"Unexpected error in step {state.current_step}: {type(e).__name__}: {e}",
            actions=(Action.EXIT,),
        )
        ask(ctx.ui, request)
        raise

    state.current_step = None
    return PipelineResult(state=state, ran_steps=ran)
