from __future__ import annotations

import argparse
import logging
import time
from typing import Callable, Mapping, Optional

import requests

from .config import DebugOverrides, load_runner_config
from .errors import RunnerError
from .interaction import ConsoleUI, Elevator, HeadlessUI, RunnerUI
from .lib.api import PatchKitClient
from .lib.launcher import LaunchSequencer
from .logging_utils import configure_logging
from .pipeline import RunCtx, RunState, run_pipeline
from .steps import (
    CleanupPreviousStep,
    ConfirmOverridesStep,
    FetchPackageStep,
    LaunchStep,
    LoadLauncherDataStep,
    LockfileStep,
    NetworkStep,
    ResolveManifestStep,
    SingleInstanceStep,
)

logger = logging.getLogger(__name__)


def build_steps():
    return [
        SingleInstanceStep(),
        ConfirmOverridesStep(),
        LoadLauncherDataStep(),
        LockfileStep(),
        NetworkStep(),
        FetchPackageStep(),
        ResolveManifestStep(),
        CleanupPreviousStep(),
        LaunchStep(),
    ]


def run(
    *,
    ui: RunnerUI,
    config_path: Optional[str] = None,
    dat_path: Optional[str] = None,
    log_path: Optional[str] = None,
    verbose: bool = False,
    environ: Optional[Mapping[str, str]] = None,
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
    client: Optional[PatchKitClient] = None,
    launcher: Optional[LaunchSequencer] = None,
    elevate: Optional[Elevator] = None,
) -> RunState:
    """Run the runner once: guard, lockfile, network, fetch, manifest, cleanup, launch."""

    cfg = load_runner_config(config_path).with_paths(dat_file=dat_path, log_file=log_path)
    actual_log_path = configure_logging(
        log_path=str(cfg.log_file),
        level=logging.DEBUG if verbose else logging.INFO,
    )
    logger.info("Starting patch runner (log=%s)", actual_log_path)

    ctx = RunCtx(
        cfg=cfg,
        ui=ui,
        overrides=DebugOverrides.from_env(environ),
        session=session or requests.Session(),
        sleep=sleep,
        client=client,
        launcher=launcher,
        elevate=elevate,
    )
    state = RunState()

    try:
        result = run_pipeline(ctx=ctx, state=state, steps=build_steps())
        state = result.state
        logger.info("Runner completed (steps: %s)", ", ".join(result.ran_steps))
        return state
    finally:
        if state.guard is not None:
            state.guard.release()
        ui.close()


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="patch-runner")
    p.add_argument("--config", default=None, help="Path to runner config (yaml)")
    p.add_argument("--dat", default=None, help="Path to the launcher data file")
    p.add_argument("--log", default=None, help="Path to runner log")
    p.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    p.add_argument("--non-interactive", action="store_true", help="Answer decisions without prompting")

    args = p.parse_args(argv)

    ui: RunnerUI = HeadlessUI() if args.non_interactive else ConsoleUI()
    try:
        run(
            ui=ui,
            config_path=args.config,
            dat_path=args.dat,
            log_path=args.log,
            verbose=bool(args.verbose),
        )
    except RunnerError as e:
        return e.exit_code
    except (OSError, ValueError) as e:
        # Unreadable or malformed config file, unwritable log location.
        logger.error("Cannot start the runner: %s: %s", type(e).__name__, e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
