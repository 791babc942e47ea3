from __future__ import annotations

import logging

from ..lib.launcher import LaunchSequencer
from ..pipeline import RunCtx, RunState

logger = logging.getLogger(__name__)


class LaunchStep:
    step_id = "70_launch"

    def run(self, ctx: RunCtx, state: RunState) -> RunState:
        if state.target is None:
            raise RuntimeError("manifest must be resolved before launching")

        launcher = ctx.launcher or LaunchSequencer(cwd=ctx.cfg.base_dir, wait_for_exit=ctx.cfg.wait_for_exit)
        ctx.ui.set_status("Launching...")
        state.handoff = launcher.launch(state.target, state.argv)

        # The launcher received the lockfile path and owns it from here on.
        state.lockfile_owned = False
        ctx.ui.set_progress(1.0)
        logger.info("Handed off to pid %s", state.handoff.pid)
        return state
