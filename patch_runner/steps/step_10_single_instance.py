from __future__ import annotations

import logging

from ..errors import AlreadyRunning
from ..lib.instance import SingleInstanceGuard
from ..pipeline import RunCtx, RunState

logger = logging.getLogger(__name__)


class SingleInstanceStep:
    step_id = "10_single_instance"

    def run(self, ctx: RunCtx, state: RunState) -> RunState:
        guard = SingleInstanceGuard(ctx.cfg.guard_file)
        if not guard.acquire():
            # Nothing else may happen: no lockfile check, no network probe.
            raise AlreadyRunning("Another instance of the runner is already running")
        state.guard = guard
        return state
