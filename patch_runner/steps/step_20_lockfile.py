from __future__ import annotations

import logging
from typing import Optional

from ..errors import RunCancelled
from ..interaction import Action, ask
from ..lib.lockfile import Acquired, LockfileManager
from ..pipeline import RunCtx, RunState

logger = logging.getLogger(__name__)


class LockfileStep:
    step_id = "20_lockfile"

    def run(self, ctx: RunCtx, state: RunState) -> RunState:
        cfg = ctx.cfg
        if state.overrides.skip_lockfile:
            logger.warning("Lockfile check disabled by override; %s is not created", cfg.lockfile)
            return state

        manager = LockfileManager(cfg.lockfile, max_age_s=cfg.lockfile_max_age_s)
        action: Optional[Action] = None
        waits = 0

        while True:
            outcome = manager.resolve(action)
            if isinstance(outcome, Acquired):
                state.lockfile = manager
                state.lockfile_owned = True
                return state

            # Every pass goes back to the user, so Cancel is always reachable.
            action = ask(ctx.ui, outcome.request())
            if action == Action.CANCEL:
                raise RunCancelled("Cancelled while another launcher holds the lockfile")
            if action == Action.WAIT:
                waits += 1
                if waits > cfg.lockfile_max_waits:
                    raise outcome.error
                ctx.ui.set_status("Waiting for the other launcher to finish...")
                ctx.sleep(cfg.lockfile_wait_s)
