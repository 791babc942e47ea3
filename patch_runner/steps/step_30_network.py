from __future__ import annotations

import logging
from typing import Optional

from ..errors import RunCancelled
from ..interaction import Action, ask
from ..lib.net import NetworkGate, NetworkStatus
from ..pipeline import RunCtx, RunState

logger = logging.getLogger(__name__)


class NetworkStep:
    step_id = "30_network"

    def run(self, ctx: RunCtx, state: RunState) -> RunState:
        cfg = ctx.cfg
        gate = NetworkGate(
            cfg.network_test_url,
            session=ctx.session,
            timeout_s=cfg.network_timeout_s,
            expected_status=cfg.expected_status,
            expected_body=cfg.expected_body,
            max_retries=cfg.max_network_retries,
        )

        if state.overrides.force_offline:
            logger.warning("Offline mode forced by override; skipping the network probe")
            state.network_status = gate.force_offline()
            return state

        ctx.ui.set_status("Checking network connection...")
        action: Optional[Action] = None
        while True:
            outcome = gate.resolve(action)
            if isinstance(outcome, NetworkStatus):
                state.network_status = outcome
                return state
            action = ask(ctx.ui, outcome.request())
            if action == Action.EXIT:
                raise RunCancelled(f"Exited without a network connection ({outcome.error})")
            if action == Action.RETRY:
                ctx.ui.set_status("Retrying network connection...")
