from __future__ import annotations

import logging

from ..config import DebugOverrides
from ..interaction import Action, DecisionRequest, ask
from ..pipeline import RunCtx, RunState

logger = logging.getLogger(__name__)


class ConfirmOverridesStep:
    """Debug overrides only take effect after the user accepts a security warning."""

    step_id = "15_confirm_overrides"

    def run(self, ctx: RunCtx, state: RunState) -> RunState:
        overrides = ctx.overrides
        if not overrides.any_active:
            state.overrides = overrides
            return state

        listed = "\n".join(f"  - {line}" for line in overrides.describe())
        request = DecisionRequest(
            title="Security warning",
            description=(
                "Debug overrides are set in the environment:\n"
                f"{listed}\n"
                "They can point the runner at untrusted servers or bypass its safety checks. "
                "Continue to apply them, or Cancel to ignore them."
            ),
            actions=(Action.CONTINUE, Action.CANCEL),
        )
        if ask(ctx.ui, request) == Action.CONTINUE:
            logger.warning("Debug overrides accepted: %s", overrides.describe())
            state.overrides = overrides
        else:
            logger.info("Debug overrides refused; continuing without them")
            state.overrides = DebugOverrides()
        return state
