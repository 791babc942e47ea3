from __future__ import annotations

import logging

from ..pipeline import RunCtx, RunState

logger = logging.getLogger(__name__)


class CleanupPreviousStep:
    step_id = "60_cleanup_previous"

    def run(self, ctx: RunCtx, state: RunState) -> RunState:
        if not state.upgraded or state.ledger is None:
            return state

        # Files the new version re-created are part of the current install.
        state.ledger.cleanup(state.previous_files, keep=state.ledger.current_files)
        return state
