from __future__ import annotations

import logging

from ..lib.datfile import load_launcher_data
from ..logging_utils import register_secret
from ..pipeline import RunCtx, RunState

logger = logging.getLogger(__name__)


class LoadLauncherDataStep:
    step_id = "18_load_launcher_data"

    def run(self, ctx: RunCtx, state: RunState) -> RunState:
        path = ctx.cfg.dat_file
        logger.info("Reading launcher data from %s", path)
        data = load_launcher_data(path)
        register_secret(data.patcher_secret)
        register_secret(data.app_secret)
        state.launcher_data = data
        state.exedir = ctx.cfg.patcher_dir(data.slug)
        state.installdir = ctx.cfg.install_dir(data.slug)
        logger.info("App slug %s, patcher dir %s, install dir %s", data.slug, state.exedir, state.installdir)
        return state
