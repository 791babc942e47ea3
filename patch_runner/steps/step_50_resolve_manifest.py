from __future__ import annotations

import logging

from ..lib.env import NAMES
from ..lib.manifests import load_manifest, resolve_manifest
from ..lib.secret import encode_secret
from ..lib.variables import VariableContext
from ..logging_utils import register_secret
from ..pipeline import RunCtx, RunState

logger = logging.getLogger(__name__)


class ResolveManifestStep:
    step_id = "50_resolve_manifest"

    def run(self, ctx: RunCtx, state: RunState) -> RunState:
        if state.launcher_data is None or state.exedir is None or state.installdir is None:
            raise RuntimeError("launcher data must be loaded before resolving the manifest")
        if state.network_status is None:
            raise RuntimeError("network status must be decided before resolving the manifest")

        manifest = load_manifest(state.exedir / NAMES.manifest)
        state.manifest = manifest

        secret = encode_secret(state.launcher_data.app_secret)
        register_secret(secret)
        context = VariableContext(
            exedir=str(state.exedir),
            installdir=str(state.installdir),
            secret=secret,
            lockfile=str(ctx.cfg.lockfile),
            network_status=state.network_status.value,
        )
        state.target, state.argv = resolve_manifest(manifest, context)
        logger.info("Resolved target %s (%d arguments)", state.target, len(state.argv))
        return state
