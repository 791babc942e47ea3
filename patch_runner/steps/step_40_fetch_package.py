from __future__ import annotations

import logging

from ..errors import DownloadFailed, NetworkUnreachable, PermissionDenied
from ..lib.api import DownloadProgress, PatchKitClient
from ..lib.assets import extract_zip
from ..lib.env import NAMES
from ..lib.ledger import VersionInfo, VersionLedger
from ..lib.net import NetworkStatus
from ..pipeline import RunCtx, RunState

logger = logging.getLogger(__name__)


class FetchPackageStep:
    """Bring the launcher package up to date, or reuse the installed one."""

    step_id = "40_fetch_package"

    def _client(self, ctx: RunCtx, state: RunState) -> PatchKitClient:
        if ctx.client is not None:
            return ctx.client
        api_url = state.overrides.effective_api_url(ctx.cfg.api_url)
        return PatchKitClient(api_url, session=ctx.session, timeout_s=ctx.cfg.network_timeout_s)

    def run(self, ctx: RunCtx, state: RunState) -> RunState:
        data = state.launcher_data
        exedir = state.exedir
        if data is None or exedir is None or state.installdir is None:
            raise RuntimeError("launcher data must be loaded before fetching the package")

        ledger = VersionLedger(exedir / NAMES.ledger)
        state.ledger = ledger
        state.previous_files = list(ledger.previous_files)
        manifest_path = exedir / NAMES.manifest

        if state.network_status == NetworkStatus.OFFLINE:
            if ledger.version is None or not manifest_path.exists():
                raise NetworkUnreachable("Offline and no launcher is installed yet; connect to the internet and retry")
            logger.info("Offline: using installed version %s", ledger.version.version)
            state.version = ledger.version.version
            return state

        client = self._client(ctx, state)
        ctx.ui.set_status("Fetching latest version...")
        version = client.get_latest_version(data.patcher_secret)
        state.version = version

        if not ledger.needs_update(version, data.patcher_secret) and manifest_path.exists():
            logger.info("Installed version %s is current", version)
            return state

        ctx.ui.set_status("Getting download URLs...")
        urls = client.get_content_urls(data.patcher_secret, version)
        if not urls:
            raise DownloadFailed(f"No content URLs published for version {version}")

        archive = exedir.with_name(exedir.name + "-" + NAMES.download)
        try:
            ctx.ui.set_status("Downloading launcher...")

            def progress(p: DownloadProgress) -> None:
                ctx.ui.set_progress(p.fraction, p.speed_kbps)

            client.download_file(urls[0].url, archive, progress=progress)

            ctx.ui.set_status("Extracting launcher...")
            files = extract_zip(archive, exedir)
            state.installdir.mkdir(parents=True, exist_ok=True)
        except PermissionError as e:
            raise PermissionDenied(f"Cannot write {e.filename or exedir}: {e.strerror or e}") from e
        finally:
            archive.unlink(missing_ok=True)

        ledger.record_install(files, VersionInfo(patcher_secret=data.patcher_secret, version=version))
        state.upgraded = bool(state.previous_files)
        return state
