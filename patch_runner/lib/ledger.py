from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from ..state_store import load_state, save_state

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionInfo:
    patcher_secret: str
    version: str

    @classmethod
    def from_dict(cls, data: object) -> Optional["VersionInfo"]:
        if not isinstance(data, dict):
            return None
        secret, version = data.get("patcher_secret"), data.get("version")
        if not isinstance(secret, str) or not isinstance(version, str):
            return None
        return cls(patcher_secret=secret, version=version)

    def to_dict(self) -> dict:
        return {"patcher_secret": self.patcher_secret, "version": self.version}


@dataclass
class CleanupReport:
    removed: List[Path] = field(default_factory=list)
    kept_non_empty: List[Path] = field(default_factory=list)
    missing: List[Path] = field(default_factory=list)
    failed: List[Path] = field(default_factory=list)


def plan_cleanup(previous: Sequence[Path]) -> List[Path]:
    """Removal order for a previous install: newest first."""

    return list(reversed(previous))


class VersionLedger:
    """Persisted record of the installed version and the files it created.

    The previous install is loaded once at construction and stays available
    for this run's cleanup even after record_install() replaces it on disk.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        data = load_state(self.path)
        self.version: Optional[VersionInfo] = VersionInfo.from_dict(data.get("version"))
        raw_files = data.get("installed_files") or []
        if not isinstance(raw_files, list):
            logger.warning("Ignoring malformed installed_files in %s", self.path)
            raw_files = []
        self.previous_files: List[Path] = [Path(str(p)) for p in raw_files]
        self.current_files: List[Path] = list(self.previous_files)
        logger.debug("Loaded ledger %s: version=%s files=%d", self.path, self.version, len(self.previous_files))

    def needs_update(self, version: str, patcher_secret: str) -> bool:
        # Literal comparison: any difference in either field means reinstall.
        if self.version is None:
            return True
        return self.version.version != version or self.version.patcher_secret != patcher_secret

    def record_install(self, files: Iterable[Path], version: VersionInfo) -> None:
        self.current_files = [Path(p).absolute() for p in files]
        self.version = version
        save_state(
            self.path,
            {
                "version": version.to_dict(),
                "installed_files": [str(p) for p in self.current_files],
            },
        )
        logger.info("Recorded install of %s (%d files)", version.version, len(self.current_files))

    def cleanup(self, previous: Sequence[Path], *, keep: Iterable[Path] = ()) -> CleanupReport:
        """Remove a previous install in reverse creation order.

        Paths in `keep` (the files the new install just wrote) are skipped,
        missing paths count as already clean and non-empty directories stay.
        """

        keep_set = {Path(p).absolute() for p in keep}
        report = CleanupReport()
        for p in plan_cleanup(previous):
            if p.absolute() in keep_set:
                continue
            if p.is_dir() and not p.is_symlink():
                if any(p.iterdir()):
                    logger.debug("Skipping non-empty directory: %s", p)
                    report.kept_non_empty.append(p)
                    continue
                try:
                    p.rmdir()
                except OSError as e:
                    logger.warning("Failed to remove directory %s: %s", p, e)
                    report.failed.append(p)
                    continue
            elif p.exists() or p.is_symlink():
                try:
                    p.unlink()
                except OSError as e:
                    logger.warning("Failed to remove file %s: %s", p, e)
                    report.failed.append(p)
                    continue
            else:
                report.missing.append(p)
                continue
            logger.debug("Removed: %s", p)
            report.removed.append(p)

        logger.info(
            "Cleanup removed %d, kept %d non-empty directories, %d already gone, %d failed",
            len(report.removed),
            len(report.kept_non_empty),
            len(report.missing),
            len(report.failed),
        )
        return report
