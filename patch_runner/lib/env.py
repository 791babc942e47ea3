from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Names:
    dat_file: str = "launcher.dat"
    lockfile: str = "launcher.lock"
    guard_file: str = ".patch-runner.guard"
    log_file: str = "patch-runner.log"
    manifest: str = "patcher.manifest"
    ledger: str = "runner_state.json"
    download: str = "launcher.zip"


NAMES = Names()


def runner_dir() -> Path:
    """Directory holding the running program (the frozen executable or the entry script)."""

    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    argv0 = sys.argv[0] if sys.argv and sys.argv[0] else ""
    if argv0:
        return Path(argv0).resolve().parent
    return Path.cwd()


def app_dirs(base_dir: Path, slug: str) -> tuple[Path, Path]:
    """Return (install_dir, patcher_dir) for an application slug."""

    if sys.platform == "darwin":
        root = Path.home() / "Library" / "Application Support" / "PatchKit" / "Apps" / slug
        return root / "Data", root / "Patcher"
    return base_dir / "app", base_dir / "Patcher"
