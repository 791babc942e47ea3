from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlsplit, urlunsplit

import yaml

from .lib.env import NAMES, app_dirs, runner_dir

DEFAULT_API_URL = "https://api2.patchkit.net"
DEFAULT_NETWORK_TEST_URL = "https://network-test.patchkit.net"

ENV_API_URL = "PK_RUNNER_API_URL"
ENV_API_HOST = "PK_RUNNER_API_HOST"
ENV_NO_LOCKFILE = "PK_RUNNER_NO_LOCKFILE"
ENV_OFFLINE = "PK_RUNNER_OFFLINE"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RunnerConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    def _section(self, name: str) -> Dict[str, Any]:
        return self.raw.get(name) or {}

    @property
    def base_dir(self) -> Path:
        v = self._section("paths").get("base_dir")
        return Path(v).expanduser() if v else runner_dir()

    def _path(self, key: str, default_name: str) -> Path:
        v = self._section("paths").get(key)
        if not v:
            return self.base_dir / default_name
        p = Path(v).expanduser()
        return p if p.is_absolute() else self.base_dir / p

    @property
    def dat_file(self) -> Path:
        return self._path("dat_file", NAMES.dat_file)

    @property
    def lockfile(self) -> Path:
        return self._path("lockfile", NAMES.lockfile)

    @property
    def guard_file(self) -> Path:
        return self._path("guard_file", NAMES.guard_file)

    @property
    def log_file(self) -> Path:
        return self._path("log_file", NAMES.log_file)

    def install_dir(self, slug: str) -> Path:
        v = self._section("paths").get("install_dir")
        return Path(v).expanduser() if v else app_dirs(self.base_dir, slug)[0]

    def patcher_dir(self, slug: str) -> Path:
        v = self._section("paths").get("patcher_dir")
        return Path(v).expanduser() if v else app_dirs(self.base_dir, slug)[1]

    @property
    def api_url(self) -> str:
        return str(self._section("network").get("api_url") or DEFAULT_API_URL).rstrip("/")

    @property
    def network_test_url(self) -> str:
        return str(self._section("network").get("test_url") or DEFAULT_NETWORK_TEST_URL)

    @property
    def expected_status(self) -> int:
        return int(self._section("network").get("expected_status") or 200)

    @property
    def expected_body(self) -> str:
        v = self._section("network").get("expected_body")
        return "ok" if v is None else str(v)

    @property
    def network_timeout_s(self) -> float:
        return float(self._section("network").get("timeout_s") or 10)

    @property
    def max_network_retries(self) -> Optional[int]:
        v = self._section("network").get("max_retries")
        return None if v is None else int(v)

    @property
    def lockfile_max_age_s(self) -> float:
        return float(self._section("lockfile").get("max_age_s") or 60)

    @property
    def lockfile_wait_s(self) -> float:
        v = self._section("lockfile").get("wait_s")
        return 5.0 if v is None else float(v)

    @property
    def lockfile_max_waits(self) -> int:
        v = self._section("lockfile").get("max_waits")
        return 120 if v is None else int(v)

    @property
    def wait_for_exit(self) -> bool:
        return bool(self._section("launch").get("wait_for_exit", False))

    def with_paths(self, **paths: Any) -> "RunnerConfig":
        """Copy with entries of the `paths` section replaced (None values ignored)."""

        raw = dict(self.raw)
        section = dict(raw.get("paths") or {})
        section.update({k: str(v) for k, v in paths.items() if v is not None})
        raw["paths"] = section
        return RunnerConfig(raw=raw)


def load_runner_config(path: Optional[str]) -> RunnerConfig:
    if path is None:
        return RunnerConfig()

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("runner config must be YAML")

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError("runner config must contain a mapping/object")

    return RunnerConfig(raw=raw)


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUTHY


@dataclass(frozen=True)
class DebugOverrides:
    api_url: Optional[str] = None
    api_host: Optional[str] = None
    skip_lockfile: bool = False
    force_offline: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DebugOverrides":
        env = os.environ if environ is None else environ
        return cls(
            api_url=env.get(ENV_API_URL) or None,
            api_host=env.get(ENV_API_HOST) or None,
            skip_lockfile=_flag(env.get(ENV_NO_LOCKFILE)),
            force_offline=_flag(env.get(ENV_OFFLINE)),
        )

    @property
    def any_active(self) -> bool:
        return bool(self.api_url or self.api_host or self.skip_lockfile or self.force_offline)

    def describe(self) -> list[str]:
        out: list[str] = []
        if self.api_url:
            out.append(f"{ENV_API_URL}={self.api_url}")
        if self.api_host:
            out.append(f"{ENV_API_HOST}={self.api_host}")
        if self.skip_lockfile:
            out.append(f"{ENV_NO_LOCKFILE} (lockfile check disabled)")
        if self.force_offline:
            out.append(f"{ENV_OFFLINE} (offline mode forced)")
        return out

    def effective_api_url(self, configured: str) -> str:
        if self.api_url:
            return self.api_url.rstrip("/")
        if self.api_host:
            parts = urlsplit(configured)
            return urlunsplit((parts.scheme or "https", self.api_host, parts.path, "", "")).rstrip("/")
        return configured
