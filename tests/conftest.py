"""Shared fixtures: scripted UI, fake HTTP session, launcher data and packages."""

from __future__ import annotations

import json
import struct
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest
import requests

from patch_runner.interaction import Action, DecisionRequest


class ScriptedUI:
    """Answers decisions from a queue and records everything it was shown."""

    def __init__(self, answers: Sequence[Action] = ()):
        self.answers: List[Action] = list(answers)
        self.requests: List[DecisionRequest] = []
        self.statuses: List[str] = []
        self.progress: List[float] = []
        self.closed = False

    def set_status(self, message: str) -> None:
        self.statuses.append(message)

    def set_progress(self, fraction: float, speed_kbps: Optional[float] = None) -> None:
        self.progress.append(fraction)

    def decide(self, request: DecisionRequest) -> Action:
        self.requests.append(request)
        if self.answers:
            return self.answers.pop(0)
        return request.actions[-1]

    def close(self) -> None:
        self.closed = True

    @property
    def titles(self) -> List[str]:
        return [r.title for r in self.requests]


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", json_data=None, content: bytes = b""):
        self.status_code = status_code
        self.text = text
        self._json = json_data
        self._content = content
        self.headers: Dict[str, str] = {"Content-Length": str(len(content))} if content else {}

    def json(self):
        if self._json is None:
            raise ValueError("no json")
        return self._json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def iter_content(self, chunk_size: int = 1024):
        for i in range(0, len(self._content), chunk_size):
            yield self._content[i : i + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        pass


class FakeSession:
    """Routes GET requests by URL; an Exception value is raised instead of returned."""

    def __init__(self, routes: Optional[Dict[str, object]] = None):
        self.routes: Dict[str, object] = dict(routes or {})
        self.calls: List[str] = []

    def get(self, url: str, **kwargs):
        self.calls.append(url)
        result = self.routes.get(url)
        if result is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(result, list):
            result = result.pop(0) if len(result) > 1 else result[0]
        if isinstance(result, Exception):
            raise result
        return result


def encode_byte(b: int) -> int:
    inv = ~b & 0xFF
    return ((inv << 1) & 0xFF) | (inv >> 7)


def encoded_string(text: str) -> bytes:
    body = bytearray()
    for b in text.encode("utf-8"):
        body += bytes([encode_byte(b), 0])
    return struct.pack("<I", len(body)) + bytes(body)


def write_dat(path: Path, patcher_secret: str, app_secret: str) -> Path:
    path.write_bytes(encoded_string(patcher_secret) + encoded_string(app_secret))
    return path


def make_zip(path: Path, entries: Dict[str, Optional[bytes]], modes: Optional[Dict[str, int]] = None) -> Path:
    """Entries with a None body become directories."""

    modes = modes or {}
    with zipfile.ZipFile(path, "w") as zf:
        for name, body in entries.items():
            if body is None:
                zf.writestr(zipfile.ZipInfo(name.rstrip("/") + "/"), b"")
                continue
            info = zipfile.ZipInfo(name)
            if name in modes:
                info.external_attr = modes[name] << 16
            zf.writestr(info, body)
    return path


SAMPLE_MANIFEST = {
    "manifest_version": 4,
    "target": "{exedir}/Launcher",
    "target_arguments": [
        {"value": ["--installdir", "{installdir}"]},
        {"value": ["--secret", "{secret}"]},
        {"value": ["--lockfile", "{lockfile}"]},
        {"value": ["--network-status", "{network-status}"]},
    ],
    "capabilities": ["pack1_compression_lzma2"],
}


def manifest_bytes(manifest: Optional[dict] = None) -> bytes:
    return json.dumps(manifest or SAMPLE_MANIFEST).encode("utf-8")


@pytest.fixture
def ui():
    return ScriptedUI()


@pytest.fixture
def dat_file(tmp_path):
    return write_dat(tmp_path / "launcher.dat", "patcher-secret-1", "abcdefgh12345678")
