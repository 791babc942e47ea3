from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import requests

from ..errors import DownloadFailed

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 256


@dataclass(frozen=True)
class ContentUrl:
    url: str
    size: int = 0


@dataclass(frozen=True)
class DownloadProgress:
    bytes: int
    total_bytes: int
    speed_kbps: float

    @property
    def fraction(self) -> float:
        return self.bytes / self.total_bytes if self.total_bytes > 0 else 0.0


ProgressCallback = Callable[[DownloadProgress], None]


class PatchKitClient:
    """Thin client for the release API: latest version id, content URLs, download."""

    def __init__(self, api_url: str, *, session: Optional[requests.Session] = None, timeout_s: float = 10.0):
        self.api_url = api_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout_s = timeout_s

    def _get_json(self, url: str):
        logger.debug("GET %s", url)
        try:
            r = self.session.get(url, timeout=self.timeout_s)
            r.raise_for_status()
            return r.json()
        except requests.RequestException as e:
            raise DownloadFailed(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            raise DownloadFailed(f"Invalid JSON from {url}: {e}") from e

    def get_latest_version(self, patcher_secret: str) -> str:
        url = f"{self.api_url}/1/apps/{patcher_secret}/versions/latest/id"
        data = self._get_json(url)
        vid = data.get("id") if isinstance(data, dict) else None
        if isinstance(vid, bool) or not isinstance(vid, (str, int)):
            raise DownloadFailed(f"Unexpected latest-version response from {url}: {data!r}")
        logger.info("Latest version: %s", vid)
        return str(vid)

    def get_content_urls(self, patcher_secret: str, version: str) -> List[ContentUrl]:
        url = f"{self.api_url}/1/apps/{patcher_secret}/versions/{version}/content_urls"
        data = self._get_json(url)
        if not isinstance(data, list):
            raise DownloadFailed(f"Unexpected content_urls response from {url}")
        out: List[ContentUrl] = []
        for item in data:
            if isinstance(item, dict) and item.get("url"):
                out.append(ContentUrl(url=str(item["url"]), size=int(item.get("size") or 0)))
        return out

    def download_file(self, url: str, dest: str | Path, progress: Optional[ProgressCallback] = None) -> Path:
        d = Path(dest)
        d.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Downloading %s -> %s", url, d)
        started = time.monotonic()
        done = 0
        try:
            with self.session.get(url, stream=True, timeout=self.timeout_s) as r:
                r.raise_for_status()
                total = int(r.headers.get("Content-Length") or 0)
                with d.open("wb") as f:
                    for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                        if not chunk:
                            continue
                        f.write(chunk)
                        done += len(chunk)
                        if progress is not None:
                            elapsed = time.monotonic() - started
                            speed = done / 1024.0 / elapsed if elapsed > 0 else 0.0
                            progress(DownloadProgress(bytes=done, total_bytes=total, speed_kbps=speed))
        except requests.RequestException as e:
            raise DownloadFailed(f"Download of {url} failed: {e}") from e
        logger.info("Download complete: %d bytes", done)
        return d
