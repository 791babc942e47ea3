from __future__ import annotations

import json
import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from ..errors import LauncherDataError

logger = logging.getLogger(__name__)

MAGIC_BYTES = b".bLa"
SLUG_LENGTH = 8


@dataclass(frozen=True)
class LauncherData:
    patcher_secret: str
    app_secret: str
    app_display_name: Optional[str] = None
    app_author: Optional[str] = None
    app_identifier: Optional[str] = None

    @property
    def slug(self) -> str:
        return self.app_secret[:SLUG_LENGTH]


def decode_byte_array(encoded: bytes) -> bytes:
    """Every other byte carries data: rotate right by one, then invert."""

    out = bytearray()
    for i in range(0, len(encoded) - 1, 2):
        b = encoded[i]
        out.append(~((b >> 1) | ((b & 1) << 7)) & 0xFF)
    return bytes(out)


def _read_exact(stream: BinaryIO, n: int) -> bytes:
    data = stream.read(n)
    if len(data) != n:
        raise LauncherDataError(f"Launcher data truncated: wanted {n} bytes, got {len(data)}")
    return data


def read_encoded_string(stream: BinaryIO) -> str:
    (length,) = struct.unpack("<I", _read_exact(stream, 4))
    decoded = decode_byte_array(_read_exact(stream, length))
    if not decoded:
        raise LauncherDataError("Decoded string is empty")
    try:
        return decoded.decode("utf-8")
    except UnicodeDecodeError as e:
        raise LauncherDataError(f"Invalid UTF-8 in launcher data: {e}") from e


def read_binary(stream: BinaryIO) -> LauncherData:
    patcher_secret = read_encoded_string(stream)
    app_secret = read_encoded_string(stream)
    logger.debug("Read launcher data (patcher secret %d chars, app secret %d chars)",
                 len(patcher_secret), len(app_secret))
    return LauncherData(patcher_secret=patcher_secret, app_secret=app_secret)


def read_json(stream: BinaryIO) -> LauncherData:
    if _read_exact(stream, 4) != MAGIC_BYTES:
        raise LauncherDataError("Invalid magic bytes")
    try:
        data = json.loads(read_encoded_string(stream))
    except ValueError as e:
        raise LauncherDataError(f"Invalid JSON in launcher data: {e}") from e
    if not isinstance(data, dict):
        raise LauncherDataError("Launcher data JSON must be an object")
    try:
        return LauncherData(
            patcher_secret=str(data["patcher_secret"]),
            app_secret=str(data["app_secret"]),
            app_display_name=data.get("app_display_name"),
            app_author=data.get("app_author"),
            app_identifier=data.get("app_identifier"),
        )
    except KeyError as e:
        raise LauncherDataError(f"Launcher data is missing {e.args[0]!r}") from e


def load_launcher_data(path: str | Path) -> LauncherData:
    """Read a launcher data file in either the JSON (magic-prefixed) or the binary form."""

    p = Path(path)
    try:
        f = p.open("rb")
    except OSError as e:
        raise LauncherDataError(f"Failed to open {p}: {e}") from e
    with f:
        if f.read(4) == MAGIC_BYTES:
            f.seek(0)
            data = read_json(f)
        else:
            f.seek(0)
            data = read_binary(f)
    if len(data.app_secret) < SLUG_LENGTH:
        raise LauncherDataError("App secret is too short")
    return data
