from __future__ import annotations

import base64


def encode_secret(secret: str) -> str:
    """Encode the app secret the way the launcher expects it on its command line.

    UTF-16-LE bytes, each inverted and rotated left by one bit, then base64.
    """

    out = bytearray()
    for b in secret.encode("utf-16-le"):
        inv = ~b & 0xFF
        out.append(((inv << 1) & 0xFF) | (inv >> 7))
    return base64.b64encode(bytes(out)).decode("ascii")
