from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple

from ..errors import ManifestInvalid
from .variables import VariableContext, placeholders, resolve

logger = logging.getLogger(__name__)

SUPPORTED_MANIFEST_VERSIONS = frozenset({2, 3, 4})

# Read and discarded: superseded by target/target_arguments.
DEPRECATED_FIELDS = ("exe_fileName", "exe_arguments")


@dataclass(frozen=True)
class Manifest:
    manifest_version: int
    target: str
    target_arguments: Tuple[Tuple[str, ...], ...]
    capabilities: Tuple[str, ...] = ()


def _require(data: Dict[str, Any], key: str) -> Any:
    if key not in data:
        raise ManifestInvalid(f"Manifest is missing required field {key!r}")
    return data[key]


def _parse_groups(raw: Any) -> Tuple[Tuple[str, ...], ...]:
    if not isinstance(raw, list):
        raise ManifestInvalid("'target_arguments' must be a list")
    groups: List[Tuple[str, ...]] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict) or "value" not in item:
            raise ManifestInvalid(f"target_arguments[{i}] must be an object with a 'value' list")
        tokens = item["value"]
        if not isinstance(tokens, list) or not all(isinstance(t, str) for t in tokens):
            raise ManifestInvalid(f"target_arguments[{i}].value must be a list of strings")
        groups.append(tuple(tokens))
    return tuple(groups)


def parse_manifest(document: bytes | str) -> Manifest:
    """Parse a manifest document.

    Unknown fields never fail parsing; missing or malformed required fields always do.
    """

    if isinstance(document, bytes):
        try:
            document = document.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ManifestInvalid(f"Manifest is not valid UTF-8: {e}") from e

    try:
        data = json.loads(document)
    except ValueError as e:
        raise ManifestInvalid(f"Manifest is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ManifestInvalid("Manifest must be a JSON object")

    version = _require(data, "manifest_version")
    if isinstance(version, bool) or not isinstance(version, int):
        raise ManifestInvalid(f"'manifest_version' must be an integer, got {version!r}")
    if version not in SUPPORTED_MANIFEST_VERSIONS:
        raise ManifestInvalid(f"Unsupported manifest_version {version}")

    target = _require(data, "target")
    if not isinstance(target, str) or not target:
        raise ManifestInvalid("'target' must be a non-empty string")

    groups = _parse_groups(_require(data, "target_arguments"))

    for key in DEPRECATED_FIELDS:
        if key in data:
            logger.debug("Ignoring deprecated manifest field %s", key)

    raw_caps = data.get("capabilities") or []
    capabilities = tuple(str(c) for c in raw_caps) if isinstance(raw_caps, list) else ()
    if capabilities:
        logger.debug("Manifest capabilities (informational): %s", list(capabilities))

    return Manifest(
        manifest_version=version,
        target=target,
        target_arguments=groups,
        capabilities=capabilities,
    )


def load_manifest(path: str | Path) -> Manifest:
    p = Path(path)
    try:
        document = p.read_bytes()
    except FileNotFoundError as e:
        raise ManifestInvalid(f"Manifest not found: {p}") from e
    return parse_manifest(document)


def referenced_variables(manifest: Manifest) -> List[str]:
    """Placeholder names used by the target and arguments, first use first."""

    names: List[str] = []
    for template in (manifest.target, *(token for group in manifest.target_arguments for token in group)):
        for name in placeholders(template):
            if name not in names:
                names.append(name)
    return names


def resolve_manifest(manifest: Manifest, context: VariableContext) -> Tuple[str, List[str]]:
    """Return (executable path, argv) with every placeholder substituted.

    Groups are flattened in document order; a group is resolved completely
    before it is appended, so a failure never leaves half a group behind.
    """

    logger.debug("Manifest references variables: %s", ", ".join(referenced_variables(manifest)) or "none")
    target = resolve(manifest.target, context)
    argv: List[str] = []
    for group in manifest.target_arguments:
        resolved = [resolve(token, context) for token in group]
        argv.extend(resolved)
    return target, argv
