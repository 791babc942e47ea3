from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def load_state(path: str | Path) -> Dict[str, Any]:
    """Load persisted state; a missing file is an empty state.

    A file left half-written by a crashed run is reported and treated as empty.
    """

    p = Path(path)
    if not p.exists():
        return {}

    fmt = _detect_format(p)
    text = p.read_text(encoding="utf-8")
    data: Any

    try:
        if fmt in {"yaml", "yml"}:
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text) if text.strip() else {}
    except (ValueError, yaml.YAMLError) as e:
        logger.warning("Discarding unreadable state file %s: %s", p, e)
        return {}

    if not isinstance(data, dict):
        logger.warning("Discarding state file %s: expected an object, got %s", p, type(data).__name__)
        return {}

    return data


def save_state(path: str | Path, state: Dict[str, Any]) -> None:
    """Write state atomically (temp file + rename) so a crash never leaves a torn file."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    fmt = _detect_format(p)
    if fmt in {"yaml", "yml"}:
        text = yaml.safe_dump(state, sort_keys=False) + "\n"
    else:
        text = json.dumps(state, indent=2, sort_keys=True) + "\n"

    tmp = p.with_name(p.name + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    os.replace(tmp, p)
