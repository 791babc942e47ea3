from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Set

DEFAULT_LOG_PATH = "patch-runner.log"
REDACTED = "***"


class SecretFilter(logging.Filter):
    """Masks registered secrets in every record before it is formatted."""

    def __init__(self) -> None:
        super().__init__()
        self.secrets: Set[str] = set()

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in sorted(self.secrets, key=len, reverse=True):
            masked = masked.replace(secret, REDACTED)
        if masked != message:
            record.msg, record.args = masked, None
        return True


_secret_filter = SecretFilter()


def register_secret(value: Optional[str]) -> None:
    """Keep `value` out of the log from now on."""

    if value:
        _secret_filter.secrets.add(value)


def _open_file_handler(log_path: str, fmt: logging.Formatter) -> tuple[logging.Handler, str]:
    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
        chosen = log_path
    except OSError:
        # Runner directory not writable (Program Files, mounted image).
        chosen = str(Path.cwd() / Path(log_path).name)
        handler = logging.FileHandler(chosen, encoding="utf-8")
    handler.setFormatter(fmt)
    handler.addFilter(_secret_filter)
    return handler, chosen


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Send the runner's log to `log_path` (and stderr).

    Every decision and failure of a run ends up in one file next to the
    runner. Calling this again with another path moves the file handler
    instead of stacking a second one; registered secrets are masked on
    every handler this installs.

    Returns the actual file path being used.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    if getattr(logger, "_patch_runner_configured", False):
        if getattr(logger, "_patch_runner_requested_path", None) == log_path:
            return getattr(logger, "_patch_runner_log_path", log_path)
        old = getattr(logger, "_patch_runner_file_handler", None)
        if old is not None:
            logger.removeHandler(old)
            old.close()
        also_console = False
    handler, chosen_path = _open_file_handler(log_path, fmt)
    logger.addHandler(handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        console.addFilter(_secret_filter)
        logger.addHandler(console)

    setattr(logger, "_patch_runner_configured", True)
    setattr(logger, "_patch_runner_requested_path", log_path)
    setattr(logger, "_patch_runner_log_path", chosen_path)
    setattr(logger, "_patch_runner_file_handler", handler)

    logging.getLogger(__name__).info(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
