from __future__ import annotations

import logging
import os
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from ..errors import LockfilePresent, PermissionDenied
from ..interaction import Action, DecisionRequired

logger = logging.getLogger(__name__)

STALE_AFTER_S = 60.0


@dataclass(frozen=True)
class Absent:
    pass


@dataclass(frozen=True)
class Present:
    age_s: float
    # (st_ino, st_mtime_ns) of the file that was inspected.
    identity: Optional[Tuple[int, int]] = field(default=None, compare=False)


LockfileState = Union[Absent, Present]


@dataclass(frozen=True)
class Acquired:
    path: Path
    reclaimed: bool = False


def _created_at(st: os.stat_result) -> float:
    birth = getattr(st, "st_birthtime", None)
    if birth:
        return float(birth)
    if sys.platform == "win32":
        return st.st_ctime
    # Linux exposes no creation time through os.stat; the marker is never
    # rewritten after creation, so mtime is the creation time.
    return st.st_mtime


class LockfileManager:
    """Owns the marker file that keeps a single launcher running per machine.

    The file carries no meaningful content; its existence and creation time
    are the whole state.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        max_age_s: float = STALE_AFTER_S,
        clock: Callable[[], float] = time.time,
    ):
        self.path = Path(path)
        self.max_age_s = max_age_s
        self._clock = clock

    def inspect(self) -> LockfileState:
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return Absent()
        age = max(0.0, self._clock() - _created_at(st))
        return Present(age_s=age, identity=(st.st_ino, st.st_mtime_ns))

    def is_stale(self, state: LockfileState) -> bool:
        return isinstance(state, Present) and state.age_s >= self.max_age_s

    def create(self) -> bool:
        """Create the marker exclusively. False means another process got there first."""

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(str(self.path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            logger.info("Lockfile %s appeared concurrently", self.path)
            return False
        except PermissionError as e:
            raise PermissionDenied(f"Cannot create lockfile {self.path}: {e.strerror or e}") from e
        try:
            os.write(fd, str(os.getpid()).encode("ascii"))
        finally:
            os.close(fd)
        logger.info("Created lockfile %s", self.path)
        return True

    def delete(self) -> None:
        try:
            self.path.unlink()
            logger.info("Deleted lockfile %s", self.path)
        except FileNotFoundError:
            logger.debug("Lockfile %s already gone", self.path)
        except PermissionError as e:
            raise PermissionDenied(f"Cannot delete lockfile {self.path}: {e.strerror or e}") from e

    def _busy(self, age_s: float) -> DecisionRequired:
        return DecisionRequired(
            error=LockfilePresent(age_s, str(self.path)),
            actions=(Action.WAIT, Action.DELETE, Action.CANCEL),
        )

    def _reclaim(self, seen: Present) -> bool:
        """Remove the stale marker, but only if it is still the file `seen` describes.

        The marker is first renamed aside so that a fresh lockfile created by
        another process in the meantime is never the file being unlinked.
        """

        aside = self.path.with_name(f"{self.path.name}.{os.getpid()}.stale")
        try:
            os.replace(self.path, aside)
        except FileNotFoundError:
            return True
        except PermissionError as e:
            raise PermissionDenied(f"Cannot delete lockfile {self.path}: {e.strerror or e}") from e

        st = aside.stat()
        if (st.st_ino, st.st_mtime_ns) == seen.identity:
            aside.unlink()
            logger.info("Deleted stale lockfile %s", self.path)
            return True

        logger.info("Lockfile %s was replaced by another process; leaving it", self.path)
        try:
            os.link(aside, self.path)
        except FileExistsError:
            logger.info("Lockfile %s re-created concurrently", self.path)
        except OSError:
            # No hard links on this filesystem.
            os.replace(aside, self.path)
            return False
        aside.unlink()
        return False

    def resolve(self, action: Optional[Action] = None) -> Union[Acquired, DecisionRequired]:
        """Advance the lockfile state machine one pass.

        `action` is the user's answer to the previous DecisionRequired:
        DELETE reclaims the lockfile, anything else just re-inspects.
        """

        forced = action == Action.DELETE
        if forced:
            self.delete()

        state = self.inspect()
        if isinstance(state, Absent):
            if self.create():
                return Acquired(self.path, reclaimed=forced)
            # Another process created it between inspect() and create().
            return self._busy(0.0)

        if not self.is_stale(state):
            return self._busy(state.age_s)

        logger.info("Reclaiming stale lockfile %s (age %.1fs)", self.path, state.age_s)
        if self._reclaim(state) and self.create():
            return Acquired(self.path, reclaimed=True)
        return self._busy(0.0)
