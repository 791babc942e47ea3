"""Boundary between the runner and whatever renders it (terminal, GUI, tests).

The runner never formats recovery instructions inline. It builds a
DecisionRequest from a fixed vocabulary of actions and blocks on the answer.
"""

from __future__ import annotations

import enum
import logging
import sys
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence, TextIO, Tuple

from .errors import RunnerError

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    RETRY = "retry"
    CANCEL = "cancel"
    WAIT = "wait"
    DELETE = "delete"
    OFFLINE = "offline"
    EXIT = "exit"
    CONTINUE = "continue"


@dataclass(frozen=True)
class DecisionRequest:
    title: str
    description: str
    actions: Tuple[Action, ...]

    @classmethod
    def for_error(cls, error: RunnerError, actions: Sequence[Action]) -> "DecisionRequest":
        return cls(title=error.title, description=str(error), actions=tuple(actions))


@dataclass(frozen=True)
class DecisionRequired:
    """Returned by a state machine that cannot advance without the user."""

    error: RunnerError
    actions: Tuple[Action, ...]

    def request(self) -> DecisionRequest:
        return DecisionRequest.for_error(self.error, self.actions)


class RunnerUI(Protocol):
    def set_status(self, message: str) -> None:
        ...

    def set_progress(self, fraction: float, speed_kbps: Optional[float] = None) -> None:
        ...

    def decide(self, request: DecisionRequest) -> Action:
        ...

    def close(self) -> None:
        ...


# Relaunches the runner with elevated rights. Returns True if the elevated
# process was started, in which case the current run ends.
Elevator = Callable[[], bool]


def ask(ui: RunnerUI, request: DecisionRequest) -> Action:
    """Ask the UI and refuse answers outside the offered actions."""

    logger.info("Decision required: %s (%s) options=%s", request.title, request.description,
                [a.value for a in request.actions])
    answer = Action(ui.decide(request))
    if answer not in request.actions:
        raise ValueError(f"UI answered {answer.value!r}, expected one of {[a.value for a in request.actions]}")
    logger.info("Decision: %s -> %s", request.title, answer.value)
    return answer


class ConsoleUI:
    """Terminal front-end. End of input picks the last (most conservative) action."""

    def __init__(self, stream: TextIO = sys.stderr, input_fn: Callable[[str], str] = input):
        self._stream = stream
        self._input = input_fn
        self._last_progress = -1

    def set_status(self, message: str) -> None:
        self._stream.write(f"{message}\n")
        self._stream.flush()

    def set_progress(self, fraction: float, speed_kbps: Optional[float] = None) -> None:
        pct = int(max(0.0, min(fraction, 1.0)) * 100)
        if pct == self._last_progress:
            return
        self._last_progress = pct
        speed = f" ({speed_kbps:.2f} KB/s)" if speed_kbps is not None else ""
        self._stream.write(f"\r{pct:3d}%{speed}")
        if pct >= 100:
            self._stream.write("\n")
        self._stream.flush()

    def decide(self, request: DecisionRequest) -> Action:
        self._stream.write(f"\n{request.title}\n{request.description}\n")
        keys = {a.value[0]: a for a in request.actions}
        if len(keys) != len(request.actions):
            keys = {str(i + 1): a for i, a in enumerate(request.actions)}
        prompt = " / ".join(f"[{k}] {a.value}" for k, a in keys.items()) + ": "
        while True:
            self._stream.flush()
            try:
                raw = self._input(prompt)
            except EOFError:
                return request.actions[-1]
            choice = raw.strip().lower()
            if choice in keys:
                return keys[choice]
            for a in request.actions:
                if choice == a.value:
                    return a
            self._stream.write(f"Unrecognized choice: {raw!r}\n")

    def close(self) -> None:
        self._stream.flush()


DEFAULT_PREFERENCES: Tuple[Action, ...] = (
    Action.WAIT,
    Action.OFFLINE,
    Action.EXIT,
    Action.CANCEL,
)


class HeadlessUI:
    """Non-interactive front-end: answers from a fixed preference order.

    Override warnings are always refused, so debug overrides never take
    effect without a human present.
    """

    def __init__(self, preferences: Sequence[Action] = DEFAULT_PREFERENCES):
        self.preferences = tuple(preferences)

    def set_status(self, message: str) -> None:
        logger.info("%s", message)

    def set_progress(self, fraction: float, speed_kbps: Optional[float] = None) -> None:
        logger.debug("progress %.0f%%", fraction * 100)

    def decide(self, request: DecisionRequest) -> Action:
        if Action.CONTINUE in request.actions and Action.CANCEL in request.actions:
            return Action.CANCEL
        for pref in self.preferences:
            if pref in request.actions:
                return pref
        return request.actions[-1]

    def close(self) -> None:
        pass
