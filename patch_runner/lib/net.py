from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Union

import requests

from ..errors import NetworkUnreachable
from ..interaction import Action, DecisionRequired
from .variables import OFFLINE, ONLINE

logger = logging.getLogger(__name__)


class NetworkStatus(str, enum.Enum):
    ONLINE = ONLINE
    OFFLINE = OFFLINE


@dataclass(frozen=True)
class ConnectivityOutcome:
    ok: bool
    reason: str = ""


def probe(
    url: str,
    *,
    session: Optional[requests.Session] = None,
    timeout_s: float = 10.0,
    expected_status: int = 200,
    expected_body: str = "ok",
) -> ConnectivityOutcome:
    """One reachability check: exact status and body, anything else is a failure."""

    http = session or requests
    try:
        r = http.get(url, timeout=timeout_s)
    except requests.Timeout as e:
        logger.warning("Network probe to %s timed out: %s", url, e)
        return ConnectivityOutcome(ok=False, reason=f"timed out after {timeout_s:g}s")
    except requests.RequestException as e:
        logger.warning("Network probe to %s failed: %s", url, e)
        return ConnectivityOutcome(ok=False, reason=str(e))

    if r.status_code != expected_status:
        logger.warning("Network probe to %s returned status %s", url, r.status_code)
        return ConnectivityOutcome(ok=False, reason=f"unexpected status {r.status_code}")

    body = (r.text or "").strip()
    if body != expected_body:
        logger.warning("Network probe to %s returned unexpected body %r", url, body[:64])
        return ConnectivityOutcome(ok=False, reason="unexpected response body")

    logger.debug("Network probe to %s succeeded", url)
    return ConnectivityOutcome(ok=True)


class NetworkGate:
    """Unknown -> Probing -> Online | Offline, decided once per run."""

    def __init__(
        self,
        url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout_s: float = 10.0,
        expected_status: int = 200,
        expected_body: str = "ok",
        max_retries: Optional[int] = None,
    ):
        self.url = url
        self.session = session
        self.timeout_s = timeout_s
        self.expected_status = expected_status
        self.expected_body = expected_body
        self.max_retries = max_retries
        self.attempts = 0
        self._status: Optional[NetworkStatus] = None

    @property
    def status(self) -> Optional[NetworkStatus]:
        return self._status

    def _decide(self, status: NetworkStatus) -> NetworkStatus:
        if self._status is not None and self._status != status:
            raise RuntimeError(f"network status already decided as {self._status.value}")
        self._status = status
        logger.info("Network status: %s", status.value)
        return status

    def force_offline(self) -> NetworkStatus:
        return self._decide(NetworkStatus.OFFLINE)

    def _retries_left(self) -> bool:
        if self.max_retries is None:
            return True
        return self.attempts <= self.max_retries

    def resolve(self, action: Optional[Action] = None) -> Union[NetworkStatus, DecisionRequired]:
        """Advance one pass. `action` answers the previous DecisionRequired.

        OFFLINE settles the status without probing again; RETRY (or no
        action on the first pass) probes once more.
        """

        if self._status is not None:
            return self._status
        if action == Action.OFFLINE:
            return self._decide(NetworkStatus.OFFLINE)
        if action is not None and action != Action.RETRY:
            raise ValueError(f"unexpected network action {action.value!r}")

        self.attempts += 1
        outcome = probe(
            self.url,
            session=self.session,
            timeout_s=self.timeout_s,
            expected_status=self.expected_status,
            expected_body=self.expected_body,
        )
        if outcome.ok:
            return self._decide(NetworkStatus.ONLINE)

        actions = (Action.RETRY, Action.OFFLINE, Action.EXIT) if self._retries_left() else (
            Action.OFFLINE,
            Action.EXIT,
        )
        return DecisionRequired(error=NetworkUnreachable(outcome.reason), actions=actions)
