"""Poll DNS until a churned name appears or disappears.

Verification polls the resolver once immediately and then once per poll
interval (one second by default) until the expected state is observed or the
timeout elapses. The reported ``elapsed`` is measured from the first poll to
the end of the last wait before the converging poll, so a name that is
already in the expected state reports ``0``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from .resolver import NameNotFound, Resolver

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 1.0


@dataclass(frozen=True, slots=True)
class Presence:
    """The name resolves to at least one address (``expected`` among them, if set)."""

    expected: Optional[str] = None

    def satisfied_by(self, addresses: List[str]) -> bool:
        if not addresses:
            return False
        return self.expected is None or self.expected in addresses


@dataclass(frozen=True, slots=True)
class Absence:
    """The resolver reports the name as not found."""


Mode = Union[Presence, Absence]


@dataclass(frozen=True, slots=True)
class VerificationOutcome:
    converged: bool
    elapsed: float


class ConvergenceVerifier:
    """Wait for a name to reach the state described by a ``Presence`` or ``Absence`` mode."""

    def __init__(
        self,
        resolver: Resolver,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        self.resolver = resolver
        self.poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep

    def wait(self, name: str, mode: Mode, timeout: float) -> VerificationOutcome:
        start = self._clock()
        elapsed = 0.0
        while self._clock() - start < timeout:
            if self._poll(name, mode):
                return VerificationOutcome(converged=True, elapsed=elapsed)
            self._sleep(self.poll_interval)
            elapsed = self._clock() - start
        logger.debug("%s did not reach %s within %.1fs", name, type(mode).__name__, timeout)
        return VerificationOutcome(converged=False, elapsed=elapsed)

    def _poll(self, name: str, mode: Mode) -> bool:
        try:
            addresses = self.resolver.resolve(name)
        except NameNotFound:
            return isinstance(mode, Absence)
        except Exception as exc:  # noqa: BLE001 - any other resolver failure is transient
            logger.debug("lookup of %s failed, retrying: %s", name, exc)
            return False
        if isinstance(mode, Presence):
            return mode.satisfied_by(addresses)
        return False


__all__ = [
    "Absence",
    "ConvergenceVerifier",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "Mode",
    "Presence",
    "VerificationOutcome",
]
