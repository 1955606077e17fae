"""Fixed-rate launcher for churn cycles."""

from __future__ import annotations

import enum
import itertools
import math
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Protocol

from .config import ConfigurationError
from .cycle import ChurnCycle

logger = logging.getLogger(__name__)


class Dispatcher(Protocol):
    def submit(self, work: Callable[[], object]) -> None: ...

    def shutdown(self, wait: bool = False) -> None: ...


class ThreadDispatcher:
    """One daemon thread per unit of work; nothing is joined or tracked."""

    def __init__(self, name_prefix: str = "churn") -> None:
        self._name_prefix = name_prefix
        self._counter = itertools.count(1)

    def submit(self, work: Callable[[], object]) -> None:
        thread = threading.Thread(
            target=work,
            name=f"{self._name_prefix}-{next(self._counter)}",
            daemon=True,
        )
        thread.start()

    def shutdown(self, wait: bool = False) -> None:
        # Daemon threads are abandoned at interpreter exit.
        return None


class PoolDispatcher:
    """Bounded concurrency: at most ``max_workers`` cycles run, the rest queue."""

    def __init__(self, max_workers: int, name_prefix: str = "churn") -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name_prefix)

    def submit(self, work: Callable[[], object]) -> None:
        self._executor.submit(work)

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=not wait)


def build_dispatcher(max_concurrency: int) -> Dispatcher:
    """``0`` selects unbounded fan-out, anything larger a bounded pool."""

    if max_concurrency < 0:
        raise ConfigurationError("max concurrency cannot be negative")
    if max_concurrency == 0:
        return ThreadDispatcher()
    return PoolDispatcher(max_concurrency)


class SchedulerState(enum.Enum):
    RUNNING = "running"
    STOPPED = "stopped"


class RateScheduler:
    """Launch one cycle every ``1/ops`` seconds without waiting on earlier ones."""

    def __init__(
        self,
        cycle_factory: Callable[[], ChurnCycle],
        ops: float,
        dispatcher: Dispatcher,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not math.isfinite(ops) or ops <= 0:
            raise ConfigurationError(f"ops must be a finite number > 0, got {ops}")
        self.cycle_factory = cycle_factory
        self.ops = ops
        self.interval = 1.0 / ops
        self.dispatcher = dispatcher
        self.state = SchedulerState.RUNNING
        self.launched = 0
        self._clock = clock
        self._stop = threading.Event()

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def run(self, iterations: int | None = None) -> None:
        """Tick until stopped, or for ``iterations`` ticks when given.

        The first cycle launches one interval after start. Ticks follow a
        fixed deadline schedule so slow dispatches do not accumulate drift.
        """

        logger.info("Performing %s operations per second", self.ops)
        loop = itertools.count() if iterations is None else range(iterations)
        next_tick = self._clock() + self.interval
        try:
            for _ in loop:
                if self._stop.wait(max(next_tick - self._clock(), 0.0)):
                    break
                self._launch()
                next_tick += self.interval
                now = self._clock()
                if next_tick < now:
                    # Fell behind by more than one tick: skip missed ticks instead of bursting.
                    missed = int((now - next_tick) // self.interval) + 1
                    next_tick += missed * self.interval
        finally:
            self.state = SchedulerState.STOPPED
            self._stop.set()

    def _launch(self) -> None:
        try:
            cycle = self.cycle_factory()
            self.dispatcher.submit(cycle.run)
        except Exception:  # noqa: BLE001 - a failed launch must not stop the ticker
            logger.exception("Could not launch churn cycle")
            return
        self.launched += 1


__all__ = [
    "Dispatcher",
    "PoolDispatcher",
    "RateScheduler",
    "SchedulerState",
    "ThreadDispatcher",
    "build_dispatcher",
]
