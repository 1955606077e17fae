"""Prometheus metric registrations for churn cycles."""

from __future__ import annotations

import logging
from typing import Tuple

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server

from .config import parse_bind_address
from .verifier import VerificationOutcome

logger = logging.getLogger(__name__)

METRIC_NAMESPACE = "kubernoisy"


def linear_buckets(start: float, width: float, count: int) -> Tuple[float, ...]:
    """``count`` bucket bounds beginning at ``start``, each ``width`` apart."""

    if count < 1:
        raise ValueError("count must be >= 1")
    return tuple(start + width * index for index in range(count))


VALIDATION_BUCKETS = linear_buckets(0, 1, 30)


class MetricSet:
    """Wrapper object holding the Prometheus metrics updated by churn cycles.

    Counters and histograms from ``prometheus_client`` lock internally, so
    concurrently running cycles can share one instance.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        reg = registry
        self.action_count = Counter(
            "action_count_total",
            "Counter of object actions",
            labelnames=("object", "action"),
            namespace=METRIC_NAMESPACE,
            registry=reg,
        )
        self.action_error_count = Counter(
            "action_error_count_total",
            "Counter of object actions rejected by the API",
            labelnames=("object", "action"),
            namespace=METRIC_NAMESPACE,
            registry=reg,
        )
        self.validation_fail_count = Counter(
            "validation_fail_count_total",
            "Counter of validation failures",
            labelnames=("action",),
            namespace=METRIC_NAMESPACE,
            registry=reg,
        )
        self.validation_duration = Histogram(
            "validation_duration_seconds",
            "Delay to reflect in DNS record",
            labelnames=("action",),
            namespace=METRIC_NAMESPACE,
            buckets=VALIDATION_BUCKETS,
            registry=reg,
        )
        self.cycles_started = Counter(
            "cycles_started_total",
            "Number of churn cycles launched",
            namespace=METRIC_NAMESPACE,
            registry=reg,
        )
        self.cycles_completed = Counter(
            "cycles_completed_total",
            "Number of churn cycles that ran to the end",
            namespace=METRIC_NAMESPACE,
            registry=reg,
        )
        self.cycles_in_flight = Gauge(
            "cycles_in_flight",
            "Churn cycles currently running",
            namespace=METRIC_NAMESPACE,
            registry=reg,
        )

    def record_action(self, kind: str, action: str, ok: bool) -> None:
        self.action_count.labels(object=kind, action=action).inc()
        if not ok:
            self.action_error_count.labels(object=kind, action=action).inc()

    def record_validation(self, action: str, outcome: VerificationOutcome) -> None:
        if outcome.converged:
            self.validation_duration.labels(action=action).observe(outcome.elapsed)
        else:
            self.validation_fail_count.labels(action=action).inc()

    def cycle_started(self) -> None:
        self.cycles_started.inc()
        self.cycles_in_flight.inc()

    def cycle_finished(self, completed: bool) -> None:
        self.cycles_in_flight.dec()
        if completed:
            self.cycles_completed.inc()


def start_metrics_server(address: str, registry: CollectorRegistry) -> None:
    """Serve ``registry`` on ``GET /metrics`` at ``address`` (``host:port`` or ``:port``)."""

    host, port = parse_bind_address(address)
    logger.info("Serving metrics on %s:%s", host, port)
    start_http_server(port, addr=host, registry=registry)


__all__ = ["METRIC_NAMESPACE", "MetricSet", "VALIDATION_BUCKETS", "linear_buckets", "start_metrics_server"]
