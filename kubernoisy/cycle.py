"""One churn cycle: create, wait for DNS, delete, wait for DNS to forget."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from .cluster import ApiCallError, ClusterClient
from .metrics import MetricSet
from .names import generate_name
from .resources import ENDPOINT_KIND, WORKLOAD_KIND, build_resources, lookup_name
from .verifier import Absence, ConvergenceVerifier, Presence, VerificationOutcome

logger = logging.getLogger(__name__)

ADD = "add"
DELETE = "delete"


@dataclass(slots=True)
class CycleReport:
    """What happened during one cycle; folded into metrics as it goes."""

    identity: str
    created: Dict[str, bool] = field(default_factory=dict)
    deleted: Dict[str, bool] = field(default_factory=dict)
    add_validation: Optional[VerificationOutcome] = None
    delete_validation: Optional[VerificationOutcome] = None


class ChurnCycle:
    """Run create/verify/delete/verify for freshly generated names.

    API failures are counted and logged at debug level, never retried. The
    cycle always moves on to the next phase.
    """

    def __init__(
        self,
        client: ClusterClient,
        verifier: ConvergenceVerifier,
        metrics: MetricSet,
        namespace: str,
        timeout: float,
        domain: str = "",
        rng: Optional[random.Random] = None,
    ) -> None:
        self.client = client
        self.verifier = verifier
        self.metrics = metrics
        self.namespace = namespace
        self.timeout = timeout
        self.domain = domain
        self.rng = rng

    def run(self) -> Optional[CycleReport]:
        """Execute one cycle; never raises."""

        self.metrics.cycle_started()
        report: Optional[CycleReport] = None
        try:
            report = self._run()
        except Exception:  # noqa: BLE001 - a broken cycle must not reach the scheduler
            logger.exception("Churn cycle aborted")
        finally:
            self.metrics.cycle_finished(completed=report is not None)
        return report

    def _run(self) -> CycleReport:
        identity = generate_name(self.rng)
        pair = build_resources(identity, self.namespace)
        name = lookup_name(identity, self.namespace, self.domain)
        report = CycleReport(identity=identity)

        report.created[WORKLOAD_KIND] = self._act(WORKLOAD_KIND, ADD, lambda: self.client.create_workload(pair))
        report.created[ENDPOINT_KIND] = self._act(ENDPOINT_KIND, ADD, lambda: self.client.create_endpoint(pair))

        report.add_validation = self.verifier.wait(name, Presence(), self.timeout)
        self.metrics.record_validation(ADD, report.add_validation)

        report.deleted[WORKLOAD_KIND] = self._act(
            WORKLOAD_KIND, DELETE, lambda: self.client.delete_workload(identity, self.namespace)
        )
        report.deleted[ENDPOINT_KIND] = self._act(
            ENDPOINT_KIND, DELETE, lambda: self.client.delete_endpoint(identity, self.namespace)
        )

        report.delete_validation = self.verifier.wait(name, Absence(), self.timeout)
        self.metrics.record_validation(DELETE, report.delete_validation)

        logger.debug(
            "Cycle %s finished: add converged=%s in %.1fs, delete converged=%s in %.1fs",
            identity,
            report.add_validation.converged,
            report.add_validation.elapsed,
            report.delete_validation.converged,
            report.delete_validation.elapsed,
        )
        return report

    def _act(self, kind: str, action: str, call: Callable[[], None]) -> bool:
        try:
            call()
        except ApiCallError as exc:
            logger.debug("%s", exc)
            self.metrics.record_action(kind, action, ok=False)
            return False
        self.metrics.record_action(kind, action, ok=True)
        return True


def cycle_factory(
    client: ClusterClient,
    verifier: ConvergenceVerifier,
    metrics: MetricSet,
    namespace: str,
    timeout: float,
    domain: str = "",
) -> Callable[[], ChurnCycle]:
    """Return a zero-argument callable producing a new cycle per scheduler tick."""

    def _factory() -> ChurnCycle:
        return ChurnCycle(client, verifier, metrics, namespace, timeout, domain=domain)

    return _factory


__all__ = ["ADD", "DELETE", "ChurnCycle", "CycleReport", "cycle_factory"]
