"""Command line entrypoint for the churn load generator."""

from __future__ import annotations

import argparse
import logging
import os
import signal
from typing import Optional

from prometheus_client import CollectorRegistry

from .cluster import KubernetesClusterClient
from .config import Config, ConfigurationError, parse_duration
from .cycle import cycle_factory
from .metrics import MetricSet, start_metrics_server
from .resolver import SystemResolver
from .scheduler import Dispatcher, RateScheduler, build_dispatcher
from .verifier import ConvergenceVerifier

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kubernoisy",
        description=(
            "Continuously create and delete pod/service pairs and measure how long "
            "cluster DNS takes to reflect each change."
        ),
    )
    parser.add_argument(
        "--ops",
        type=float,
        default=None,
        help="Operations per second (default 1, from KUBERNOISY_OPS env).",
    )
    parser.add_argument(
        "--prom",
        type=str,
        default=None,
        help="Prometheus endpoint bind address (default :9696).",
    )
    parser.add_argument(
        "--namespace",
        type=str,
        default=None,
        help="Namespace to operate in (default load-test).",
    )
    parser.add_argument(
        "--timeout",
        type=parse_duration,
        default=None,
        help="Timeout for validation, e.g. 30s or 30m (default 30m).",
    )
    parser.add_argument(
        "--poll-interval",
        type=parse_duration,
        default=None,
        help="Delay between DNS lookups while validating (default 1s).",
    )
    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        help="Cap on concurrently running cycles; 0 launches every cycle immediately (default 0).",
    )
    parser.add_argument(
        "--dns-domain",
        type=str,
        default=None,
        help="Cluster domain used to build fully qualified lookup names (default: rely on the search path).",
    )
    parser.add_argument(
        "--kubeconfig",
        type=str,
        default=None,
        help="Path to a kubeconfig file (default: in-cluster config, then ~/.kube/config).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Verbose log output.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Set an explicit log level (default from LOG_LEVEL env).",
    )
    return parser


def _configure_logging(level: str, verbose: bool = False) -> None:
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if verbose:
        logging.getLogger("kubernoisy").setLevel(logging.DEBUG)


def load_config(args: argparse.Namespace) -> Config:
    config = Config.from_env()

    if args.ops is not None:
        config.ops = args.ops
    if args.prom is not None:
        config.metrics_address = args.prom
    if args.namespace is not None:
        config.namespace = args.namespace
    if args.timeout is not None:
        config.timeout_seconds = args.timeout
    if args.poll_interval is not None:
        config.poll_interval_seconds = args.poll_interval
    if args.max_concurrency is not None:
        config.max_concurrency = args.max_concurrency
    if args.dns_domain is not None:
        config.dns_domain = args.dns_domain
    if args.kubeconfig is not None:
        config.kubeconfig = args.kubeconfig
    if args.verbose:
        config.verbose = True
    if args.log_level is not None:
        config.log_level = args.log_level

    config.validate()
    return config


def _install_signal_handlers(scheduler: RateScheduler) -> None:
    def _handle(signum: int, _frame) -> None:
        logger.info("Got signal %s, exiting", signal.Signals(signum).name)
        scheduler.stop()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def _abandon(dispatcher: Dispatcher) -> None:
    """Exit immediately; in-flight cycles and their objects are left behind."""

    dispatcher.shutdown(wait=False)
    logging.shutdown()
    os._exit(0)


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
    except ConfigurationError as exc:
        _configure_logging(args.log_level or os.getenv("LOG_LEVEL", "INFO"))
        logger.error("Invalid configuration: %s", exc)
        return 1

    _configure_logging(config.log_level, verbose=config.verbose)

    try:
        cluster = KubernetesClusterClient.connect(config.kubeconfig)
    except Exception as exc:  # noqa: BLE001 - any connection failure is fatal at startup
        logger.error("Could not connect to the Kubernetes API: %s", exc)
        return 1

    registry = CollectorRegistry()
    metrics = MetricSet(registry)
    verifier = ConvergenceVerifier(SystemResolver(), poll_interval=config.poll_interval_seconds)
    dispatcher = build_dispatcher(config.max_concurrency)
    scheduler = RateScheduler(
        cycle_factory(
            cluster,
            verifier,
            metrics,
            config.namespace,
            config.timeout_seconds,
            domain=config.dns_domain,
        ),
        config.ops,
        dispatcher,
    )
    _install_signal_handlers(scheduler)

    try:
        start_metrics_server(config.metrics_address, registry)
    except OSError as exc:
        logger.error("Could not serve metrics on %s: %s", config.metrics_address, exc)
        return 1

    scheduler.run()
    _abandon(dispatcher)
    return 0


if __name__ == "__main__":  # pragma: no cover - module entrypoint
    raise SystemExit(main())
