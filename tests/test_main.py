from __future__ import annotations

import logging
import signal
import threading

import pytest

from kubernoisy import __main__ as cli
from kubernoisy.scheduler import RateScheduler, SchedulerState


@pytest.fixture
def no_side_effects(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("KUBERNOISY_OPS", "KUBERNOISY_METRICS_ADDRESS", "KUBERNOISY_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)

    calls = []

    def forbidden(name):
        def _record(*args, **kwargs):
            calls.append(name)
            raise AssertionError(f"{name} must not be reached")

        return _record

    monkeypatch.setattr(cli.KubernetesClusterClient, "connect", forbidden("connect"))
    monkeypatch.setattr(cli, "start_metrics_server", forbidden("start_metrics_server"))
    return calls


@pytest.mark.parametrize("ops", ["0", "-3"])
def test_invalid_rate_aborts_before_anything_starts(no_side_effects, ops):
    assert cli.main(["--ops", ops]) == 1
    assert no_side_effects == []


def test_invalid_metrics_address_aborts(no_side_effects):
    assert cli.main(["--prom", "9696"]) == 1
    assert no_side_effects == []


def test_invalid_timeout_flag_is_a_usage_error(no_side_effects):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--timeout", "forever"])
    assert excinfo.value.code == 2


def test_flags_override_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("KUBERNOISY_OPS", "3")
    monkeypatch.setenv("KUBERNOISY_NAMESPACE", "from-env")
    args = cli._build_parser().parse_args(["--ops", "5", "--timeout", "30s", "--verbose", "--max-concurrency", "4"])

    config = cli.load_config(args)

    assert config.ops == 5
    assert config.namespace == "from-env"
    assert config.timeout_seconds == 30.0
    assert config.max_concurrency == 4
    assert config.verbose is True


def test_connection_failure_aborts(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("KUBERNOISY_OPS", raising=False)

    def refuse(kubeconfig=None):
        raise RuntimeError("no cluster")

    started = []
    monkeypatch.setattr(cli.KubernetesClusterClient, "connect", refuse)
    monkeypatch.setattr(cli, "start_metrics_server", lambda *args: started.append(args))

    assert cli.main([]) == 1
    assert started == []


@pytest.mark.parametrize("ops", ["nan", "inf"])
def test_non_finite_rate_aborts(no_side_effects, ops):
    assert cli.main(["--ops", ops]) == 1
    assert no_side_effects == []


class _NoopCycle:
    def run(self) -> None:
        pass


class _RecordingDispatcher:
    def __init__(self, events=None) -> None:
        self.events = events if events is not None else []

    def submit(self, work) -> None:
        pass

    def shutdown(self, wait: bool = False) -> None:
        self.events.append(("shutdown", wait))


@pytest.fixture
def restore_signal_handlers():
    previous = {signum: signal.getsignal(signum) for signum in (signal.SIGINT, signal.SIGTERM)}
    yield
    for signum, handler in previous.items():
        signal.signal(signum, handler)


@pytest.mark.parametrize("signum", [signal.SIGTERM, signal.SIGINT])
def test_signal_stops_the_scheduler(restore_signal_handlers, signum):
    scheduler = RateScheduler(_NoopCycle, ops=100, dispatcher=_RecordingDispatcher())
    cli._install_signal_handlers(scheduler)
    thread = threading.Thread(target=scheduler.run)
    thread.start()

    handler = signal.getsignal(signum)
    assert callable(handler)
    handler(signum, None)
    thread.join(timeout=1)

    assert not thread.is_alive()
    assert scheduler.state is SchedulerState.STOPPED


def test_abandon_exits_zero_without_waiting(monkeypatch):
    events = []
    monkeypatch.setattr(cli.os, "_exit", lambda code: events.append(("exit", code)))
    monkeypatch.setattr(logging, "shutdown", lambda: events.append(("logging", None)))

    cli._abandon(_RecordingDispatcher(events))

    assert events == [("shutdown", False), ("logging", None), ("exit", 0)]
