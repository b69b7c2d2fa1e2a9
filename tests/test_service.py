import threading
from concurrent.futures import wait

import pytest

import configuration
from conftest import BASE_TIME, FakeLogStore, FakeRegistry, make_definition
from uptime import service
from uptime.errors import ProbeError
from uptime.http_probe import ProbeExecutor
from uptime.log_rotation import LogRotator
from uptime.models import CheckState
from uptime.registry import FileCheckRegistry
from uptime.send_email import EmailChannel
from uptime.send_sms import SmsChannel
from uptime.service import CheckScheduler, UptimeWorker
from uptime.state_machine import OutcomeProcessor


class ScriptedProber(ProbeExecutor):
    """Return a canned outcome per check id instead of touching the network."""

    def __init__(self, results, default=200):
        super().__init__()
        self._results = results
        self._default = default
        self.probed = []
        self._lock = threading.Lock()

    def _perform(self, check):
        with self._lock:
            self.probed.append(check.id)
        result = self._results.get(check.id, self._default)
        if isinstance(result, ProbeError):
            return {"error": result}
        if isinstance(result, Exception):
            raise result
        return {"response_code": result}


def _build_scheduler(definitions, results=None, *, events=None, channel=None):
    registry = FakeRegistry(definitions)
    log_store = FakeLogStore()
    processor = OutcomeProcessor(registry, log_store, channel or _NullChannel(),
                                 clock=lambda: BASE_TIME)
    prober = ScriptedProber(results or {})
    scheduler = CheckScheduler(
        registry,
        prober,
        processor,
        max_workers=4,
        event_handler=(events.append if events is not None else None),
    )
    return scheduler, registry, log_store, prober


class _NullChannel:
    name = "null"

    def send(self, address, message):
        pass


def test_cycle_dispatches_every_valid_check():
    events = []
    scheduler, registry, log_store, prober = _build_scheduler(
        [
            make_definition(id="a"),
            make_definition(id="b"),
            make_definition(id="c"),
        ],
        {"b": 500, "c": ProbeError(ProbeError.TIMEOUT)},
        events=events,
    )
    try:
        futures = scheduler.run_cycle()
        wait(futures)
    finally:
        scheduler.shutdown()

    assert sorted(prober.probed) == ["a", "b", "c"]
    states = {event.check.id: event.state for event in events}
    assert states == {
        "a": CheckState.UP,
        "b": CheckState.DOWN,
        "c": CheckState.DOWN,
    }
    assert len(log_store.records) == 3
    assert len(registry.writes) == 3


def test_malformed_checks_are_skipped(caplog):
    scheduler, registry, _, prober = _build_scheduler([
        make_definition(id="good"),
        make_definition(id="bad", protocol="gopher"),
        "not even a mapping",
    ])
    try:
        wait(scheduler.run_cycle())
    finally:
        scheduler.shutdown()

    assert prober.probed == ["good"]
    assert "monitor.scheduler.invalid_check" in caplog.text
    assert "field=protocol" in caplog.text


def test_registry_read_error_ends_cycle_quietly(caplog):
    scheduler, registry, _, prober = _build_scheduler([make_definition()])
    registry.fail_reads = True

    futures = scheduler.run_cycle()
    scheduler.shutdown()

    assert futures == []
    assert prober.probed == []
    assert "monitor.scheduler.read_error" in caplog.text


def test_one_failing_pipeline_does_not_affect_others():
    events = []
    scheduler, registry, _, _ = _build_scheduler(
        [make_definition(id="boom"), make_definition(id="fine")],
        {"boom": RuntimeError("unexpected")},
        events=events,
    )
    try:
        futures = scheduler.run_cycle()
        wait(futures)
    finally:
        scheduler.shutdown()

    results = sorted((f.result() is None) for f in futures)
    assert results == [False, True]
    assert [event.check.id for event in events] == ["fine"]
    assert [check.id for check in registry.writes] == ["fine"]


def test_cycles_do_not_wait_for_slow_probes():
    release = threading.Event()
    started = threading.Event()

    class BlockingProber(ProbeExecutor):

        def _perform(self, check):
            started.set()
            release.wait(5)
            return {"response_code": 200}

    registry = FakeRegistry([make_definition(id="slow")])
    processor = OutcomeProcessor(registry, FakeLogStore(), _NullChannel(),
                                 clock=lambda: BASE_TIME)
    scheduler = CheckScheduler(registry, BlockingProber(), processor,
                               max_workers=2)
    try:
        first = scheduler.run_cycle()
        assert started.wait(5)
        second = scheduler.run_cycle()
        assert not any(future.done() for future in first)
        release.set()
        wait(first + second, timeout=5)
    finally:
        release.set()
        scheduler.shutdown()

    assert len(registry.writes) == 2


def test_worker_runs_both_timers_immediately_and_stops():
    checks_done = threading.Event()
    rotations_done = threading.Event()
    counts = {"checks": 0, "rotations": 0}

    class CountingScheduler:

        def run_cycle(self):
            counts["checks"] += 1
            if counts["checks"] >= 3:
                checks_done.set()
            return []

        def shutdown(self, wait=True):
            counts["shutdown"] = wait

    class CountingRotator:

        def rotate(self):
            counts["rotations"] += 1
            rotations_done.set()

    worker = UptimeWorker(CountingScheduler(),
                          CountingRotator(),
                          check_interval=0.05,
                          rotation_interval=3600)
    worker.start()
    try:
        assert worker.running is True
        with pytest.raises(RuntimeError):
            worker.start()
        assert checks_done.wait(5), "check cycle did not repeat"
        assert rotations_done.wait(5), "rotation did not run at start-up"
    finally:
        worker.stop()

    assert worker.running is False
    assert counts["rotations"] == 1
    assert counts["shutdown"] is True


def test_worker_one_shot_helpers_delegate():
    store = FakeLogStore(streams=["a"])
    scheduler, _, _, _ = _build_scheduler([make_definition()])
    worker = UptimeWorker(scheduler, LogRotator(store, clock=lambda: BASE_TIME))

    wait(worker.run_check_cycle())
    report = worker.rotate_logs()
    worker.stop()

    assert report.rotated == {"a": "a-1704110400000"}


def test_default_notification_channel_selection(monkeypatch):
    assert isinstance(service.default_notification_channel("sms"), SmsChannel)
    assert isinstance(service.default_notification_channel("EMAIL"), EmailChannel)
    with pytest.raises(ValueError):
        service.default_notification_channel("pager")

    monkeypatch.setattr(configuration, "get_notification_channel", lambda: "email")
    assert isinstance(service.default_notification_channel(), EmailChannel)


def test_build_worker_wires_file_collaborators(tmp_path, monkeypatch):
    settings = configuration.WorkerSettings(
        check_interval=60.0,
        rotation_interval=86400.0,
        max_workers=2,
        max_timeout=5.0,
        checks_directory=tmp_path / "checks",
        logs_directory=tmp_path / "logs",
        channel="sms",
        alert_template=configuration.DEFAULT_ALERT_TEMPLATE,
    )
    sent = []

    class RecordingChannel:
        name = "recording"

        def send(self, address, message):
            sent.append((address, message))

    monkeypatch.setattr(
        service.ProbeExecutor, "_perform",
        lambda self, check: {"response_code": 500})

    worker = service.build_worker(settings, channel=RecordingChannel())
    FileCheckRegistry(settings.checks_directory).save_check(
        make_definition(state="up", last_checked="2024-01-01T11:59:00+00:00"))

    wait(worker.run_check_cycle())
    report = worker.rotate_logs()
    worker.stop()

    assert len(sent) == 1
    assert sent[0][1].endswith("is currently down")
    assert list(report.rotated) == ["check-1"]
    document = FileCheckRegistry(settings.checks_directory).load_check("check-1")
    assert document["state"] == "down"


def test_cycle_larger_than_pool_is_reported(caplog):
    scheduler, _, _, prober = _build_scheduler(
        [make_definition(id=f"check-{index}") for index in range(6)])
    try:
        wait(scheduler.run_cycle())
    finally:
        scheduler.shutdown()

    assert len(prober.probed) == 6
    assert "monitor.scheduler.backlog checks=6 max_workers=4" in caplog.text


def test_cycle_within_pool_is_not_reported(caplog):
    scheduler, _, _, _ = _build_scheduler(
        [make_definition(id=f"check-{index}") for index in range(4)])
    try:
        wait(scheduler.run_cycle())
    finally:
        scheduler.shutdown()

    assert "monitor.scheduler.backlog" not in caplog.text


def test_scheduler_defaults_come_from_configuration():
    registry = FakeRegistry()
    processor = OutcomeProcessor(registry, FakeLogStore(), _NullChannel())
    scheduler = CheckScheduler(registry, ProbeExecutor(), processor)

    assert scheduler._max_workers == configuration.DEFAULT_MAX_WORKERS
    assert scheduler._max_timeout == configuration.DEFAULT_MAX_TIMEOUT
