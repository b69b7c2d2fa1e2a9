# -*- codeing = utf-8 -*-
# @Create: 2023-02-16 3:37 p.m.
# @Update: 2025-10-24 11:53 p.m.
# @Author: John Zhao
"""Check scheduling and the long-lived worker with its two timers."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional

import configuration

from .collaborators import CheckRegistry, NotificationChannel
from .errors import ReadError, ValidationError
from .http_probe import ProbeExecutor
from .log_recorder import FileLogStore
from .log_rotation import LogRotator, RotationReport
from .models import Check, ProcessedOutcome, parse_check
from .registry import FileCheckRegistry
from .send_email import EmailChannel
from .send_sms import SmsChannel
from .state_machine import OutcomeProcessor

LOGGER = logging.getLogger(__name__)


class CheckScheduler:
    """Fetch every registered check and dispatch one probe per check.

    Probes run on a thread pool and the cycle does not wait for them, so a
    new cycle may start while the previous one is still in flight. The pool
    holds ``max_workers`` threads; when a cycle has more checks than that,
    the extra checks wait for a free thread. Each probe is bounded by its
    timeout, so the wait is at most ``max_timeout`` per queued batch.
    Size ``[Worker].max_workers`` to the number of registered checks to
    keep every probe starting at once.
    """

    def __init__(
        self,
        registry: CheckRegistry,
        prober: ProbeExecutor,
        processor: OutcomeProcessor,
        *,
        executor: Optional[ThreadPoolExecutor] = None,
        max_workers: int = configuration.DEFAULT_MAX_WORKERS,
        max_timeout: float = configuration.DEFAULT_MAX_TIMEOUT,
        event_handler: Optional[Callable[[ProcessedOutcome], None]] = None,
    ) -> None:
        self._registry = registry
        self._prober = prober
        self._processor = processor
        self._executor = executor
        self._owns_executor = executor is None
        self._max_workers = max_workers
        self._max_timeout = max_timeout
        self._event_handler = event_handler or (lambda event: None)
        self._lock = threading.Lock()

    def _ensure_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="check",
                )
            return self._executor

    def run_cycle(self) -> List[Future]:
        try:
            definitions = list(self._registry.list_checks())
        except ReadError as exc:
            LOGGER.error("monitor.scheduler.read_error error=%s", exc)
            return []

        executor = self._ensure_executor()
        futures: List[Future] = []
        for definition in definitions:
            try:
                check = parse_check(definition, max_timeout=self._max_timeout)
            except ValidationError as exc:
                LOGGER.warning(
                    "monitor.scheduler.invalid_check check=%s field=%s error=%s",
                    exc.check_id,
                    exc.field,
                    exc,
                )
                continue
            futures.append(executor.submit(self.evaluate, check))

        LOGGER.info("monitor.scheduler.dispatched total=%s valid=%s",
                    len(definitions), len(futures))
        if self._owns_executor and len(futures) > self._max_workers:
            LOGGER.warning(
                "monitor.scheduler.backlog checks=%s max_workers=%s",
                len(futures),
                self._max_workers,
            )
        return futures

    def evaluate(self, check: Check) -> Optional[ProcessedOutcome]:
        """Run the full pipeline for one check; never raises."""

        try:
            result = self._prober.execute(check, self._processor.process)
        except Exception as exc:
            LOGGER.exception(
                "monitor.scheduler.pipeline_error check=%s error=%s",
                check.id,
                exc,
            )
            return None

        if result is not None:
            try:
                self._event_handler(result)
            except Exception as exc:  # pragma: no cover
                LOGGER.exception(
                    "monitor.scheduler.event_handler_error check=%s error=%s",
                    check.id,
                    exc,
                )
        return result

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            executor = self._executor
            if self._owns_executor:
                self._executor = None
        if executor is not None and self._owns_executor:
            executor.shutdown(wait=wait)


class UptimeWorker:
    """Drive the check cycle and the log rotation on independent timers.

    Both jobs run once as soon as the worker starts and then once per
    interval until :meth:`stop` is called.
    """

    def __init__(
        self,
        scheduler: CheckScheduler,
        rotator: LogRotator,
        *,
        check_interval: float = configuration.DEFAULT_CHECK_INTERVAL,
        rotation_interval: float = configuration.DEFAULT_ROTATION_INTERVAL,
    ) -> None:
        self._scheduler = scheduler
        self._rotator = rotator
        self._check_interval = check_interval
        self._rotation_interval = rotation_interval
        self._threads: list[threading.Thread] = []
        self._stop_event = threading.Event()

    @property
    def running(self) -> bool:
        return bool(self._threads)

    def start(self) -> None:
        if self._threads:
            raise RuntimeError("Worker is already running")

        self._stop_event.clear()
        for name, action, interval in (
            ("check-cycle", self.run_check_cycle, self._check_interval),
            ("log-rotation", self.rotate_logs, self._rotation_interval),
        ):
            thread = threading.Thread(
                name=name,
                target=self._run_timer,
                args=(name, action, interval),
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)
        LOGGER.info(
            "monitor.worker.started check_interval=%s rotation_interval=%s",
            self._check_interval,
            self._rotation_interval,
        )

    def stop(self) -> None:
        self._stop_event.set()
        for thread in self._threads:
            thread.join()
        self._threads.clear()
        self._scheduler.shutdown(wait=True)
        LOGGER.info("monitor.worker.stopped")

    def run_check_cycle(self) -> List[Future]:
        return self._scheduler.run_cycle()

    def rotate_logs(self) -> RotationReport:
        return self._rotator.rotate()

    def _run_timer(self, name: str, action: Callable[[], object],
                   interval: float) -> None:
        interval_seconds = max(float(interval), 0.0)
        while not self._stop_event.is_set():
            try:
                action()
            except Exception as exc:  # pragma: no cover
                LOGGER.exception("monitor.worker.timer_error timer=%s error=%s",
                                 name, exc)
            if self._stop_event.wait(interval_seconds):
                break


def default_notification_channel(
        channel_name: Optional[str] = None) -> NotificationChannel:
    name = (channel_name or configuration.get_notification_channel()).lower()
    if name == "sms":
        return SmsChannel()
    if name == "email":
        return EmailChannel()
    raise ValueError(f"Unknown notification channel: {name}")


def build_worker(
    settings: Optional[configuration.WorkerSettings] = None,
    *,
    channel: Optional[NotificationChannel] = None,
    event_handler: Optional[Callable[[ProcessedOutcome], None]] = None,
) -> UptimeWorker:
    """Assemble a worker with the file-backed collaborators."""

    settings = settings or configuration.get_worker_settings()
    registry = FileCheckRegistry(settings.checks_directory)
    log_store = FileLogStore(settings.logs_directory)
    processor = OutcomeProcessor(
        registry,
        log_store,
        channel or default_notification_channel(settings.channel),
        alert_template=settings.alert_template,
    )
    scheduler = CheckScheduler(
        registry,
        ProbeExecutor(),
        processor,
        max_workers=settings.max_workers,
        max_timeout=settings.max_timeout,
        event_handler=event_handler,
    )
    return UptimeWorker(
        scheduler,
        LogRotator(log_store),
        check_interval=settings.check_interval,
        rotation_interval=settings.rotation_interval,
    )
