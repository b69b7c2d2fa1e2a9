"""Outcome processor: turns a probe outcome into state, audit and alerts."""

from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type

import configuration

from .collaborators import CheckRegistry, LogStore, NotificationChannel
from .errors import (
    DeliveryError,
    LogAppendError,
    MonitorError,
    PersistenceError,
    WriteError,
)
from .models import Check, CheckState, LogRecord, ProbeOutcome, ProcessedOutcome

LOGGER = logging.getLogger(__name__)


def evaluate_state(check: Check, outcome: ProbeOutcome) -> CheckState:
    if outcome.error is None and outcome.response_code in check.success_codes:
        return CheckState.UP
    return CheckState.DOWN


def is_alert_warranted(check: Check, state: CheckState) -> bool:
    """Alerts fire only on a transition seen after a prior evaluation."""

    return check.last_checked is not None and check.state is not state


def render_alert_message(check: Check,
                         state: CheckState,
                         template: Optional[str] = None) -> str:
    text = template or configuration.DEFAULT_ALERT_TEMPLATE
    return text.format(
        check_id=check.id,
        method=check.method.upper(),
        protocol=check.protocol,
        host=check.host,
        path=check.path,
        url=check.url,
        state=state.value,
    )


@dataclass(frozen=True)
class _StageResult:
    ok: bool
    error: Optional[MonitorError] = None


def _utc_now() -> _dt.datetime:
    return _dt.datetime.now(_dt.UTC)


class OutcomeProcessor:
    """Process each probe outcome exactly once.

    The pipeline is log -> persist -> notify. Each stage reports its own
    failure as a value so the partial-failure rules stay explicit: a
    failed append does not stop persistence, a failed write suppresses
    the alert, and a failed delivery changes nothing that was stored.
    """

    def __init__(
        self,
        registry: CheckRegistry,
        log_store: LogStore,
        channel: NotificationChannel,
        *,
        clock: Optional[Callable[[], _dt.datetime]] = None,
        alert_template: Optional[str] = None,
    ) -> None:
        self._registry = registry
        self._log_store = log_store
        self._channel = channel
        self._clock = clock or _utc_now
        self._alert_template = alert_template

    def process(self, check: Check,
                outcome: ProbeOutcome) -> ProcessedOutcome:
        if not outcome.mark_sent():
            LOGGER.debug("monitor.outcome.already_sent check=%s", check.id)
            return ProcessedOutcome(check=check,
                                    outcome=outcome,
                                    duplicate=True)

        state = evaluate_state(check, outcome)
        alert_warranted = is_alert_warranted(check, state)
        now = self._clock()
        errors = []

        record = LogRecord(
            check=check,
            outcome=outcome.to_mapping(),
            state=state,
            alert_raised=alert_warranted,
            time=now,
        )
        logged = self._append_log(record)
        if not logged.ok:
            errors.append(logged.error)

        updated = check.evaluated(state, now)
        persisted = self._persist(updated)
        notified = _StageResult(ok=False)
        if not persisted.ok:
            errors.append(persisted.error)
            if alert_warranted:
                LOGGER.warning(
                    "monitor.outcome.alert_suppressed check=%s state=%s",
                    check.id,
                    state.value,
                )
            updated = check
        elif alert_warranted:
            notified = self._notify(updated)
            if not notified.ok:
                errors.append(notified.error)
        else:
            LOGGER.debug("monitor.outcome.no_alert check=%s state=%s",
                         check.id, state.value)

        return ProcessedOutcome(
            check=updated,
            outcome=outcome,
            state=state,
            alert_warranted=alert_warranted,
            record=record,
            logged=logged.ok,
            persisted=persisted.ok,
            notified=notified.ok,
            errors=tuple(errors),
        )

    def _append_log(self, record: LogRecord) -> _StageResult:
        return self._attempt(
            "log",
            record.check.id,
            lambda: self._log_store.append(record.check.id, record.to_json()),
            catch=(OSError, MonitorError),
            wrap=LogAppendError,
        )

    def _persist(self, check: Check) -> _StageResult:
        return self._attempt(
            "persist",
            check.id,
            lambda: self._registry.write_check(check),
            catch=(WriteError, OSError),
            wrap=PersistenceError,
        )

    def _notify(self, check: Check) -> _StageResult:
        message = render_alert_message(check, check.state,
                                       self._alert_template)
        result = self._attempt(
            "notify",
            check.id,
            lambda: self._channel.send(check.contact, message),
            catch=(DeliveryError, OSError),
            wrap=DeliveryError,
        )
        if result.ok:
            LOGGER.info(
                "monitor.outcome.alert_sent check=%s channel=%s message=%s",
                check.id,
                getattr(self._channel, "name", "notification"),
                message,
            )
        return result

    @staticmethod
    def _attempt(
        stage: str,
        check_id: str,
        action: Callable[[], None],
        *,
        catch: Tuple[Type[BaseException], ...],
        wrap: Type[MonitorError],
    ) -> _StageResult:
        try:
            action()
        except catch as exc:
            error = exc if isinstance(exc, wrap) else wrap(str(exc))
            if error is not exc:
                error.__cause__ = exc
            LOGGER.error("monitor.outcome.%s_failed check=%s error=%s",
                         stage, check_id, exc)
            return _StageResult(ok=False, error=error)
        LOGGER.debug("monitor.outcome.%s_ok check=%s", stage, check_id)
        return _StageResult(ok=True)
