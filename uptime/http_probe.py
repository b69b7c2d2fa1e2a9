# -*- codeing = utf-8 -*-
# @Create: 2023-03-29 3:23 p.m.
# @Update: 2025-10-24 11:53 p.m.
# @Author: John Zhao
"""Probe executor: one outbound HTTP(S) request per check."""

import logging
import threading
from typing import Any, Callable, Dict, Optional, TypeVar

import requests

from .errors import ProbeError
from .models import Check, ProbeOutcome

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Continuation = Callable[[Check, ProbeOutcome], T]


class ProbeExecutor:
    """Issue a single request for a check and classify the result.

    The executor never raises past its boundary: transport failures and
    timeouts are represented as :class:`ProbeError` values on the outcome.
    """

    def __init__(
        self,
        *,
        request_callable: Optional[Callable[..., Any]] = None,
    ) -> None:
        self._request = request_callable

    def probe(self, check: Check) -> ProbeOutcome:
        outcome = ProbeOutcome()
        outcome.complete(**self._perform(check))
        return outcome

    def execute(self, check: Check,
                continuation: Continuation) -> Optional[T]:
        """Probe ``check`` and hand the outcome to ``continuation`` once."""

        outcome = ProbeOutcome()
        return self.complete(check, outcome, continuation,
                             **self._perform(check))

    def complete(
        self,
        check: Check,
        outcome: ProbeOutcome,
        continuation: Continuation,
        **result: Any,
    ) -> Optional[T]:
        """Deliver one completion signal for ``outcome``.

        Only the first signal for an outcome reaches the continuation; a
        transport that reports both a response and an error for the same
        request has its second signal dropped here.
        """

        if not outcome.complete(**result):
            LOGGER.debug(
                "monitor.probe.duplicate_signal check=%s result=%s",
                check.id,
                result,
            )
            return None
        return continuation(check, outcome)

    def _perform(self, check: Check) -> Dict[str, Any]:
        """Run the request on a daemon thread bounded by the check timeout.

        A request still running when the timeout elapses is abandoned and
        the check is classified as timed out.
        """

        result: Dict[str, Any] = {}

        def _target() -> None:
            result.update(self._request_once(check))

        worker = threading.Thread(target=_target,
                                  name=f"probe-{check.id}",
                                  daemon=True)
        worker.start()
        worker.join(check.timeout_seconds)
        if worker.is_alive():
            LOGGER.warning(
                "monitor.probe.deadline_exceeded check=%s method=%s url=%s timeout=%s",
                check.id,
                check.method,
                check.url,
                check.timeout_seconds,
            )
            return {"error": ProbeError(ProbeError.TIMEOUT)}
        if not result:
            return {
                "error": ProbeError(ProbeError.CONNECTION,
                                    "probe ended without a result")
            }
        return result

    def _request_once(self, check: Check) -> Dict[str, Any]:
        request_callable = self._request or requests.request
        url = check.url
        try:
            response = request_callable(
                check.method,
                url,
                timeout=check.timeout_seconds,
                allow_redirects=False,
                stream=True,
            )
        except requests.Timeout as exc:
            LOGGER.warning(
                "monitor.probe.timeout check=%s method=%s url=%s timeout=%s",
                check.id,
                check.method,
                url,
                check.timeout_seconds,
            )
            LOGGER.debug("monitor.probe.timeout_detail check=%s error=%s",
                         check.id, exc)
            return {"error": ProbeError(ProbeError.TIMEOUT)}
        except requests.RequestException as exc:
            LOGGER.error(
                "monitor.probe.error check=%s method=%s url=%s error=%s",
                check.id,
                check.method,
                url,
                exc,
            )
            return {"error": ProbeError(ProbeError.CONNECTION, str(exc))}
        except Exception as exc:
            # urllib3 parse errors (e.g. over-long host labels) are not RequestExceptions.
            LOGGER.error(
                "monitor.probe.error check=%s method=%s url=%s error_type=%s error=%s",
                check.id,
                check.method,
                url,
                type(exc).__name__,
                exc,
            )
            return {"error": ProbeError(ProbeError.CONNECTION, str(exc))}

        try:
            status_code = response.status_code
        finally:
            close = getattr(response, "close", None)
            if callable(close):
                close()

        LOGGER.info(
            "monitor.probe.response check=%s method=%s url=%s status=%s",
            check.id,
            check.method,
            url,
            status_code,
        )
        return {"response_code": int(status_code)}
