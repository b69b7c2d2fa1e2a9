# -*- codeing = utf-8 -*-
# @Create: 2025-10-24 11:53 p.m.
# @Update: 2025-10-24 11:53 p.m.
# @Author: John Zhao
"""Data model for checks, probe outcomes and audit records."""

from __future__ import annotations

import datetime as _dt
import json
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Union

import configuration

from .errors import MonitorError, ProbeError, ValidationError

SUPPORTED_PROTOCOLS = frozenset({"http", "https"})
SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})


class CheckState(Enum):
    """Reachability of a check as decided by its last evaluation."""

    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class Check:
    """Describe a monitored endpoint and its last known state."""

    id: str
    protocol: str
    host: str
    path: str
    method: str
    timeout_seconds: float
    success_codes: FrozenSet[int]
    contact: str
    state: Optional[CheckState] = None
    last_checked: Optional[_dt.datetime] = None

    @property
    def url(self) -> str:
        base_url = f"{self.protocol}://{self.host}"
        if self.path:
            return f"{base_url}/{self.path}"
        return f"{base_url}/"

    def evaluated(self, state: CheckState,
                  checked_at: _dt.datetime) -> "Check":
        """Return a copy carrying the result of a new evaluation."""

        return replace(self, state=state, last_checked=checked_at)

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "protocol": self.protocol,
            "host": self.host,
            "path": self.path,
            "method": self.method,
            "timeout_seconds": self.timeout_seconds,
            "success_codes": sorted(self.success_codes),
            "contact": self.contact,
            "state": self.state.value if self.state else None,
            "last_checked": format_timestamp(self.last_checked),
        }


class ProbeOutcome:
    """Classified result of one probe attempt.

    An outcome starts empty and is completed exactly once, either with a
    response code or with a :class:`ProbeError`. Later completion signals
    for the same request are ignored. ``mark_sent`` is the one-shot flag
    claimed by the outcome processor.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._completed = False
        self._sent = False
        self.error: Optional[ProbeError] = None
        self.response_code: Optional[int] = None

    @classmethod
    def from_response(cls, response_code: int) -> "ProbeOutcome":
        outcome = cls()
        outcome.complete(response_code=response_code)
        return outcome

    @classmethod
    def from_error(cls, kind: str,
                   detail: Optional[str] = None) -> "ProbeOutcome":
        outcome = cls()
        outcome.complete(error=ProbeError(kind, detail))
        return outcome

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def sent(self) -> bool:
        return self._sent

    def complete(
        self,
        *,
        response_code: Optional[int] = None,
        error: Optional[ProbeError] = None,
    ) -> bool:
        """Record the result; return ``False`` if one was already recorded."""

        if (response_code is None) == (error is None):
            raise ValueError(
                "An outcome carries either a response code or an error")
        with self._lock:
            if self._completed:
                return False
            self.response_code = response_code
            self.error = error
            self._completed = True
            return True

    def mark_sent(self) -> bool:
        with self._lock:
            if self._sent:
                return False
            self._sent = True
            return True

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "error": self.error.to_mapping() if self.error else None,
            "response_code": self.response_code,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return (f"ProbeOutcome(response_code={self.response_code!r}, "
                f"error={self.error!r}, sent={self._sent!r})")


@dataclass(frozen=True)
class LogRecord:
    """Append-only audit entry written once per completed probe."""

    check: Check
    outcome: Mapping[str, Any]
    state: CheckState
    alert_raised: bool
    time: _dt.datetime

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "check": self.check.to_mapping(),
            "outcome": dict(self.outcome),
            "state": self.state.value,
            "alert": self.alert_raised,
            "time": format_timestamp(self.time),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_mapping(), ensure_ascii=False,
                          sort_keys=True)


@dataclass(frozen=True)
class ProcessedOutcome:
    """Everything one pass of the outcome processor did."""

    check: Check
    outcome: ProbeOutcome
    state: Optional[CheckState] = None
    alert_warranted: bool = False
    record: Optional[LogRecord] = None
    logged: bool = False
    persisted: bool = False
    notified: bool = False
    errors: Tuple[MonitorError, ...] = field(default_factory=tuple)
    duplicate: bool = False


def format_timestamp(value: Optional[_dt.datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def parse_timestamp(value: object) -> Optional[_dt.datetime]:
    """Parse ISO strings, datetimes or epoch milliseconds into UTC datetimes.

    Anything else (including non-positive numbers) yields ``None``.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, _dt.datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        if value <= 0:
            return None
        try:
            return _dt.datetime.fromtimestamp(value / 1000, _dt.UTC)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = _dt.datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=_dt.UTC)
    return parsed.astimezone(_dt.UTC)


def _require_text(definition: Mapping[str, Any], key: str,
                  check_id: Optional[str]) -> str:
    value = definition.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} must be a non-empty string",
                              field=key,
                              check_id=check_id)
    return value.strip()


def _split_legacy_url(definition: Mapping[str, Any]) -> Tuple[Any, Any]:
    """Support definitions that store ``host/path`` as a single ``url``."""

    host = definition.get("host")
    path = definition.get("path")
    url = definition.get("url")
    if host is None and isinstance(url, str):
        host, _, legacy_path = url.strip().lstrip("/").partition("/")
        if path is None:
            path = legacy_path
    return host, path


def _parse_success_codes(raw: object, check_id: Optional[str]) -> FrozenSet[int]:
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
        raise ValidationError("success_codes must be a list of integers",
                              field="success_codes",
                              check_id=check_id)
    codes = []
    for code in raw:
        if isinstance(code, bool) or not isinstance(code, int):
            raise ValidationError(
                f"success_codes contains a non-integer value: {code!r}",
                field="success_codes",
                check_id=check_id,
            )
        codes.append(code)
    if not codes:
        raise ValidationError("success_codes must not be empty",
                              field="success_codes",
                              check_id=check_id)
    return frozenset(codes)


def _parse_timeout(raw: object, max_timeout: float,
                   check_id: Optional[str]) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValidationError("timeout_seconds must be a number",
                              field="timeout_seconds",
                              check_id=check_id)
    if not 0 < raw <= max_timeout:
        raise ValidationError(
            f"timeout_seconds must be within (0, {max_timeout}]",
            field="timeout_seconds",
            check_id=check_id,
        )
    return float(raw)


def _parse_state(raw: object) -> Optional[CheckState]:
    if isinstance(raw, CheckState):
        return raw
    try:
        return CheckState(raw)
    except ValueError:
        return None


def parse_check(
    definition: Union[Check, Mapping[str, Any]],
    *,
    max_timeout: float = configuration.DEFAULT_MAX_TIMEOUT,
) -> Check:
    """Validate a stored definition and build a :class:`Check`.

    Probe parameters must be well formed or ``ValidationError`` is raised.
    Runtime fields are lenient: an unknown ``state`` or an unreadable
    ``last_checked`` is treated as never evaluated.
    """

    if isinstance(definition, Check):
        definition = definition.to_mapping()
    if not isinstance(definition, Mapping):
        raise ValidationError("check definition must be a mapping")

    raw_id = definition.get("id")
    check_id = raw_id if isinstance(raw_id, str) else None
    check_id = _require_text(definition, "id", check_id)

    protocol = _require_text(definition, "protocol", check_id).lower()
    if protocol not in SUPPORTED_PROTOCOLS:
        raise ValidationError(f"Unsupported protocol: {protocol}",
                              field="protocol",
                              check_id=check_id)

    raw_host, raw_path = _split_legacy_url(definition)
    host = _require_text({"host": raw_host}, "host", check_id)
    if raw_path is None:
        raw_path = ""
    if not isinstance(raw_path, str):
        raise ValidationError("path must be a string",
                              field="path",
                              check_id=check_id)
    path = raw_path.strip().lstrip("/")

    method = _require_text(definition, "method", check_id).upper()
    if method not in SUPPORTED_METHODS:
        raise ValidationError(f"Unsupported method: {method}",
                              field="method",
                              check_id=check_id)

    timeout_seconds = _parse_timeout(definition.get("timeout_seconds"),
                                     max_timeout, check_id)
    success_codes = _parse_success_codes(definition.get("success_codes"),
                                         check_id)
    contact = _require_text(definition, "contact", check_id)

    return Check(
        id=check_id,
        protocol=protocol,
        host=host,
        path=path,
        method=method,
        timeout_seconds=timeout_seconds,
        success_codes=success_codes,
        contact=contact,
        state=_parse_state(definition.get("state")),
        last_checked=parse_timestamp(definition.get("last_checked")),
    )
