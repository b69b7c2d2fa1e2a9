# -*- codeing = utf-8 -*-
# @Create: 2025-10-24 11:53 p.m.
# @Update: 2025-10-24 11:53 p.m.
# @Author: John Zhao
"""Error taxonomy shared by the check pipeline and its collaborators."""

from typing import Optional


class MonitorError(Exception):
    """Base class for every failure reported by the worker."""


class ValidationError(MonitorError):
    """A stored check definition is malformed and will be skipped."""

    def __init__(self, message: str, *, field: Optional[str] = None,
                 check_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field
        self.check_id = check_id


class ProbeError(MonitorError):
    """A probe failed at the transport level or timed out."""

    CONNECTION = "connection"
    TIMEOUT = "timeout"

    def __init__(self, kind: str, detail: Optional[str] = None) -> None:
        if kind not in (self.CONNECTION, self.TIMEOUT):
            raise ValueError(f"Unknown probe error kind: {kind}")
        super().__init__(detail or kind)
        self.kind = kind
        self.detail = detail

    def to_mapping(self) -> dict:
        return {"kind": self.kind, "detail": self.detail}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProbeError):
            return NotImplemented
        return (self.kind, self.detail) == (other.kind, other.detail)

    def __hash__(self) -> int:
        return hash((self.kind, self.detail))


class PersistenceError(MonitorError):
    """Writing the evaluated state back to the registry failed."""


class DeliveryError(MonitorError):
    """A notification channel could not deliver an alert."""


class RotationError(MonitorError):
    """Compressing or truncating one log stream failed."""

    def __init__(self, stream_id: str, stage: str, detail: str) -> None:
        super().__init__(f"{stage} failed for {stream_id}: {detail}")
        self.stream_id = stream_id
        self.stage = stage
        self.detail = detail


class ReadError(MonitorError):
    """The check registry could not be read."""


class WriteError(MonitorError):
    """The check registry rejected a write."""


class LogAppendError(MonitorError):
    """An audit record could not be appended to its stream."""
