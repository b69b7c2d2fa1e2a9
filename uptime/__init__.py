# -*- codeing = utf-8 -*-
# @Create: 2023-03-29 3:23 p.m.
# @Update: 2025-10-24 11:53 p.m.
# @Author: John Zhao
"""Check execution, state transitions, scheduling and log rotation."""

from . import http_probe, log_recorder, log_rotation, registry, send_email, send_sms
from .errors import (
    DeliveryError,
    LogAppendError,
    MonitorError,
    PersistenceError,
    ProbeError,
    ReadError,
    RotationError,
    ValidationError,
    WriteError,
)
from .models import Check, CheckState, LogRecord, ProbeOutcome, ProcessedOutcome, parse_check
from .service import CheckScheduler, UptimeWorker, build_worker, default_notification_channel
from .state_machine import OutcomeProcessor

__all__ = [
    "Check",
    "CheckScheduler",
    "CheckState",
    "DeliveryError",
    "LogAppendError",
    "LogRecord",
    "MonitorError",
    "OutcomeProcessor",
    "PersistenceError",
    "ProbeError",
    "ProbeOutcome",
    "ProcessedOutcome",
    "ReadError",
    "RotationError",
    "UptimeWorker",
    "ValidationError",
    "WriteError",
    "build_worker",
    "default_notification_channel",
    "http_probe",
    "log_recorder",
    "log_rotation",
    "parse_check",
    "registry",
    "send_email",
    "send_sms",
]
