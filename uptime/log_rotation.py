# -*- codeing = utf-8 -*-
# @Create: 2025-10-24 11:53 p.m.
# @Update: 2025-10-24 11:53 p.m.
# @Author: John Zhao
"""Log rotator: compress each active stream, then truncate it."""

from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from .collaborators import LogStore
from .errors import MonitorError, RotationError

LOGGER = logging.getLogger(__name__)


@dataclass
class RotationReport:
    rotated: Dict[str, str] = field(default_factory=dict)
    failed: Dict[str, RotationError] = field(default_factory=dict)
    empty: bool = False
    error: Optional[MonitorError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failed


def archive_name(stream_id: str, moment: _dt.datetime) -> str:
    return f"{stream_id}-{int(moment.timestamp() * 1000)}"


class LogRotator:
    """Rotate every active stream independently.

    A stream is truncated only after its own compression succeeded, so a
    failed compression never loses records.
    """

    def __init__(
        self,
        log_store: LogStore,
        *,
        clock: Optional[Callable[[], _dt.datetime]] = None,
    ) -> None:
        self._log_store = log_store
        self._clock = clock or (lambda: _dt.datetime.now(_dt.UTC))

    def rotate(self) -> RotationReport:
        report = RotationReport()
        try:
            streams = list(self._log_store.list_active_streams())
        except OSError as exc:
            LOGGER.error("monitor.rotation.list_failed error=%s", exc)
            report.error = RotationError("*", "list", str(exc))
            return report

        if not streams:
            LOGGER.info("monitor.rotation.no_streams")
            report.empty = True
            return report

        for stream_id in streams:
            archive_id = archive_name(stream_id, self._clock())
            outcome = self._rotate_stream(stream_id, archive_id)
            if isinstance(outcome, RotationError):
                report.failed[stream_id] = outcome
            else:
                report.rotated[stream_id] = archive_id

        LOGGER.info("monitor.rotation.summary rotated=%s failed=%s",
                    len(report.rotated), len(report.failed))
        return report

    def _rotate_stream(self, stream_id: str, archive_id: str):
        try:
            self._log_store.compress(stream_id, archive_id)
        except OSError as exc:
            LOGGER.error(
                "monitor.rotation.compress_failed stream=%s archive=%s error=%s",
                stream_id,
                archive_id,
                exc,
            )
            return RotationError(stream_id, "compress", str(exc))

        try:
            self._log_store.truncate(stream_id)
        except OSError as exc:
            LOGGER.error("monitor.rotation.truncate_failed stream=%s error=%s",
                         stream_id, exc)
            return RotationError(stream_id, "truncate", str(exc))

        LOGGER.debug("monitor.rotation.rotated stream=%s archive=%s",
                     stream_id, archive_id)
        return archive_id
