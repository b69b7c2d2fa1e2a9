# -*- codeing = utf-8 -*-
# @Create: 2025-10-24 11:53 p.m.
# @Update: 2025-10-24 11:53 p.m.
# @Author: John Zhao
"""Narrow interfaces of the services the check pipeline depends on."""

from typing import Any, Mapping, Sequence, Union

from .models import Check


class CheckRegistry:
    """Source of check definitions and sink for evaluated state."""

    def list_checks(
        self,
    ) -> Sequence[Union[Check, Mapping[str, Any]]]:  # pragma: no cover - interface contract
        """Return every registered definition; raise ``ReadError`` on failure."""

        raise NotImplementedError

    def write_check(self, check: Check) -> None:  # pragma: no cover - interface contract
        """Persist ``state`` and ``last_checked``; raise ``WriteError`` on failure."""

        raise NotImplementedError


class LogStore:
    """Append-only outcome streams that can be compressed and truncated.

    Every method raises ``OSError`` on failure.
    """

    def append(self, stream_id: str, record: str) -> None:  # pragma: no cover - interface contract
        raise NotImplementedError

    def list_active_streams(self) -> Sequence[str]:  # pragma: no cover - interface contract
        raise NotImplementedError

    def compress(self, stream_id: str, archive_id: str) -> None:  # pragma: no cover - interface contract
        raise NotImplementedError

    def truncate(self, stream_id: str) -> None:  # pragma: no cover - interface contract
        raise NotImplementedError


class NotificationChannel:
    """Delivers alert messages; raises ``DeliveryError`` on failure."""

    name = "notification"

    def send(self, address: str, message: str) -> None:  # pragma: no cover - interface contract
        raise NotImplementedError
