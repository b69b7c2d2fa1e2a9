# -*- codeing = utf-8 -*-
# @Create: 2025-10-24 11:53 p.m.
# @Update: 2025-10-24 11:53 p.m.
# @Author: John Zhao
"""File-backed check registry: one JSON document per check."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from .collaborators import CheckRegistry
from .errors import ReadError, WriteError
from .log_recorder import encode_stream_name
from .models import Check, format_timestamp

LOGGER = logging.getLogger(__name__)

_DOCUMENT_SUFFIX = ".json"


class FileCheckRegistry(CheckRegistry):
    """Store each check under its own file so writes never interfere."""

    def __init__(self, directory: Union[str, os.PathLike]) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _document_path(self, check_id: str) -> Path:
        return self._directory / f"{encode_stream_name(check_id)}{_DOCUMENT_SUFFIX}"

    def list_checks(self) -> List[Mapping[str, Any]]:
        try:
            if not self._directory.is_dir():
                raise FileNotFoundError(
                    f"Check directory does not exist: {self._directory}")
            paths = sorted(self._directory.glob(f"*{_DOCUMENT_SUFFIX}"))
        except OSError as exc:
            raise ReadError(f"Unable to list checks: {exc}") from exc

        definitions: List[Mapping[str, Any]] = []
        for path in paths:
            try:
                document = self._load(path)
            except (OSError, ValueError) as exc:
                LOGGER.error("monitor.registry.unreadable path=%s error=%s",
                             path, exc)
                continue
            if not isinstance(document, dict):
                LOGGER.error("monitor.registry.not_a_mapping path=%s", path)
                continue
            definitions.append(document)
        return definitions

    def write_check(self, check: Check) -> None:
        """Write back the evaluated fields of ``check``.

        Only ``state`` and ``last_checked`` are replaced; the rest of the
        stored definition is kept as found on disk. The document is swapped
        in atomically, so concurrent writers end with the last complete one.
        """

        path = self._document_path(check.id)
        try:
            document = self._load(path)
        except FileNotFoundError as exc:
            raise WriteError(f"Check {check.id} is no longer registered") from exc
        except (OSError, ValueError) as exc:
            raise WriteError(f"Unable to read check {check.id}: {exc}") from exc
        if not isinstance(document, dict):
            raise WriteError(f"Stored check {check.id} is not a mapping")

        document["state"] = check.state.value if check.state else None
        document["last_checked"] = format_timestamp(check.last_checked)
        try:
            self._dump(path, document)
        except OSError as exc:
            raise WriteError(f"Unable to write check {check.id}: {exc}") from exc

    def save_check(self, definition: Union[Check, Mapping[str, Any]]) -> Path:
        """Store a complete definition, replacing any previous one."""

        if isinstance(definition, Check):
            document = definition.to_mapping()
        else:
            document = dict(definition)
        check_id = document.get("id")
        if not isinstance(check_id, str) or not check_id.strip():
            raise ValueError("A check definition needs a non-empty id")
        path = self._document_path(check_id)
        self._directory.mkdir(parents=True, exist_ok=True)
        self._dump(path, document)
        return path

    def load_check(self, check_id: str) -> Dict[str, Any]:
        return self._load(self._document_path(check_id))

    @staticmethod
    def _load(path: Path) -> Any:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    @staticmethod
    def _dump(path: Path, document: Mapping[str, Any]) -> None:
        descriptor, temp_name = tempfile.mkstemp(prefix=f".{path.stem}.",
                                                 suffix=".tmp",
                                                 dir=path.parent)
        try:
            with os.fdopen(descriptor, "w", encoding="utf-8") as handle:
                json.dump(document, handle, ensure_ascii=False, indent=2,
                          sort_keys=True)
            os.replace(temp_name, path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
