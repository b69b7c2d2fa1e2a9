# -*- codeing = utf-8 -*-
# @Create: 2023-02-16 3:37 p.m.
# @Update: 2025-10-24 11:53 p.m.
# @Author: John Zhao
"""File-backed log store: one ``.log`` stream per check plus gzip archives."""

import gzip
import logging
import os
import shutil
import threading
from pathlib import Path
from typing import Dict, List, Union
from urllib.parse import quote, unquote

from .collaborators import LogStore

LOGGER = logging.getLogger(__name__)

ACTIVE_SUFFIX = ".log"
ARCHIVE_SUFFIX = ".gz"


def encode_stream_name(name) -> str:
    """Turn a stream id into a file name that no other id maps to."""

    text = "" if name is None else str(name)
    if not text:
        raise ValueError("A stream id must not be empty")
    # Separators and every other unsafe character are percent-encoded.
    return quote(text, safe="")


def decode_stream_name(file_stem: str) -> str:
    return unquote(file_stem)


class FileLogStore(LogStore):
    """Keep one append-only file per stream.

    Appends, compression and truncation share one lock. ``truncate`` drops
    only the bytes captured by the preceding ``compress`` of that stream,
    so records appended in between stay in the active file.
    """

    def __init__(self, directory: Union[str, os.PathLike]) -> None:
        self._directory = Path(directory)
        self._lock = threading.Lock()
        self._archived_sizes: Dict[str, int] = {}

    @property
    def directory(self) -> Path:
        return self._directory

    def _ensure_folder(self) -> Path:
        self._directory.mkdir(parents=True, exist_ok=True)
        return self._directory

    def stream_path(self, stream_id: str) -> Path:
        return self._directory / f"{encode_stream_name(stream_id)}{ACTIVE_SUFFIX}"

    def archive_path(self, archive_id: str) -> Path:
        return self._directory / f"{encode_stream_name(archive_id)}{ARCHIVE_SUFFIX}"

    def append(self, stream_id: str, record: str) -> None:
        path = self.stream_path(stream_id)
        with self._lock:
            self._ensure_folder()
            with path.open("a", encoding="utf-8") as file:
                file.write(str(record).rstrip("\n") + "\n")

    def _list(self, suffix: str) -> List[str]:
        if not self._directory.exists():
            return []
        return sorted(
            decode_stream_name(path.name[:-len(suffix)])
            for path in self._directory.iterdir()
            if path.is_file() and path.name.endswith(suffix))

    def list_active_streams(self) -> List[str]:
        return self._list(ACTIVE_SUFFIX)

    def list_archives(self) -> List[str]:
        return self._list(ARCHIVE_SUFFIX)

    def compress(self, stream_id: str, archive_id: str) -> None:
        source = self.stream_path(stream_id)
        target = self.archive_path(archive_id)
        partial = target.with_name(target.name + ".part")

        with self._lock:
            if target.exists():
                raise FileExistsError(f"Archive already exists: {target}")
            try:
                with source.open("rb") as reader, gzip.open(partial, "wb") as writer:
                    shutil.copyfileobj(reader, writer)
                    archived_size = reader.tell()
                os.replace(partial, target)
            except OSError:
                partial.unlink(missing_ok=True)
                raise
            self._archived_sizes[stream_id] = archived_size

        LOGGER.debug("monitor.logs.compressed stream=%s archive=%s bytes=%s",
                     stream_id, target.name, archived_size)

    def decompress(self, archive_id: str) -> str:
        with gzip.open(self.archive_path(archive_id), "rt",
                       encoding="utf-8") as reader:
            return reader.read()

    def truncate(self, stream_id: str) -> None:
        path = self.stream_path(stream_id)
        with self._lock:
            if not path.exists():
                raise FileNotFoundError(f"Log stream does not exist: {path}")
            archived_size = self._archived_sizes.pop(stream_id, None)
            with path.open("r+b") as file:
                if archived_size is None:
                    file.truncate(0)
                    return
                file.seek(archived_size)
                remainder = file.read()
                file.seek(0)
                file.write(remainder)
                file.truncate()
        if remainder:
            LOGGER.debug("monitor.logs.kept_tail stream=%s bytes=%s",
                         stream_id, len(remainder))

    def read(self, stream_id: str) -> List[str]:
        path = self.stream_path(stream_id)
        if not path.exists():
            return []
        with path.open("r", encoding="utf-8") as file:
            return [line.rstrip("\n") for line in file if line.strip()]
