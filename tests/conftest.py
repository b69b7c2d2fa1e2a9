import datetime
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from uptime.errors import DeliveryError, ReadError, WriteError  # noqa: E402
from uptime.models import parse_check  # noqa: E402

BASE_TIME = datetime.datetime(2024, 1, 1, 12, 0, 0, tzinfo=datetime.UTC)


def make_definition(**overrides):
    definition = {
        "id": "check-1",
        "protocol": "https",
        "host": "example.com",
        "path": "health",
        "method": "get",
        "timeout_seconds": 3,
        "success_codes": [200],
        "contact": "5551234567",
        "state": None,
        "last_checked": None,
    }
    definition.update(overrides)
    return definition


def make_check(**overrides):
    return parse_check(make_definition(**overrides))


class FakeRegistry:

    def __init__(self, definitions=None):
        self.definitions = list(definitions or [])
        self.writes = []
        self.fail_reads = False
        self.fail_writes = False

    def list_checks(self):
        if self.fail_reads:
            raise ReadError("registry unavailable")
        return list(self.definitions)

    def write_check(self, check):
        if self.fail_writes:
            raise WriteError("disk full")
        self.writes.append(check)


class FakeLogStore:

    def __init__(self, streams=None):
        self.records = []
        self.streams = list(streams or [])
        self.compressed = []
        self.truncated = []
        self.fail_append = False
        self.fail_list = False
        self.fail_compress = set()
        self.fail_truncate = set()

    def append(self, stream_id, record):
        if self.fail_append:
            raise OSError("read-only file system")
        self.records.append((stream_id, record))

    def list_active_streams(self):
        if self.fail_list:
            raise OSError("log directory missing")
        return list(self.streams)

    def compress(self, stream_id, archive_id):
        if stream_id in self.fail_compress:
            raise OSError(f"cannot compress {stream_id}")
        self.compressed.append((stream_id, archive_id))

    def truncate(self, stream_id):
        if stream_id in self.fail_truncate:
            raise OSError(f"cannot truncate {stream_id}")
        self.truncated.append(stream_id)


class FakeChannel:

    name = "fake"

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, address, message):
        if self.fail:
            raise DeliveryError("gateway rejected message")
        self.sent.append((address, message))


@pytest.fixture
def registry():
    return FakeRegistry()


@pytest.fixture
def log_store():
    return FakeLogStore()


@pytest.fixture
def channel():
    return FakeChannel()
