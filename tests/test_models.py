import datetime
import json

import pytest

import configuration
from conftest import BASE_TIME, make_check, make_definition
from uptime.errors import ProbeError, ValidationError
from uptime.models import (
    CheckState,
    LogRecord,
    ProbeOutcome,
    parse_check,
    parse_timestamp,
)


def test_parse_check_normalises_fields():
    check = parse_check(
        make_definition(protocol="HTTPS", method="post", path="/status/live"))

    assert check.protocol == "https"
    assert check.method == "POST"
    assert check.path == "status/live"
    assert check.success_codes == frozenset({200})
    assert check.timeout_seconds == 3.0
    assert check.url == "https://example.com/status/live"
    assert check.state is None
    assert check.last_checked is None


def test_parse_check_accepts_combined_url_field():
    definition = make_definition(url="example.org/api/ping")
    del definition["host"]
    del definition["path"]

    check = parse_check(definition)

    assert check.host == "example.org"
    assert check.path == "api/ping"


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"id": ""}, "id"),
        ({"protocol": "ftp"}, "protocol"),
        ({"host": "  "}, "host"),
        ({"method": "PATCH"}, "method"),
        ({"timeout_seconds": 0}, "timeout_seconds"),
        ({"timeout_seconds": 6}, "timeout_seconds"),
        ({"timeout_seconds": True}, "timeout_seconds"),
        ({"success_codes": []}, "success_codes"),
        ({"success_codes": "200"}, "success_codes"),
        ({"success_codes": [200, "201"]}, "success_codes"),
        ({"contact": None}, "contact"),
        ({"path": 12}, "path"),
    ],
)
def test_parse_check_rejects_malformed_definitions(overrides, field):
    with pytest.raises(ValidationError) as excinfo:
        parse_check(make_definition(**overrides))
    assert excinfo.value.field == field


def test_parse_check_rejects_non_mapping():
    with pytest.raises(ValidationError):
        parse_check(["not", "a", "check"])


def test_parse_check_respects_configured_max_timeout():
    check = parse_check(make_definition(timeout_seconds=8), max_timeout=10)
    assert check.timeout_seconds == 8.0


def test_parse_check_default_limit_is_the_configured_default():
    limit = configuration.DEFAULT_MAX_TIMEOUT
    assert parse_check(make_definition(timeout_seconds=limit)).timeout_seconds == limit
    with pytest.raises(ValidationError):
        parse_check(make_definition(timeout_seconds=limit + 0.5))


def test_parse_check_is_lenient_with_runtime_fields():
    check = parse_check(make_definition(state="sideways", last_checked="soon"))
    assert check.state is None
    assert check.last_checked is None

    check = parse_check(
        make_definition(state="down", last_checked="2024-01-01T12:00:00+00:00"))
    assert check.state is CheckState.DOWN
    assert check.last_checked == BASE_TIME


def test_parse_check_round_trips_a_check_instance():
    original = make_check(state="up", last_checked=BASE_TIME.isoformat())
    assert parse_check(original) == original


def test_parse_timestamp_variants():
    assert parse_timestamp(1704110400000) == BASE_TIME
    assert parse_timestamp(datetime.datetime(2024, 1, 1, 12, 0, 0)) == BASE_TIME
    assert parse_timestamp(0) is None
    assert parse_timestamp(False) is None
    assert parse_timestamp("") is None


def test_probe_outcome_completes_once():
    outcome = ProbeOutcome()
    assert outcome.completed is False

    assert outcome.complete(response_code=200) is True
    assert outcome.complete(error=ProbeError(ProbeError.CONNECTION, "reset")) is False

    assert outcome.response_code == 200
    assert outcome.error is None


def test_probe_outcome_requires_exactly_one_result():
    outcome = ProbeOutcome()
    with pytest.raises(ValueError):
        outcome.complete()
    with pytest.raises(ValueError):
        outcome.complete(response_code=200,
                         error=ProbeError(ProbeError.TIMEOUT))


def test_probe_outcome_sent_flag_is_one_shot():
    outcome = ProbeOutcome.from_response(200)
    assert outcome.sent is False
    assert outcome.mark_sent() is True
    assert outcome.mark_sent() is False
    assert outcome.sent is True


def test_probe_error_rejects_unknown_kind():
    with pytest.raises(ValueError):
        ProbeError("dns")


def test_log_record_serialises_snapshot():
    check = make_check()
    outcome = ProbeOutcome.from_error(ProbeError.TIMEOUT)
    record = LogRecord(
        check=check,
        outcome=outcome.to_mapping(),
        state=CheckState.DOWN,
        alert_raised=False,
        time=BASE_TIME,
    )

    payload = json.loads(record.to_json())

    assert payload["check"]["id"] == "check-1"
    assert payload["check"]["success_codes"] == [200]
    assert payload["outcome"] == {
        "error": {"kind": "timeout", "detail": None},
        "response_code": None,
    }
    assert payload["state"] == "down"
    assert payload["alert"] is False
    assert payload["time"] == "2024-01-01T12:00:00+00:00"
