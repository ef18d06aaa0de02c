"""
Tests for the status record line format.

Checklist:
- Six pipe-delimited fields in documented order, newline-terminated
- Timestamp is YYYY-MM-DD HH:MM:SS
- Delimiters and line breaks are rejected in every text field
- Malformed lines raise StatusRecordError
"""

import re
from datetime import datetime

import pytest

from blackboard.exceptions import StatusRecordError
from blackboard.schema import StatusRecord, status_filename


def test_to_line_field_order_and_format():
    record = StatusRecord.create(
        host="node07",
        pid=4312,
        item="report",
        task="preprocessing",
        message="started",
        timestamp=datetime(2011, 10, 12, 14, 3, 11, 999),
    )

    assert record.to_line() == "2011-10-12 14:03:11|node07|4312|report|preprocessing|started\n"


def test_default_timestamp_is_local_whole_seconds():
    record = StatusRecord.create(host="h", pid=1, item="a", task="t")

    assert record.timestamp.microsecond == 0
    assert abs((datetime.now() - record.timestamp).total_seconds()) < 5
    stamp = record.to_line().split("|")[0]
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", stamp)


def test_from_line_parses_encoded_record():
    line = "2024-03-01 09:00:00|worker-1|77|x.tar|postprocessing|completed\n"

    record = StatusRecord.from_line(line)

    assert record.timestamp == datetime(2024, 3, 1, 9, 0, 0)
    assert record.host == "worker-1"
    assert record.pid == 77
    assert record.item == "x.tar"
    assert record.task == "postprocessing"
    assert record.message == "completed"


def test_empty_message_is_allowed():
    record = StatusRecord.from_line("2024-03-01 09:00:00|h|1|a|t|")

    assert record.message == ""


@pytest.mark.parametrize("field", ["host", "item", "task", "message"])
@pytest.mark.parametrize("bad", ["a|b", "a\nb", "a\rb"])
def test_fields_reject_delimiters(field, bad):
    fields = {"host": "h", "pid": 1, "item": "a", "task": "t", "message": "m"}
    fields[field] = bad

    with pytest.raises(StatusRecordError):
        StatusRecord.create(**fields)


@pytest.mark.parametrize(
    "line",
    [
        "",
        "\n",
        "garbage",
        "2024-03-01 09:00:00|h|1|a|t",
        "2024-03-01 09:00:00|h|1|a|t|m|extra",
        "2024/03/01 09:00:00|h|1|a|t|m",
        "2024-03-01 09:00:00|h|pid|a|t|m",
        "2024-03-01 09:00:00||1|a|t|m",
        "2024-03-01 09:00:00|h|1||t|m",
    ],
)
def test_from_line_rejects_malformed(line):
    with pytest.raises(StatusRecordError):
        StatusRecord.from_line(line)


def test_status_record_error_is_value_error():
    with pytest.raises(ValueError):
        StatusRecord.from_line("nope")


def test_status_filename():
    assert status_filename("report", "preprocessing") == "report.preprocessing.status"
