from datetime import datetime, timedelta, timezone

import pytest

from squishy_mailer.db.types import (
    JSONStringList,
    UTCTimestamp,
    format_timestamp,
    parse_timestamp,
    utc_now,
)


def test_timestamp_layout_keeps_microseconds():
    ts = datetime(2024, 3, 1, 12, 30, 5, 7, tzinfo=timezone.utc)
    assert format_timestamp(ts) == "2024-03-01T12:30:05.000007Z"
    assert parse_timestamp("2024-03-01T12:30:05.000007Z") == ts


def test_timestamp_normalizes_to_utc():
    plus_two = timezone(timedelta(hours=2))
    ts = datetime(2024, 3, 1, 14, 0, 0, tzinfo=plus_two)
    assert format_timestamp(ts) == "2024-03-01T12:00:00.000000Z"


def test_naive_timestamp_rejected():
    with pytest.raises(ValueError):
        format_timestamp(datetime(2024, 3, 1))


def test_text_order_matches_time_order():
    a = utc_now()
    b = a + timedelta(microseconds=1)
    c = a + timedelta(seconds=9)
    assert format_timestamp(a) < format_timestamp(b) < format_timestamp(c)


def test_utc_timestamp_type():
    t = UTCTimestamp()
    ts = datetime(2024, 3, 1, 0, 0, tzinfo=timezone.utc)
    stored = t.process_bind_param(ts, None)
    assert stored == "2024-03-01T00:00:00.000000Z"
    assert t.process_result_value(stored, None) == ts
    assert t.process_bind_param(None, None) is None
    assert t.process_result_value(None, None) is None
    with pytest.raises(ValueError):
        t.process_bind_param("yesterday", None)


def test_json_string_list_type():
    t = JSONStringList()
    assert t.process_bind_param(["a@example.com", "b@example.com"], None) == '["a@example.com", "b@example.com"]'
    assert t.process_result_value('["a@example.com"]', None) == ["a@example.com"]
    assert t.process_result_value("", None) == []
    assert t.process_result_value("[]", None) == []
    with pytest.raises(TypeError):
        t.process_bind_param("a@example.com", None)
    with pytest.raises(ValueError):
        t.process_result_value('{"a": 1}', None)
