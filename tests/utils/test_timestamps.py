from datetime import UTC, datetime, timedelta, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from jobmirror.utils import local_day_range, parse_timestamp, to_iso_utc


@pytest.mark.parametrize("raw,expected", [
    ("2024-05-01T04:00:00.000Z", "2024-05-01T04:00:00.000Z"),
    ("2024-05-01T04:00:00Z", "2024-05-01T04:00:00.000Z"),
    ("2024-05-01T10:00:00+06:00", "2024-05-01T04:00:00.000Z"),
    ("2024-05-01T04:00:00", "2024-05-01T04:00:00.000Z"),
    ("2024-05-01", "2024-05-01T00:00:00.000Z"),
    ("  2024-05-01T04:00:00.123456Z ", "2024-05-01T04:00:00.123Z"),
])
def test_upstream_timestamps_normalize_to_utc_millis(raw, expected):
    assert to_iso_utc(parse_timestamp(raw)) == expected


@pytest.mark.parametrize("raw", ["", "   ", "yesterday", "2024-13-01T00:00:00Z"])
def test_invalid_timestamps_raise(raw):
    with pytest.raises(ValueError):
        parse_timestamp(raw)


def test_naive_datetime_is_taken_as_utc():
    assert to_iso_utc(datetime(2024, 5, 1, 4, 0)) == "2024-05-01T04:00:00.000Z"


@pytest.mark.parametrize("now,expected", [
    (datetime(2024, 5, 10, 6, 0, tzinfo=UTC), ("2024-05-09T18:00:00.000Z", "2024-05-10T18:00:00.000Z")),
    (datetime(2024, 5, 10, 18, 0, tzinfo=UTC), ("2024-05-10T18:00:00.000Z", "2024-05-11T18:00:00.000Z")),
    (datetime(2024, 5, 10, 17, 59, 59, tzinfo=UTC), ("2024-05-09T18:00:00.000Z", "2024-05-10T18:00:00.000Z")),
])
def test_local_day_range_follows_dhaka_midnight(now, expected):
    assert local_day_range(now) == expected


_aware = st.datetimes(
    min_value=datetime(2000, 1, 1),
    max_value=datetime(2100, 1, 1),
    timezones=st.sampled_from([UTC, timezone(timedelta(hours=6)), timezone(timedelta(hours=-5))]),
)


@given(a=_aware, b=_aware)
def test_string_order_matches_time_order(a, b):
    a_iso, b_iso = to_iso_utc(a), to_iso_utc(b)
    a_ms, b_ms = parse_timestamp(a_iso), parse_timestamp(b_iso)

    assert (a_iso < b_iso) == (a_ms < b_ms)
    assert (a_iso == b_iso) == (a_ms == b_ms)


@given(now=_aware)
def test_now_lies_within_its_local_day(now):
    start, end = local_day_range(now)

    assert start <= to_iso_utc(now) < end
    assert parse_timestamp(end) - parse_timestamp(start) == timedelta(days=1)
