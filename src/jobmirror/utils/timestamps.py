"""UTC timestamp helpers.

Every timestamp persisted by the store goes through `to_iso_utc`, which yields
millisecond precision with a `Z` suffix (e.g. `2024-05-01T04:30:00.000Z`).
A single fixed textual format keeps lexicographic comparison in SQL equal to
chronological comparison.
"""

from datetime import UTC, datetime, timedelta, timezone

# Asia/Dhaka. Fixed offset, no daylight saving adjustment.
LOCAL_TZ_NAME = "Asia/Dhaka"
LOCAL_UTC_OFFSET = timedelta(hours=6)
LOCAL_TZ = timezone(LOCAL_UTC_OFFSET, LOCAL_TZ_NAME)


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_iso_utc(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an upstream timestamp into an aware UTC datetime. Naive values are taken as UTC.

    Raises:
        ValueError if the string is not ISO-8601
    """
    if isinstance(value, datetime):
        dt = value
    else:
        raw = value.strip()
        if not raw:
            raise ValueError("empty timestamp")
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def local_day_range(now: datetime) -> tuple[str, str]:
    """Return [start, end) of the local calendar day containing *now*, as UTC ISO strings."""
    local = now.astimezone(LOCAL_TZ)
    start = datetime(local.year, local.month, local.day, tzinfo=LOCAL_TZ)
    end = start + timedelta(days=1)
    return to_iso_utc(start), to_iso_utc(end)
