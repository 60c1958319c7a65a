"""Utility modules."""

from jobmirror.utils.logger import setup_logger
from jobmirror.utils.rate_limiter import RateLimiter
from jobmirror.utils.timestamps import local_day_range, parse_timestamp, to_iso_utc, utc_now

__all__ = ["RateLimiter", "local_day_range", "parse_timestamp", "setup_logger", "to_iso_utc", "utc_now"]
