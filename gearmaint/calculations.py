"""Helper functions for time handling and due calculations."""

import math
from datetime import datetime, timezone
from typing import Optional, Union

from dateutil import parser as dateparser

from .status import Status

# Open-ended attachments and services end here
MAX_TIME = datetime(9100, 1, 1, tzinfo=timezone.utc)

SECONDS_PER_DAY = 24 * 3600

# Share of a threshold below which a plan is reported as WARN
WARN_FRACTION = 0.05


def parse_time(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an ISO-8601 instant into an aware datetime.

    Naive values are taken to be UTC. None passes through.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        result = value
    else:
        result = dateparser.isoparse(str(value))
    if result.tzinfo is None:
        result = result.replace(tzinfo=timezone.utc)
    return result


def format_time(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 string for an instant, None for None."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def now() -> datetime:
    return datetime.now(timezone.utc)


def get_days(start: datetime, end: Optional[datetime] = None) -> int:
    """Whole days elapsed from start to end (default: now), floored."""
    end = end or now()
    return math.floor((end - start).total_seconds() / SECONDS_PER_DAY)


def whole_hours(seconds: float) -> int:
    """Usage time in whole hours."""
    return math.floor(seconds / 3600)


def whole_km(meters: float) -> int:
    """Usage distance in whole kilometres."""
    return math.floor(meters / 1000)


def check_status(remaining: float, threshold: float) -> Status:
    """Determine status from the budget left on a single threshold."""
    if remaining < 0:
        return Status.ALERT
    if remaining < threshold * WARN_FRACTION:
        return Status.WARN
    return Status.OK
