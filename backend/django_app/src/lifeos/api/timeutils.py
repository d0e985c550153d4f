"""Local calendar-day helpers.

Everything the automation engine does is anchored to the user's local day,
while rows are stored as aware UTC datetimes.
"""

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.conf import settings
from django.utils import timezone


def default_zone_name():
    return getattr(settings, 'LIFEOS_TIME_ZONE', 'America/Bogota')


def resolve_zone(name=None):
    """Return a ZoneInfo for ``name``, falling back to the configured default."""
    if isinstance(name, str) and name.strip():
        try:
            return ZoneInfo(name.strip())
        except (ZoneInfoNotFoundError, ValueError):
            pass
    return ZoneInfo(default_zone_name())


def local_now(zone):
    return timezone.now().astimezone(zone)


def local_day_bounds(day, zone):
    """Return ``(start, end)`` aware datetimes covering ``day`` in ``zone``."""
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone) - timedelta(microseconds=1)
    return start, end


def local_datetime(day, hour, zone, minute=0):
    return datetime.combine(day, time(hour, minute), tzinfo=zone)


def parse_date(value):
    """Parse ``YYYY-MM-DD``; returns None for anything else."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def parse_datetime(value):
    """Parse an ISO timestamp into an aware datetime (naive values are UTC)."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, ZoneInfo('UTC'))
    return parsed
