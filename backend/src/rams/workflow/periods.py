"""Calendar period helpers.

Report-number months and dashboard days are defined in the business
timezone, while timestamps are stored as naive UTC. These helpers
convert between the two.
"""

from datetime import date, datetime, timedelta, timezone, tzinfo


def to_local(moment: datetime, tz: tzinfo) -> datetime:
    """Convert a stored (naive UTC) or aware datetime to local time."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz)


def _to_naive_utc(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def local_date(moment: datetime, tz: tzinfo) -> date:
    """Calendar day of a moment in the business timezone."""
    return to_local(moment, tz).date()


def day_bounds(moment: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    """[start of local day, start of next local day) as naive UTC."""
    local = to_local(moment, tz)
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1)
    return _to_naive_utc(start), _to_naive_utc(end)


def month_bounds(moment: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    """[start of local month, start of next local month) as naive UTC."""
    local = to_local(moment, tz)
    start = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return _to_naive_utc(start), _to_naive_utc(end)
