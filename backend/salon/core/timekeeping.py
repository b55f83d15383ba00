"""
Time normalization shared by the scheduler and the attendance ledger.

All uniqueness keys and comparisons go through this module:

- a *canonical day* is a ``datetime.date`` in the business timezone
  (``config.APP_TZ``);
- a *canonical instant* is a timezone-aware ``datetime`` in UTC.

Conversion to the business timezone for display happens only at the API
boundary via :func:`to_display`.
"""

import calendar
import re
from datetime import date, datetime, time, timezone
from typing import Optional, Tuple

from salon.core import config
from salon.core.exceptions import ValidationError

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CLOCK_RE = re.compile(
    r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?"
    r"\s?(?P<meridiem>[AaPp][Mm])?$"
)


def parse_calendar_date(value, field: str = "date") -> date:
    """Parse a strict ``YYYY-MM-DD`` string into a calendar date.

    Time-of-day components are rejected, as are impossible dates such as
    ``2024-02-30``.
    """
    if isinstance(value, datetime):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD", field)
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_RE.match(value.strip()):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD", field)
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid calendar date", field)


def parse_clock(value, field: str = "time") -> time:
    """Parse a 12-hour or 24-hour clock string into a ``time``.

    Accepts ``H:MM``, ``HH:MM``, an optional ``:SS`` and an optional AM/PM
    suffix. Seconds are validated but truncated.
    """
    if not isinstance(value, str):
        raise ValidationError("Invalid time format. Use HH:MM or HH:MM AM/PM", field)
    match = _CLOCK_RE.match(value.strip())
    if not match:
        raise ValidationError("Invalid time format. Use HH:MM or HH:MM AM/PM", field)

    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    second = int(match.group("second") or 0)
    meridiem = match.group("meridiem")

    if minute > 59 or second > 59:
        raise ValidationError("Invalid time values: minutes must be 0-59", field)

    if meridiem:
        if hour < 1 or hour > 12:
            raise ValidationError(
                "Invalid time values: 12-hour clock hours must be 1-12", field
            )
        is_pm = meridiem.lower() == "pm"
        if is_pm and hour < 12:
            hour += 12
        elif not is_pm and hour == 12:
            hour = 0
    elif hour > 23:
        raise ValidationError("Invalid time values: hours must be 0-23", field)

    return time(hour, minute)


def combine(day: date, clock: time) -> datetime:
    """Combine a business-timezone wall time with its day into a UTC instant."""
    local = datetime.combine(day, clock).replace(tzinfo=config.APP_TZ)
    return local.astimezone(timezone.utc)


def now() -> datetime:
    """Current canonical instant (aware, UTC)."""
    return datetime.now(timezone.utc)


def today() -> date:
    """Current canonical day in the business timezone."""
    return now().astimezone(config.APP_TZ).date()


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize an instant to aware UTC. Naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_display(value: Optional[datetime]) -> Optional[datetime]:
    """Convert a stored instant to the business timezone for API output."""
    if value is None:
        return None
    return to_utc(value).astimezone(config.APP_TZ)


def format_clock(value: Optional[datetime]) -> Optional[str]:
    """Render an instant as ``hh:mm AM`` in the business timezone."""
    local = to_display(value)
    return local.strftime("%I:%M %p") if local else None


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Return the first and last calendar day of a month."""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def working_hours(
    check_in: Optional[datetime], check_out: Optional[datetime]
) -> float:
    """Hours between two instants rounded to 2 decimals, 0 if either is missing."""
    if not check_in or not check_out:
        return 0.0
    delta = to_utc(check_out) - to_utc(check_in)
    return round(delta.total_seconds() / 3600, 2)
