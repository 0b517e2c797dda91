import calendar
from datetime import date, time, timedelta


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_days(year: int, month: int) -> list[date]:
    """All dates of the month in ascending order. Raises ValueError for a bad month."""
    return [date(year, month, d) for d in range(1, days_in_month(year, month) + 1)]


def previous_day(day: date) -> date:
    return day - timedelta(days=1)


def next_day(day: date) -> date:
    return day + timedelta(days=1)


def iso_week_bounds(day: date) -> tuple[date, date]:
    """Return (monday, next_monday) of the ISO week containing day. The end is exclusive."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=7)


def parse_date(value) -> date:
    """Accept a date or an ISO 'YYYY-MM-DD' string."""
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def parse_time_of_day(value) -> time | None:
    """Parse 'HH:MM' into a time. Empty values return None.

    Unquoted YAML times such as 16:30 load as base-60 integers (990), so an int
    is read as minutes past midnight.
    """
    if value is None or value == '':
        return None
    if isinstance(value, time):
        return value
    if isinstance(value, int):
        return time(value // 60 % 24, value % 60)
    hours, minutes = str(value).strip().split(':')[:2]
    return time(int(hours), int(minutes))
