from datetime import date, datetime
import calendar
from utils.constants import DATE_FORMAT, MONTH_FORMAT


def today() -> date:
    return date.today()


def parse_date(value) -> date | None:
    """Parse a YYYY-MM-DD string (or pass a date through), returning None on failure."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def format_month(d: date) -> str:
    return d.strftime(MONTH_FORMAT)


def parse_month(month_str: str) -> date | None:
    """Return the first day of the given YYYY-MM month string."""
    if not month_str:
        return None
    try:
        return datetime.strptime(month_str, MONTH_FORMAT).date()
    except ValueError:
        return None


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    max_day = calendar.monthrange(year, month)[1]
    return min(day, max_day)


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = clamp_day_to_month(year, month, d.day)
    return d.replace(year=year, month=month, day=day)


def first_of_month(d: date) -> date:
    return d.replace(day=1)


def days_in_month(year: int, month: int) -> list[date]:
    """Every calendar day of the month, in order."""
    last_day = calendar.monthrange(year, month)[1]
    return [date(year, month, day) for day in range(1, last_day + 1)]


def month_starts(start: date, count: int) -> list[date]:
    """First days of `count` consecutive months beginning with start's month."""
    first = first_of_month(start)
    return [add_months(first, i) for i in range(count)]


def horizon_end(start: date, months: int) -> date:
    """Last day of the final month of a horizon of `months` months."""
    last_start = add_months(first_of_month(start), months - 1)
    return last_start.replace(day=calendar.monthrange(last_start.year, last_start.month)[1])


def friendly_month(month_str: str) -> str:
    """Convert YYYY-MM to e.g. 'February 2026'."""
    d = parse_month(month_str)
    if d is None:
        return month_str
    return d.strftime("%B %Y")
