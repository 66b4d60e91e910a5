"""Date parsing utilities.

Imported rows carry occurred-at values as epoch milliseconds (UTC). Date-only
inputs are taken as UTC midnight.
"""

from datetime import date, datetime, time, timedelta, UTC
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from ledgerpost.domain.errors import InvalidDateError

# Tried in this order before falling back to ISO-8601 and dateutil
DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%d-%b-%Y",
)


def _parse_candidates(text: str) -> datetime:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass

    try:
        return date_parser.parse(text)
    except (ValueError, OverflowError) as e:
        raise InvalidDateError(f"Unrecognized date '{text}': {e}")


def to_epoch_ms(dt: datetime) -> int:
    """Convert a datetime to epoch milliseconds, treating naive values as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp() * 1000)


def parse_timestamp(value) -> int:
    """Parse an occurred-at value into epoch milliseconds.

    Accepts epoch milliseconds, ``date``/``datetime`` objects and strings in
    ISO-8601 or common locale variants (M/D/Y, Y/M/D, D-Mon-Y).

    Raises:
        InvalidDateError: If no candidate format yields a valid calendar date
    """
    if value is None or isinstance(value, bool):
        raise InvalidDateError("Missing date")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, datetime):
        return to_epoch_ms(value)
    if isinstance(value, date):
        return to_epoch_ms(datetime.combine(value, time.min))

    text = str(value).strip()
    if not text:
        raise InvalidDateError("Missing date")
    return to_epoch_ms(_parse_candidates(text))


def epoch_ms_to_date(ms: int) -> date:
    """UTC calendar day of an epoch-millisecond timestamp."""
    return datetime.fromtimestamp(ms / 1000, tz=UTC).date()


def epoch_ms_to_ymd(ms: int) -> str:
    return epoch_ms_to_date(ms).isoformat()


def date_bounds_to_epoch_ms(start: date | None, end: date | None) -> tuple[int | None, int | None]:
    """Inclusive day bounds as epoch milliseconds (end covers the whole day)."""
    start_ms = to_epoch_ms(datetime.combine(start, time.min)) if start else None
    end_ms = None
    if end:
        end_ms = to_epoch_ms(datetime.combine(end + timedelta(days=1), time.min)) - 1
    return start_ms, end_ms


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports the import formats plus relative dates used on the command line:
    "today", "yesterday", "this month", "last month", "this year", "last year".

    Raises:
        InvalidDateError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = datetime.now(UTC).date()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "this year": today.replace(month=1, day=1),
        "last year": today.replace(month=1, day=1) - relativedelta(years=1),
    }
    if text in relative_dates:
        return relative_dates[text]

    if not text:
        raise InvalidDateError("Missing date")
    return _parse_candidates(date_str.strip()).date()


def get_date_range(period: str) -> tuple[date, date]:
    """Get inclusive start and end dates for a named period.

    Args:
        period: One of this-month, last-month, this-week, last-week,
            this-year, last-year

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = datetime.now(UTC).date()

    if period == "this-month":
        return today.replace(day=1), today

    elif period == "last-month":
        start_date = (today - relativedelta(months=1)).replace(day=1)
        return start_date, today.replace(day=1) - timedelta(days=1)

    elif period == "this-week":
        return today - timedelta(days=today.weekday()), today

    elif period == "last-week":
        start_date = today - timedelta(days=today.weekday() + 7)
        return start_date, start_date + timedelta(days=6)

    elif period == "this-year":
        return today.replace(month=1, day=1), today

    elif period == "last-year":
        start_date = today.replace(month=1, day=1) - relativedelta(years=1)
        return start_date, today.replace(month=1, day=1) - timedelta(days=1)

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: this-month, last-month, "
        "this-week, last-week, this-year, last-year"
    )
