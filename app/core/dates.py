"""
Calendar-day helpers shared by every screen.

All day arithmetic happens in the shop timezone (settings.TIMEZONE). A booking
day is persisted as the timestamptz of local midnight, so a value read back
from the store is converted into the shop timezone before taking its date.
"""
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo

from app.core.config import settings

TH_DOW = ["จันทร์", "อังคาร", "พุธ", "พฤหัสบดี", "ศุกร์", "เสาร์", "อาทิตย์"]
TH_MONTH_SHORT = [
    "ม.ค.", "ก.พ.", "มี.ค.", "เม.ย.", "พ.ค.", "มิ.ย.",
    "ก.ค.", "ส.ค.", "ก.ย.", "ต.ค.", "พ.ย.", "ธ.ค.",
]
BUDDHIST_ERA_OFFSET = 543


def shop_tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def now() -> datetime:
    return datetime.now(shop_tz())


def today() -> date:
    return now().date()


def minutes_since_midnight(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def day_start(day: date) -> datetime:
    """Local midnight of `day` in the shop timezone."""
    return datetime.combine(day, time.min, tzinfo=shop_tz())


def day_to_store(day: date) -> str:
    return day_start(day).isoformat()


def day_from_store(value: Union[str, datetime, date, None]) -> Optional[date]:
    """
    Store value -> calendar day in the shop timezone.
    Accepts ISO timestamps (with or without offset), plain ISO dates and
    datetime/date objects. Returns None for anything unparsable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        return value
    else:
        try:
            moment = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(shop_tz()).date()


def timestamp_from_store(value: Union[str, datetime, None]) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_day(value: str) -> date:
    """'YYYY-MM-DD' -> date. Raises ValueError on malformed input."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_month(value: str) -> Tuple[int, int]:
    """'YYYY-MM' -> (year, month). Raises ValueError on malformed input."""
    parsed = datetime.strptime(value, "%Y-%m")
    return parsed.year, parsed.month


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First day of the month and first day of the next month."""
    first = date(year, month, 1)
    if month == 12:
        return first, date(year + 1, 1, 1)
    return first, date(year, month + 1, 1)


def booking_window(start: date, days: int) -> list:
    """`days` consecutive days beginning with `start` (today included)."""
    return [start + timedelta(days=i) for i in range(days)]


def format_thai_date_short(d: date) -> str:
    return f"{TH_DOW[d.weekday()]} {d.day} {TH_MONTH_SHORT[d.month - 1]}"


def format_thai_date_full(d: date) -> str:
    return f"{d.day} {TH_MONTH_SHORT[d.month - 1]} {d.year + BUDDHIST_ERA_OFFSET}"
