"""
Pure summaries over bookings that were already fetched for a screen.
"""
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from app.models.db_models import Booking
from app.services.schedule import minutes_of

LOYALTY_CYCLE = 10
HISTORY_RANGES = {"all": None, "7d": 7, "30d": 30}


class ServiceCounts(BaseModel):
    total: int = 0
    by_service: Dict[str, int] = Field(default_factory=dict)


class DaySummary(ServiceCounts):
    day: str
    bookings: List[Booking] = Field(default_factory=list)


class MonthDay(ServiceCounts):
    day: str


class MonthSummary(ServiceCounts):
    month: str
    days: List[MonthDay] = Field(default_factory=list)


class LoyaltyStatus(BaseModel):
    total_bookings: int
    free_redemptions: int
    cycle_progress: int
    remaining: int
    cycle_size: int = LOYALTY_CYCLE
    # True right after the 10th, 20th... booking: progress restarted at 0
    cycle_completed: bool = False


def count_by_service(bookings: Iterable[Booking], known_ids: List[str]) -> ServiceCounts:
    """Ids outside `known_ids` are skipped, not counted and not errors."""
    counts = {service_id: 0 for service_id in known_ids}
    for booking in bookings:
        if booking.service_id in counts:
            counts[booking.service_id] += 1
    return ServiceCounts(total=sum(counts.values()), by_service=counts)


def sort_by_time(bookings: Iterable[Booking]) -> List[Booking]:
    return sorted(bookings, key=lambda b: minutes_of(b.time))


def summarize_day(day: date, bookings: List[Booking], known_ids: List[str]) -> DaySummary:
    counts = count_by_service(bookings, known_ids)
    return DaySummary(
        day=day.isoformat(),
        total=counts.total,
        by_service=counts.by_service,
        bookings=sort_by_time(bookings),
    )


def summarize_month(year: int, month: int, bookings: List[Booking], known_ids: List[str]) -> MonthSummary:
    in_month = [b for b in bookings if b.day.year == year and b.day.month == month]

    per_day: Dict[date, List[Booking]] = {}
    for booking in sorted(in_month, key=lambda b: b.day):
        per_day.setdefault(booking.day, []).append(booking)

    days = []
    for day, day_bookings in per_day.items():
        counts = count_by_service(day_bookings, known_ids)
        days.append(MonthDay(day=day.isoformat(), total=counts.total, by_service=counts.by_service))

    counts = count_by_service(in_month, known_ids)
    return MonthSummary(
        month=f"{year:04d}-{month:02d}",
        total=counts.total,
        by_service=counts.by_service,
        days=days,
    )


def loyalty(count: int) -> LoyaltyStatus:
    count = max(int(count), 0)
    progress = count % LOYALTY_CYCLE
    return LoyaltyStatus(
        total_bookings=count,
        free_redemptions=count // LOYALTY_CYCLE,
        cycle_progress=progress,
        remaining=LOYALTY_CYCLE - progress,
        cycle_completed=count > 0 and progress == 0,
    )


def personal_history(bookings: Iterable[Booking]) -> List[Booking]:
    """Newest day first, earlier time first within a day."""
    by_time = sorted(bookings, key=lambda b: minutes_of(b.time))
    return sorted(by_time, key=lambda b: b.day, reverse=True)


def _appointment_key(booking: Booking) -> datetime:
    return datetime.combine(booking.day, datetime.min.time()) + timedelta(minutes=minutes_of(booking.time))


def filter_history(
    bookings: Iterable[Booking],
    now: datetime,
    service: str = "all",
    range_key: str = "all",
    query: Optional[str] = None,
) -> List[Booking]:
    """
    Admin history: filter by service and recency, free-text search, newest
    appointment first. Unknown range keys behave like "all".
    """
    result = list(bookings)

    if service and service != "all":
        result = [b for b in result if b.service_id == service]

    days_back = HISTORY_RANGES.get(range_key)
    if days_back:
        threshold = (now - timedelta(days=days_back)).date()
        result = [b for b in result if b.day >= threshold]

    q = (query or "").strip().lower()
    if q:
        def matches(b: Booking) -> bool:
            haystack = [
                (b.user_email or b.user_id).lower(),
                b.service_title.lower(),
                b.note.lower(),
                b.time.lower(),
                b.owner_name.lower(),
                b.pet_name.lower(),
            ]
            return any(q in field for field in haystack)
        result = [b for b in result if matches(b)]

    return sorted(result, key=_appointment_key, reverse=True)
