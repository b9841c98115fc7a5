"""
Time labels, day slot building and per-slot availability.

A slot label is a zero-padded 24h "HH:MM" string. Everything here is pure:
no store access, no clock reads (callers pass `now_minutes`).
"""
import math
import re
from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

MAX_SLOT_ITERATIONS = 200
MINUTES_PER_DAY = 24 * 60

_LABEL_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    EXPIRED = "expired"


def minutes_of(label: str) -> int:
    """
    "HH:MM" -> minutes since midnight.
    Unparsable labels count as 0 so they sort first instead of breaking a listing.
    """
    try:
        hours, minutes = str(label).split(":")
        return int(hours) * 60 + int(minutes)
    except (ValueError, TypeError):
        return 0


def label_of(minutes: float) -> str:
    """Minutes since midnight -> "HH:MM", components clamped to 0-23 / 0-59."""
    total = int(minutes)
    hours = min(max(total // 60, 0), 23)
    mins = min(max(total % 60, 0), 59)
    return f"{hours:02d}:{mins:02d}"


def is_valid_label(label: str) -> bool:
    return isinstance(label, str) and bool(_LABEL_RE.match(label))


def build_slots(start_time: str, end_time: str, interval_minutes) -> List[str]:
    """
    Labels from start_time stepping by interval_minutes, including a step that
    lands exactly on end_time. An empty result means the window is invalid
    (interval not a whole number of minutes >= 1, or start not before end),
    not that the shop is closed.
    """
    if isinstance(interval_minutes, bool) or not isinstance(interval_minutes, (int, float)):
        return []
    if not math.isfinite(interval_minutes) or interval_minutes < 1:
        return []
    # labels have minute resolution
    if interval_minutes != int(interval_minutes):
        return []
    interval_minutes = int(interval_minutes)

    start = minutes_of(start_time)
    end = minutes_of(end_time)
    if start >= end:
        return []

    slots = []
    current = start
    for _ in range(MAX_SLOT_ITERATIONS):
        if current > end:
            break
        slots.append(label_of(current))
        current += interval_minutes
    return slots


def normalize_labels(labels: Iterable[str]) -> List[str]:
    """Deduplicate and sort chronologically."""
    return sorted(set(labels), key=minutes_of)


class SlotState(BaseModel):
    time: str
    status: SlotStatus


def slot_statuses(
    catalog: List[str],
    booked: Iterable[str],
    is_today: bool,
    now_minutes: int,
) -> List[SlotState]:
    """
    Annotate each catalog label, in catalog order.
    Past labels on the current day are `expired` even if someone booked them.
    """
    booked_set = set(booked)
    states = []
    for label in catalog:
        if is_today and minutes_of(label) <= now_minutes:
            status = SlotStatus.EXPIRED
        elif label in booked_set:
            status = SlotStatus.BOOKED
        else:
            status = SlotStatus.AVAILABLE
        states.append(SlotState(time=label, status=status))
    return states


class SlotBoard(BaseModel):
    """What the booking form shows for one (service, day) selection."""
    service_id: str
    day: str
    closed: bool = False
    price: Optional[float] = None
    slots: List[SlotState] = Field(default_factory=list)

    def status_of(self, label: str) -> Optional[SlotStatus]:
        for slot in self.slots:
            if slot.time == label:
                return slot.status
        return None

    def mark_booked(self, label: str) -> "SlotBoard":
        """
        Local patch after a successful write. Not confirmed against the store;
        the next fetch is the source of truth.
        """
        for slot in self.slots:
            if slot.time == label and slot.status == SlotStatus.AVAILABLE:
                slot.status = SlotStatus.BOOKED
        return self

    @property
    def available(self) -> List[str]:
        return [s.time for s in self.slots if s.status == SlotStatus.AVAILABLE]
