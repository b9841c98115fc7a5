import math
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from app.core import dates
from app.core.config import settings
from app.core.config_loader import (
    load_shop_config, get_services, get_service, get_default_time_slots, get_default_prices,
)
from app.core.exceptions import SlotUnavailable, ValidationFailed
from app.core.logger import logger
from app.models.api_models import (
    ActiveDayView, BookingRequest, BookingResult, HistoryPage, ServiceOption, ServicesPage,
)
from app.models.db_models import Booking, DayConfig, ServicesConfig, UserProfile, coerce_number
from app.services.aggregation import loyalty, personal_history
from app.services.db_service import db_service, SLOT_TAKEN
from app.services.schedule import SlotBoard, SlotStatus, is_valid_label, slot_statuses


MSG_UNKNOWN_SERVICE = "ไม่พบบริการที่เลือก"
MSG_BAD_DATE = "รูปแบบวันที่ไม่ถูกต้อง"
MSG_DATE_OUT_OF_WINDOW = "ไม่สามารถจองวันที่นี้ได้ กรุณาเลือกวันที่ภายใน {days} วันนับจากวันนี้"
MSG_DAY_CLOSED = "ร้านปิดในวันที่เลือก"
MSG_BAD_TIME = "รูปแบบเวลาไม่ถูกต้อง"
MSG_TIME_NOT_OFFERED = "เวลาที่เลือกไม่อยู่ในช่วงเวลาที่เปิดให้จอง"
MSG_TIME_PASSED = "เวลาที่เลือกผ่านไปแล้ว กรุณาเลือกเวลาอื่น"
MSG_OWNER_REQUIRED = "กรุณากรอกชื่อเจ้าของ"
MSG_PET_REQUIRED = "กรุณากรอกชื่อสัตว์เลี้ยง"
MSG_BAD_WEIGHT = "กรุณากรอกน้ำหนักเป็นตัวเลขที่มากกว่า 0"
MSG_BAD_AGE = "กรุณากรอกอายุเป็นตัวเลขที่ไม่ติดลบ"


def parse_positive_number(raw: Any) -> Optional[float]:
    """
    Form free text -> number. Blank means "not given" (None).
    Comma is accepted as decimal separator. Raises ValueError when the text
    is not a number or the number is not > 0.
    """
    if raw is None:
        return None
    if isinstance(raw, str) and not raw.strip():
        return None
    number = coerce_number(raw)
    if number is None or not math.isfinite(number) or number <= 0:
        raise ValueError(f"not a positive number: {raw!r}")
    return number


def _parse_age(raw: Any) -> Optional[float]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    number = coerce_number(raw)
    if number is None or number < 0:
        raise ValueError(f"not a valid age: {raw!r}")
    return number


class BookingService:
    """Customer-facing screens: service list, slot board, booking form, history."""

    def __init__(self):
        self.config = load_shop_config()
        self.titles = {s["id"]: s["title"] for s in get_services(self.config)}

    # --- shared day configuration ---

    async def active_day(self, day: date) -> ActiveDayView:
        """
        Slots and prices in effect for `day`: file defaults, overridden by the
        global services config, overridden by that day's config.
        """
        global_row = await db_service.get_services_config()
        global_config = ServicesConfig.from_record(global_row) if global_row else ServicesConfig()
        day_row = await db_service.get_day_config(day)
        day_config = DayConfig.from_record(day_row) if day_row else None

        prices = get_default_prices(self.config)
        prices.update(global_config.prices)

        time_slots = global_config.time_slots or get_default_time_slots(self.config)
        closed = False
        if day_config:
            prices.update(day_config.prices)
            if day_config.is_closed:
                closed = True
                time_slots = []
            elif day_config.time_slots:
                time_slots = day_config.time_slots

        return ActiveDayView(
            day=day.isoformat(),
            closed=closed,
            time_slots=time_slots,
            prices=prices,
            config=day_config,
        )

    def booking_days(self, now: Optional[datetime] = None) -> List[date]:
        start = (now or dates.now()).date()
        return dates.booking_window(start, settings.BOOKING_WINDOW_DAYS)

    # --- services page ---

    async def services_page(self, day: Optional[date] = None) -> ServicesPage:
        day = day or dates.today()
        active = await self.active_day(day)
        options = [
            ServiceOption(
                id=s["id"],
                icon=s.get("icon", ""),
                title=s["title"],
                description=s.get("description", ""),
                price=active.prices.get(s["id"]),
            )
            for s in get_services(self.config)
        ]
        return ServicesPage(
            day=day.isoformat(),
            closed=active.closed,
            services=options,
            days=[d.isoformat() for d in self.booking_days()],
        )

    async def slot_board(self, service_id: str, day: date, now: Optional[datetime] = None) -> SlotBoard:
        """One read of the bookings for (service, day); nothing is cached."""
        if not get_service(self.config, service_id):
            raise ValidationFailed(MSG_UNKNOWN_SERVICE)

        now = now or dates.now()
        active = await self.active_day(day)
        if active.closed:
            return SlotBoard(service_id=service_id, day=day.isoformat(), closed=True,
                             price=active.prices.get(service_id))

        booked = await db_service.get_booked_times(service_id, day)
        states = slot_statuses(
            active.time_slots,
            booked,
            is_today=day == now.date(),
            now_minutes=dates.minutes_since_midnight(now),
        )
        return SlotBoard(
            service_id=service_id,
            day=day.isoformat(),
            price=active.prices.get(service_id),
            slots=states,
        )

    # --- booking form ---

    def validate_request(self, req: BookingRequest, now: datetime) -> Tuple[date, Dict[str, Any]]:
        """
        Checks that need no store access. Returns the day and the cleaned
        form fields; raises ValidationFailed before anything is written.
        """
        if not get_service(self.config, req.service_id):
            raise ValidationFailed(MSG_UNKNOWN_SERVICE)

        try:
            day = dates.parse_day(req.date)
        except ValueError:
            raise ValidationFailed(MSG_BAD_DATE)
        if day not in self.booking_days(now):
            raise ValidationFailed(MSG_DATE_OUT_OF_WINDOW.format(days=settings.BOOKING_WINDOW_DAYS))

        if not is_valid_label(req.time):
            raise ValidationFailed(MSG_BAD_TIME)

        owner_name = (req.owner_name or "").strip()
        pet_name = (req.pet_name or "").strip()
        if not owner_name:
            raise ValidationFailed(MSG_OWNER_REQUIRED)
        if not pet_name:
            raise ValidationFailed(MSG_PET_REQUIRED)

        try:
            weight = parse_positive_number(req.pet_weight_kg)
        except ValueError:
            raise ValidationFailed(MSG_BAD_WEIGHT)
        try:
            age = _parse_age(req.pet_age_years)
        except ValueError:
            raise ValidationFailed(MSG_BAD_AGE)

        fields = {
            "ownerName": owner_name,
            "petName": pet_name,
            "note": (req.note or "").strip(),
            "ownerPhone": (req.owner_phone or "").strip(),
            "petSex": (req.pet_sex or "").strip(),
            "petBreed": (req.pet_breed or "").strip(),
            "groomerGender": (req.groomer_gender or "").strip(),
        }
        if weight is not None:
            fields["petWeightKg"] = weight
        if age is not None:
            fields["petAgeYears"] = age
        return day, fields

    async def book(self, user: UserProfile, req: BookingRequest, now: Optional[datetime] = None) -> BookingResult:
        now = now or dates.now()
        logger.info(f"📥 Booking Request - {req.service_id} {req.date} {req.time} by {user.email}")

        day, fields = self.validate_request(req, now)

        board = await self.slot_board(req.service_id, day, now)
        if board.closed:
            raise ValidationFailed(MSG_DAY_CLOSED)
        status = board.status_of(req.time)
        if status is None:
            raise ValidationFailed(MSG_TIME_NOT_OFFERED)
        if status == SlotStatus.EXPIRED:
            raise ValidationFailed(MSG_TIME_PASSED)
        if status == SlotStatus.BOOKED:
            raise SlotUnavailable(SLOT_TAKEN)

        service_title = self.titles.get(req.service_id, req.service_id)
        record = {
            "userId": user.id,
            "userEmail": user.email,
            "serviceId": req.service_id,
            "serviceTitle": service_title,
            "date": dates.day_to_store(day),
            "time": req.time,
            **fields,
        }
        # createdAt is filled by the database default
        row = await db_service.insert_booking(record)
        booking = Booking.from_record(row, self.titles, fallback_day=day)

        message = (
            f"จองคิวสำเร็จ\n"
            f"บริการ: {service_title}\n"
            f"วันที่: {dates.format_thai_date_full(day)}\n"
            f"เวลา: {req.time} น."
        )
        if booking.note:
            message += f"\nหมายเหตุ: {booking.note}"

        logger.info(f"🏁 Booked {req.service_id} {day.isoformat()} {req.time} for {user.email}")
        return BookingResult(booking=booking, board=board.mark_booked(req.time), message=message)

    # --- personal history ---

    async def history(self, user: UserProfile) -> HistoryPage:
        rows = await db_service.get_bookings_for_user(user.id)
        bookings = [Booking.from_record(row, self.titles) for row in rows]
        count = await db_service.count_bookings_for_user(user.id)
        return HistoryPage(bookings=personal_history(bookings), loyalty=loyalty(count))
