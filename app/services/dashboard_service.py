from datetime import date, datetime
from typing import Any, Dict, Optional

from app.core import dates
from app.core.config_loader import get_default_prices, get_default_time_slots, load_shop_config, service_ids
from app.core.exceptions import ValidationFailed
from app.core.logger import logger
from app.models.api_models import (
    ActiveDayView, BookingsHistoryPage, DashboardPage, DayConfigUpdate, GlobalConfigView, MonthPage,
    ServicesConfigUpdate,
)
from app.models.db_models import Booking, DayConfig, ServicesConfig
from app.services.aggregation import filter_history, summarize_day, summarize_month
from app.services.booking_service import BookingService
from app.services.db_service import db_service
from app.services.schedule import build_slots, is_valid_label, normalize_labels

MSG_BAD_TIME_LABEL = "รูปแบบเวลาไม่ถูกต้อง (ต้องเป็น HH:MM)"
MSG_EMPTY_SLOTS = "การตั้งค่าเวลาไม่ถูกต้อง: เวลาเริ่มต้องก่อนเวลาปิด และช่วงห่างต้องมากกว่า 0 นาที"
MSG_BAD_PRICE = "ราคาต้องเป็นตัวเลขที่ไม่ติดลบ"
MSG_UNKNOWN_PRICE_SERVICE = "ไม่พบบริการ: {service_id}"


class DashboardService:
    """Admin screens: daily dashboard, month summary, full history, slot/price setup."""

    def __init__(self, booking_service: Optional[BookingService] = None):
        self.config = load_shop_config()
        self.known_ids = service_ids(self.config)
        self.booking_service = booking_service or BookingService()
        window = self.config.get("default_day_window", {})
        self.default_start = window.get("start_time", "10:00")
        self.default_end = window.get("end_time", "18:00")
        self.default_interval = window.get("interval_minutes", 30)

    def _to_bookings(self, rows, fallback_day: Optional[date] = None):
        return [Booking.from_record(row, self.booking_service.titles, fallback_day) for row in rows]

    async def day_dashboard(self, day: date) -> DashboardPage:
        rows = await db_service.get_bookings_for_day(day)
        summary = summarize_day(day, self._to_bookings(rows, day), self.known_ids)
        active = await self.booking_service.active_day(day)
        return DashboardPage(summary=summary, active=active)

    async def month_page(self, year: int, month: int) -> MonthPage:
        start, end = dates.month_bounds(year, month)
        rows = await db_service.get_bookings_between(start, end)
        return MonthPage(summary=summarize_month(year, month, self._to_bookings(rows), self.known_ids))

    async def bookings_history(
        self,
        service: str = "all",
        range_key: str = "all",
        query: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> BookingsHistoryPage:
        rows = await db_service.get_all_bookings()
        bookings = filter_history(self._to_bookings(rows), now or dates.now(), service, range_key, query)
        return BookingsHistoryPage(total=len(bookings), bookings=bookings)

    # --- configuration editor ---

    def _validate_prices(self, prices: Dict[str, float]) -> Dict[str, float]:
        cleaned = {}
        for service_id, price in prices.items():
            if service_id not in self.known_ids:
                raise ValidationFailed(MSG_UNKNOWN_PRICE_SERVICE.format(service_id=service_id))
            if price is None or price < 0:
                raise ValidationFailed(MSG_BAD_PRICE)
            cleaned[service_id] = float(price)
        return cleaned

    async def save_day_config(self, day: date, update: DayConfigUpdate) -> ActiveDayView:
        """
        Merges the given fields over the stored day config to derive the slot
        list, then upserts only the given and derived columns.
        """
        provided = update.model_dump(exclude_unset=True, exclude_none=True)
        stored_row = await db_service.get_day_config(day)
        stored = DayConfig.from_record(stored_row) if stored_row else DayConfig(day=day)

        fields: Dict[str, Any] = {}
        if "prices" in provided:
            fields["prices"] = {**stored.prices, **self._validate_prices(provided["prices"])}

        is_closed = provided.get("is_closed", stored.is_closed)
        start_time = provided.get("start_time", stored.start_time or self.default_start)
        end_time = provided.get("end_time", stored.end_time or self.default_end)
        interval = provided.get("interval_minutes", stored.interval_minutes or self.default_interval)

        for key in ("start_time", "end_time"):
            if key in provided and not is_valid_label(provided[key]):
                raise ValidationFailed(MSG_BAD_TIME_LABEL)

        if "is_closed" in provided:
            fields["isClosed"] = is_closed
        if "start_time" in provided:
            fields["startTime"] = start_time
        if "end_time" in provided:
            fields["endTime"] = end_time
        if "interval_minutes" in provided:
            fields["intervalMinutes"] = interval

        touches_window = bool({"is_closed", "start_time", "end_time", "interval_minutes"} & provided.keys())
        if touches_window:
            if is_closed:
                fields["timeSlots"] = []
            else:
                slots = build_slots(start_time, end_time, interval)
                if not slots:
                    raise ValidationFailed(MSG_EMPTY_SLOTS)
                fields["timeSlots"] = slots
                # keep the stored window complete so later partial edits derive the same slots
                fields.setdefault("startTime", start_time)
                fields.setdefault("endTime", end_time)
                fields.setdefault("intervalMinutes", interval)

        if fields:
            await db_service.upsert_day_config(day, fields)
            logger.info(f"🗓️ Day config updated for {day.isoformat()}: {sorted(fields)}")
        return await self.booking_service.active_day(day)

    async def services_config(self) -> GlobalConfigView:
        row = await db_service.get_services_config()
        stored = ServicesConfig.from_record(row) if row else ServicesConfig()
        prices = get_default_prices(self.config)
        prices.update(stored.prices)
        return GlobalConfigView(
            time_slots=stored.time_slots or get_default_time_slots(self.config),
            prices=prices,
        )

    async def save_services_config(self, update: ServicesConfigUpdate) -> ActiveDayView:
        provided = update.model_dump(exclude_unset=True, exclude_none=True)
        fields: Dict[str, Any] = {}
        if "time_slots" in provided:
            labels = provided["time_slots"]
            if not all(is_valid_label(label) for label in labels):
                raise ValidationFailed(MSG_BAD_TIME_LABEL)
            fields["timeSlots"] = normalize_labels(labels)
        if "prices" in provided:
            prices = self._validate_prices(provided["prices"])
            stored_row = await db_service.get_services_config()
            stored = ServicesConfig.from_record(stored_row) if stored_row else ServicesConfig()
            fields["prices"] = {**stored.prices, **prices}

        if fields:
            await db_service.upsert_services_config(fields)
        return await self.booking_service.active_day(dates.today())
