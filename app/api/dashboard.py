from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.core import dates
from app.core.exceptions import ValidationFailed
from app.core.security import require_admin
from app.api.booking import booking_service, parse_day_param
from app.models.api_models import (
    ActiveDayView, BookingsHistoryPage, DashboardPage, DayConfigUpdate, GlobalConfigView, MonthPage,
    ServicesConfigUpdate,
)
from app.models.db_models import UserProfile
from app.services.dashboard_service import DashboardService

MSG_BAD_MONTH = "รูปแบบเดือนไม่ถูกต้อง (ต้องเป็น YYYY-MM)"

router = APIRouter(prefix="/dashboard")
dashboard_service = DashboardService(booking_service)


@router.get("", response_model=DashboardPage)
async def daily_dashboard(date: Optional[str] = None, admin: UserProfile = Depends(require_admin)):
    return await dashboard_service.day_dashboard(parse_day_param(date))


@router.get("/month", response_model=MonthPage)
async def monthly_summary(month: Optional[str] = None, admin: UserProfile = Depends(require_admin)):
    if month:
        try:
            year, month_number = dates.parse_month(month)
        except ValueError:
            raise ValidationFailed(MSG_BAD_MONTH)
    else:
        current = dates.today()
        year, month_number = current.year, current.month
    return await dashboard_service.month_page(year, month_number)


@router.get("/bookings-history", response_model=BookingsHistoryPage)
async def bookings_history(
    service: str = "all",
    range_key: str = Query("all", alias="range"),
    q: Optional[str] = None,
    admin: UserProfile = Depends(require_admin),
):
    return await dashboard_service.bookings_history(service, range_key, q)


@router.put("/day-config/{day}", response_model=ActiveDayView)
async def save_day_config(day: str, update: DayConfigUpdate, admin: UserProfile = Depends(require_admin)):
    return await dashboard_service.save_day_config(parse_day_param(day), update)


@router.get("/services-config", response_model=GlobalConfigView)
async def services_config(admin: UserProfile = Depends(require_admin)):
    return await dashboard_service.services_config()


@router.put("/services-config", response_model=ActiveDayView)
async def save_services_config(update: ServicesConfigUpdate, admin: UserProfile = Depends(require_admin)):
    return await dashboard_service.save_services_config(update)
