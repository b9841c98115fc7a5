from typing import Optional

from fastapi import APIRouter, Depends

from app.core import dates
from app.core.exceptions import ValidationFailed
from app.core.security import get_current_user
from app.models.api_models import BookingRequest, BookingResult, HistoryPage, ServicesPage
from app.models.db_models import UserProfile
from app.services.booking_service import BookingService, MSG_BAD_DATE
from app.services.schedule import SlotBoard

router = APIRouter()
booking_service = BookingService()


def parse_day_param(value: Optional[str]):
    if not value:
        return dates.today()
    try:
        return dates.parse_day(value)
    except ValueError:
        raise ValidationFailed(MSG_BAD_DATE)


@router.get("/services", response_model=ServicesPage)
async def list_services(date: Optional[str] = None, user: UserProfile = Depends(get_current_user)):
    return await booking_service.services_page(parse_day_param(date))


@router.get("/services/{service_id}/slots", response_model=SlotBoard)
async def service_slots(service_id: str, date: Optional[str] = None, user: UserProfile = Depends(get_current_user)):
    return await booking_service.slot_board(service_id, parse_day_param(date))


@router.post("/bookings", response_model=BookingResult, status_code=201)
async def create_booking(req: BookingRequest, user: UserProfile = Depends(get_current_user)):
    return await booking_service.book(user, req)


@router.get("/history", response_model=HistoryPage)
async def my_history(user: UserProfile = Depends(get_current_user)):
    return await booking_service.history(user)
