from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Union

from app.models.db_models import Booking, UserProfile, DayConfig
from app.services.aggregation import DaySummary, LoyaltyStatus, MonthSummary
from app.services.schedule import SlotBoard

# --- Incoming Request Models ---

class Credentials(BaseModel):
    email: str
    password: str

class BookingRequest(BaseModel):
    service_id: str
    date: str                      # YYYY-MM-DD
    time: str                      # HH:MM
    owner_name: str = ""
    pet_name: str = ""
    note: Optional[str] = ""
    # Free text as typed in the form, "4,5" is accepted
    pet_weight_kg: Optional[Union[str, float]] = None
    owner_phone: Optional[str] = ""
    pet_age_years: Optional[Union[str, float]] = None
    pet_sex: Optional[str] = ""
    pet_breed: Optional[str] = ""
    groomer_gender: Optional[str] = ""

class DayConfigUpdate(BaseModel):
    """Any subset; fields left out keep their stored value."""
    is_closed: Optional[bool] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    interval_minutes: Optional[int] = None
    prices: Optional[Dict[str, float]] = None

class ServicesConfigUpdate(BaseModel):
    time_slots: Optional[List[str]] = None
    prices: Optional[Dict[str, float]] = None


# --- Outgoing Response Models ---

class ServiceOption(BaseModel):
    id: str
    icon: str = ""
    title: str
    description: str = ""
    price: Optional[float] = None

class ServicesPage(BaseModel):
    day: str
    closed: bool = False
    services: List[ServiceOption]
    days: List[str] = Field(default_factory=list)

class BookingResult(BaseModel):
    booking: Booking
    board: SlotBoard
    message: str

class HistoryPage(BaseModel):
    bookings: List[Booking]
    loyalty: LoyaltyStatus

class ActiveDayView(BaseModel):
    day: str
    closed: bool = False
    time_slots: List[str] = Field(default_factory=list)
    prices: Dict[str, float] = Field(default_factory=dict)
    config: Optional[DayConfig] = None

class GlobalConfigView(BaseModel):
    """Slots and prices used on days without their own config."""
    time_slots: List[str] = Field(default_factory=list)
    prices: Dict[str, float] = Field(default_factory=dict)

class DashboardPage(BaseModel):
    summary: DaySummary
    active: ActiveDayView

class MonthPage(BaseModel):
    summary: MonthSummary

class BookingsHistoryPage(BaseModel):
    total: int
    bookings: List[Booking]

class MeResponse(BaseModel):
    user: UserProfile
    redirect: str
