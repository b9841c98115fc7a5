import math
from typing import Optional, List, Dict, Any
from datetime import date, datetime
from pydantic import BaseModel, Field, computed_field

from app.core.dates import day_from_store, timestamp_from_store, today

ROLE_ADMIN = "admin"
ROLE_CUSTOMER = "customer"
DEFAULT_SERVICE_ID = "bath"


def coerce_number(value: Any) -> Optional[float]:
    """Numbers and numeric strings pass; anything else (or NaN/inf) is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", "."))
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


PET_SEX_LABELS = {
    "male": "ตัวผู้", "ตัวผู้": "ตัวผู้", "ผู้": "ตัวผู้",
    "female": "ตัวเมีย", "ตัวเมีย": "ตัวเมีย", "เมีย": "ตัวเมีย",
}
GROOMER_GENDER_LABELS = {
    "male": "ช่างผู้ชาย", "ชาย": "ช่างผู้ชาย", "ผู้ชาย": "ช่างผู้ชาย",
    "female": "ช่างผู้หญิง", "หญิง": "ช่างผู้หญิง", "ผู้หญิง": "ช่างผู้หญิง",
}


def thai_label(value: str, labels: Dict[str, str]) -> str:
    """Known values map to their Thai label; anything else is shown as entered."""
    if not value:
        return ""
    return labels.get(value.strip().lower(), value)


class UserProfile(BaseModel):
    id: str
    email: str = ""
    role: str = ROLE_CUSTOMER
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            id=str(data.get("id", "")),
            email=data.get("email") or "",
            role=ROLE_ADMIN if data.get("role") == ROLE_ADMIN else ROLE_CUSTOMER,
            created_at=timestamp_from_store(data.get("createdAt")),
        )


class Booking(BaseModel):
    id: Optional[str] = Field(default=None)
    user_id: str = ""
    user_email: str = ""
    service_id: str = DEFAULT_SERVICE_ID
    service_title: str = "-"
    day: date
    time: str = ""
    note: str = ""
    owner_name: str = ""
    pet_name: str = ""
    pet_weight_kg: Optional[float] = None
    owner_phone: str = ""
    pet_age_years: Optional[float] = None
    pet_sex: str = ""
    pet_breed: str = ""
    groomer_gender: str = ""
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def pet_sex_label(self) -> str:
        return thai_label(self.pet_sex, PET_SEX_LABELS)

    @computed_field
    @property
    def groomer_gender_label(self) -> str:
        return thai_label(self.groomer_gender, GROOMER_GENDER_LABELS)

    @classmethod
    def from_record(
        cls,
        data: Dict[str, Any],
        titles: Optional[Dict[str, str]] = None,
        fallback_day: Optional[date] = None,
    ) -> "Booking":
        """
        Store row -> Booking. Old or partial rows get the documented defaults
        instead of failing the whole listing.
        """
        titles = titles or {}
        service_id = data.get("serviceId") or DEFAULT_SERVICE_ID
        weight = coerce_number(data.get("petWeightKg"))
        if weight is None:
            # older rows used "weightKg"
            weight = coerce_number(data.get("weightKg"))
        age = coerce_number(data.get("petAgeYears"))
        return cls(
            id=str(data["id"]) if data.get("id") is not None else None,
            user_id=data.get("userId") or "",
            user_email=data.get("userEmail") or "",
            service_id=service_id,
            service_title=data.get("serviceTitle") or titles.get(service_id, "-"),
            day=day_from_store(data.get("date")) or fallback_day or today(),
            time=data.get("time") or "",
            note=data.get("note") or "",
            owner_name=data.get("ownerName") or "",
            pet_name=data.get("petName") or "",
            pet_weight_kg=weight if weight is not None and weight > 0 else None,
            owner_phone=data.get("ownerPhone") or "",
            pet_age_years=age if age is not None and age >= 0 else None,
            pet_sex=data.get("petSex") or "",
            pet_breed=data.get("petBreed") or "",
            groomer_gender=data.get("groomerGender") or "",
            created_at=timestamp_from_store(data.get("createdAt")),
        )


class DayConfig(BaseModel):
    day: date
    is_closed: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    interval_minutes: Optional[float] = None
    time_slots: List[str] = Field(default_factory=list)
    prices: Dict[str, float] = Field(default_factory=dict)

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "DayConfig":
        return cls(
            day=day_from_store(data.get("day")),
            is_closed=bool(data.get("isClosed", False)),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            interval_minutes=coerce_number(data.get("intervalMinutes")),
            time_slots=[t for t in (data.get("timeSlots") or []) if isinstance(t, str)],
            prices=_clean_prices(data.get("prices")),
        )


class ServicesConfig(BaseModel):
    time_slots: List[str] = Field(default_factory=list)
    prices: Dict[str, float] = Field(default_factory=dict)

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "ServicesConfig":
        return cls(
            time_slots=[t for t in (data.get("timeSlots") or []) if isinstance(t, str)],
            prices=_clean_prices(data.get("prices")),
        )


def _clean_prices(raw: Any) -> Dict[str, float]:
    if not isinstance(raw, dict):
        return {}
    prices = {}
    for key, value in raw.items():
        number = coerce_number(value)
        if number is not None and number >= 0:
            prices[str(key)] = number
    return prices
