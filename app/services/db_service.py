from datetime import date
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import create_async_client, AsyncClient

from app.core.config import settings
from app.core.dates import day_to_store
from app.core.exceptions import SlotUnavailable, StoreError
from app.core.logger import logger

USERS = "users"
BOOKINGS = "bookings"
SERVICES_CONFIG = "services_config"
DAY_CONFIGS = "day_configs"
GLOBAL_CONFIG_ID = "global"

UNIQUE_VIOLATION = "23505"

LOAD_FAILED = "โหลดข้อมูลไม่สำเร็จ กรุณาลองใหม่อีกครั้ง"
SAVE_FAILED = "บันทึกข้อมูลไม่สำเร็จ กรุณาลองใหม่อีกครั้ง"
SLOT_TAKEN = "ช่วงเวลานี้ถูกจองแล้ว กรุณาเลือกเวลาอื่น"


class DBService:
    """
    Thin wrapper over the Supabase tables. Every call either returns plain
    row dicts or raises StoreError; nothing else leaves this class.
    """
    _instance = None
    _client: AsyncClient = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(DBService, cls).__new__(cls)
        return cls._instance

    async def get_client(self) -> AsyncClient:
        if not self._client:
            if not (settings.SUPABASE_URL and settings.SUPABASE_KEY):
                logger.warning("⚠️ Supabase credentials missing")
                raise StoreError(LOAD_FAILED)
            try:
                self._client = await create_async_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
                logger.info("✅ Supabase Async client initialized")
            except Exception as e:
                logger.error(f"❌ Failed to initialize Supabase Async: {e}")
                raise StoreError(LOAD_FAILED) from e
        return self._client

    async def _run(self, query, action: str, failure: str = LOAD_FAILED):
        try:
            return await query.execute()
        except Exception as e:
            logger.error(f"❌ DB Error ({action}): {e}")
            raise StoreError(failure) from e

    # --- users ---

    async def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        client = await self.get_client()
        response = await self._run(
            client.table(USERS).select("*").eq("id", user_id).limit(1),
            "get_user",
        )
        return response.data[0] if response.data else None

    async def ensure_user(self, user_id: str, email: str) -> Dict[str, Any]:
        """Returns the user row, creating it as a customer on first login."""
        existing = await self.get_user(user_id)
        if existing:
            return existing

        client = await self.get_client()
        new_user = {"id": user_id, "email": email, "role": "customer"}
        response = await self._run(
            client.table(USERS).insert(new_user), "ensure_user", SAVE_FAILED
        )
        logger.info(f"🆕 New user profile created: {email}")
        return response.data[0] if response.data else new_user

    # --- bookings ---

    async def get_booked_times(self, service_id: str, day: date) -> List[str]:
        client = await self.get_client()
        response = await self._run(
            client.table(BOOKINGS)
            .select("time")
            .eq("serviceId", service_id)
            .eq("date", day_to_store(day)),
            "get_booked_times",
        )
        return [row["time"] for row in response.data if row.get("time")]

    async def get_bookings_for_day(self, day: date) -> List[Dict[str, Any]]:
        client = await self.get_client()
        response = await self._run(
            client.table(BOOKINGS).select("*").eq("date", day_to_store(day)),
            "get_bookings_for_day",
        )
        return response.data

    async def get_bookings_between(self, start: date, end: date) -> List[Dict[str, Any]]:
        """Bookings with start <= day < end."""
        client = await self.get_client()
        response = await self._run(
            client.table(BOOKINGS)
            .select("*")
            .gte("date", day_to_store(start))
            .lt("date", day_to_store(end))
            .order("date"),
            "get_bookings_between",
        )
        return response.data

    async def get_bookings_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        client = await self.get_client()
        response = await self._run(
            client.table(BOOKINGS).select("*").eq("userId", user_id),
            "get_bookings_for_user",
        )
        return response.data

    async def count_bookings_for_user(self, user_id: str) -> int:
        client = await self.get_client()
        response = await self._run(
            client.table(BOOKINGS).select("id", count="exact").eq("userId", user_id),
            "count_bookings_for_user",
        )
        if response.count is not None:
            return response.count
        return len(response.data)

    async def get_all_bookings(self) -> List[Dict[str, Any]]:
        client = await self.get_client()
        response = await self._run(
            client.table(BOOKINGS).select("*"), "get_all_bookings"
        )
        return response.data

    async def insert_booking(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Appends a booking. The (serviceId, date, time) unique index turns a
        concurrent double booking into SlotUnavailable.
        """
        client = await self.get_client()
        try:
            response = await client.table(BOOKINGS).insert(record).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                logger.warning(
                    f"⚠️ Slot already taken: {record.get('serviceId')} {record.get('date')} {record.get('time')}"
                )
                raise SlotUnavailable(SLOT_TAKEN) from e
            logger.error(f"❌ DB Error (insert_booking): {e}")
            raise StoreError(SAVE_FAILED) from e
        except Exception as e:
            logger.error(f"❌ DB Error (insert_booking): {e}")
            raise StoreError(SAVE_FAILED) from e

        logger.info(f"✅ Booking stored for {record.get('userEmail')} at {record.get('date')} {record.get('time')}")
        return response.data[0] if response.data else record

    # --- configuration ---

    async def get_services_config(self) -> Optional[Dict[str, Any]]:
        client = await self.get_client()
        response = await self._run(
            client.table(SERVICES_CONFIG).select("*").eq("id", GLOBAL_CONFIG_ID).limit(1),
            "get_services_config",
        )
        return response.data[0] if response.data else None

    async def upsert_services_config(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        client = await self.get_client()
        payload = {"id": GLOBAL_CONFIG_ID, **fields}
        response = await self._run(
            client.table(SERVICES_CONFIG).upsert(payload, on_conflict="id"),
            "upsert_services_config",
            SAVE_FAILED,
        )
        logger.info(f"💾 Global services config saved: {sorted(fields)}")
        return response.data[0] if response.data else payload

    async def get_day_config(self, day: date) -> Optional[Dict[str, Any]]:
        client = await self.get_client()
        response = await self._run(
            client.table(DAY_CONFIGS).select("*").eq("day", day.isoformat()).limit(1),
            "get_day_config",
        )
        return response.data[0] if response.data else None

    async def upsert_day_config(self, day: date, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Writes only the given columns; columns not in `fields` keep their value."""
        client = await self.get_client()
        payload = {"day": day.isoformat(), **fields}
        response = await self._run(
            client.table(DAY_CONFIGS).upsert(payload, on_conflict="day"),
            "upsert_day_config",
            SAVE_FAILED,
        )
        logger.info(f"💾 Day config saved for {day.isoformat()}: {sorted(fields)}")
        return response.data[0] if response.data else payload

db_service = DBService()
