import pytest
from datetime import datetime
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch

from app.core.dates import shop_tz
from app.core.exceptions import StoreError
from app.core.security import get_current_user
from app.main import app
from app.models.db_models import UserProfile

client = TestClient(app)

CUSTOMER = UserProfile(id="user-1", email="somchai@example.com", role="customer")
ADMIN = UserProfile(id="admin-1", email="admin@example.com", role="admin")


@pytest.fixture
def frozen_now():
    with patch("app.core.dates.now", return_value=datetime(2026, 10, 18, 8, 0, tzinfo=shop_tz())):
        yield


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.get_services_config.return_value = None
    db.get_day_config.return_value = None
    db.get_booked_times.return_value = []
    with patch("app.services.booking_service.db_service", db), \
         patch("app.services.dashboard_service.db_service", db):
        yield db


@pytest.fixture
def as_user():
    def login(user):
        app.dependency_overrides[get_current_user] = lambda: user
    yield login
    app.dependency_overrides.clear()


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_missing_session_sends_back_to_sign_in():
    response = client.get("/history")
    assert response.status_code == 401
    assert response.json()["redirect"] == "/"


def test_customer_on_admin_page_is_redirected(as_user, mock_db):
    as_user(CUSTOMER)
    response = client.get("/dashboard", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/services"
    mock_db.get_bookings_for_day.assert_not_awaited()


def test_me_reports_landing_page(as_user):
    as_user(ADMIN)
    response = client.get("/auth/me")
    assert response.status_code == 200
    assert response.json()["redirect"] == "/dashboard"


def test_services_page(as_user, mock_db):
    as_user(CUSTOMER)
    response = client.get("/services", params={"date": "2026-10-20"})
    assert response.status_code == 200
    data = response.json()
    assert [s["id"] for s in data["services"]] == ["bath", "groom", "nail", "combo"]
    assert data["services"][0]["price"] == 300
    assert len(data["days"]) == 14


def test_slots_bad_date_is_localized_validation_error(as_user, mock_db):
    as_user(CUSTOMER)
    response = client.get("/services/bath/slots", params={"date": "20-10-2026"})
    assert response.status_code == 422
    assert response.json()["message"] == "รูปแบบวันที่ไม่ถูกต้อง"


def test_slots_unknown_service(as_user, mock_db):
    as_user(CUSTOMER)
    response = client.get("/services/spa/slots", params={"date": "2026-10-20"})
    assert response.status_code == 422


def test_booking_blank_owner_rejected(as_user, mock_db, frozen_now):
    as_user(CUSTOMER)
    response = client.post("/bookings", json={
        "service_id": "bath", "date": "2026-10-20", "time": "10:00",
        "owner_name": "", "pet_name": "Bobo",
    })
    assert response.status_code == 422
    assert response.json()["message"] == "กรุณากรอกชื่อเจ้าของ"
    mock_db.insert_booking.assert_not_awaited()


def test_booking_created(as_user, mock_db, frozen_now):
    as_user(CUSTOMER)
    mock_db.insert_booking.side_effect = lambda record: {"id": "b-9", **record}
    response = client.post("/bookings", json={
        "service_id": "groom", "date": "2026-10-20", "time": "14:00",
        "owner_name": "Somchai", "pet_name": "Bobo", "pet_weight_kg": "7,2",
    })

    assert response.status_code == 201
    data = response.json()
    assert data["booking"]["id"] == "b-9"
    assert data["booking"]["day"] == "2026-10-20"
    assert data["booking"]["pet_weight_kg"] == 7.2
    statuses = {s["time"]: s["status"] for s in data["board"]["slots"]}
    assert statuses["14:00"] == "booked"


def test_store_failure_is_inline_error(as_user, mock_db):
    as_user(CUSTOMER)
    mock_db.get_bookings_for_user.side_effect = StoreError("โหลดข้อมูลไม่สำเร็จ กรุณาลองใหม่อีกครั้ง")
    response = client.get("/history")
    assert response.status_code == 502
    assert response.json()["message"] == "โหลดข้อมูลไม่สำเร็จ กรุณาลองใหม่อีกครั้ง"


def test_admin_month_summary(as_user, mock_db):
    as_user(ADMIN)
    mock_db.get_bookings_between.return_value = [
        {"id": "1", "serviceId": "bath", "time": "10:00", "date": "2026-10-02T00:00:00+07:00"},
    ]
    response = client.get("/dashboard/month", params={"month": "2026-10"})
    assert response.status_code == 200
    assert response.json()["summary"]["days"][0]["day"] == "2026-10-02"


def test_admin_month_bad_param(as_user, mock_db):
    as_user(ADMIN)
    response = client.get("/dashboard/month", params={"month": "Oct"})
    assert response.status_code == 422


def test_admin_history_passes_filters(as_user, mock_db):
    as_user(ADMIN)
    mock_db.get_all_bookings.return_value = [
        {"id": "1", "serviceId": "bath", "time": "10:00", "date": "2026-10-02T00:00:00+07:00",
         "userEmail": "a@example.com"},
        {"id": "2", "serviceId": "nail", "time": "10:00", "date": "2026-10-02T00:00:00+07:00",
         "userEmail": "b@example.com"},
    ]
    response = client.get("/dashboard/bookings-history", params={"service": "nail", "range": "all", "q": "b@"})
    assert response.status_code == 200
    assert [b["id"] for b in response.json()["bookings"]] == ["2"]


def test_admin_day_config_invalid_window(as_user, mock_db):
    as_user(ADMIN)
    response = client.put("/dashboard/day-config/2026-10-20", json={
        "start_time": "18:00", "end_time": "10:00", "interval_minutes": 30,
    })
    assert response.status_code == 422
    mock_db.upsert_day_config.assert_not_awaited()


def test_admin_day_config_saved(as_user, mock_db):
    as_user(ADMIN)
    response = client.put("/dashboard/day-config/2026-10-20", json={"is_closed": True})
    assert response.status_code == 200
    mock_db.upsert_day_config.assert_awaited_once()


def test_admin_day_config_fractional_interval_rejected(as_user, mock_db):
    as_user(ADMIN)
    response = client.put("/dashboard/day-config/2026-10-20", json={
        "start_time": "10:00", "end_time": "10:03", "interval_minutes": 0.5,
    })
    assert response.status_code == 422
    mock_db.upsert_day_config.assert_not_awaited()


def test_admin_reads_global_config(as_user, mock_db):
    as_user(ADMIN)
    response = client.get("/dashboard/services-config")
    assert response.status_code == 200
    data = response.json()
    assert data["prices"]["combo"] == 650
    assert "10:00" in data["time_slots"]
