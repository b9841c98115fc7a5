import pytest
import requests
from unittest.mock import MagicMock, patch

from admin import bookings_frame, interval_value, month_frame, parse_slot_labels
from app.admin_client import AdminApiClient, AdminApiError


def make_response(status_code=200, body=None, headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body or {}
    response.headers = headers or {}
    return response


@patch("app.admin_client.requests.request")
def test_sign_in_stores_token(mock_request):
    mock_request.return_value = make_response(200, {
        "access_token": "jwt-token", "user": {"role": "admin"}, "redirect": "/dashboard",
    })
    client = AdminApiClient(base_url="http://api.test/")

    session = client.sign_in("admin@example.com", "secret")

    assert session["redirect"] == "/dashboard"
    assert client.token == "jwt-token"
    args, kwargs = mock_request.call_args
    assert args == ("POST", "http://api.test/auth/sign-in")
    assert kwargs["json"] == {"email": "admin@example.com", "password": "secret"}


@patch("app.admin_client.requests.get")
def test_daily_sends_bearer_and_date(mock_get):
    mock_get.return_value = make_response(200, {"summary": {"total": 0}})
    client = AdminApiClient(base_url="http://api.test", token="jwt-token")

    client.daily("2026-10-20")

    args, kwargs = mock_get.call_args
    assert args[0] == "http://api.test/dashboard"
    assert kwargs["params"] == {"date": "2026-10-20"}
    assert kwargs["headers"]["Authorization"] == "Bearer jwt-token"
    assert kwargs["allow_redirects"] is False


@patch("app.admin_client.requests.get")
def test_history_drops_empty_search(mock_get):
    mock_get.return_value = make_response(200, {"total": 0, "bookings": []})
    AdminApiClient(base_url="http://api.test", token="t").history("bath", "7d", "")

    assert mock_get.call_args.kwargs["params"] == {"service": "bath", "range": "7d"}


@patch("app.admin_client.requests.get")
def test_non_admin_redirect_is_error(mock_get):
    mock_get.return_value = make_response(303, headers={"location": "/services"})

    with pytest.raises(AdminApiError) as exc_info:
        AdminApiClient(base_url="http://api.test", token="t").month("2026-10")
    assert exc_info.value.redirect == "/services"


@patch("app.admin_client.requests.request")
def test_validation_message_is_passed_through(mock_request):
    mock_request.return_value = make_response(422, {"message": "รูปแบบเวลาไม่ถูกต้อง (ต้องเป็น HH:MM)"})

    with pytest.raises(AdminApiError) as exc_info:
        AdminApiClient(base_url="http://api.test", token="t").save_day_config("2026-10-20", {"start_time": "9"})
    assert exc_info.value.status_code == 422
    assert "HH:MM" in exc_info.value.message


@patch("app.admin_client.requests.get")
def test_connection_failure(mock_get):
    mock_get.side_effect = requests.ConnectionError("refused")

    with pytest.raises(AdminApiError):
        AdminApiClient(base_url="http://api.test", token="t").daily("2026-10-20")


def test_bookings_frame_keeps_known_columns():
    df = bookings_frame([
        {"time": "10:00", "day": "2026-10-20", "service_title": "ตัดแต่งขน", "owner_name": "Somchai",
         "pet_name": "Bobo", "pet_weight_kg": 4.5, "user_email": "a@example.com", "note": "", "id": "x"},
    ])
    assert list(df.columns) == [
        "เวลา", "วันที่", "บริการ", "เจ้าของ", "ชื่อน้อง", "น้ำหนัก (กก.)", "เพศน้อง", "ช่างที่ต้องการ", "อีเมล", "หมายเหตุ",
    ]
    assert df.iloc[0]["ชื่อน้อง"] == "Bobo"


def test_month_frame_one_row_per_day():
    df = month_frame({"days": [
        {"day": "2026-10-02", "total": 2, "by_service": {"bath": 2, "groom": 0}},
        {"day": "2026-10-09", "total": 1, "by_service": {"bath": 0, "groom": 1}},
    ]})
    assert list(df["วันที่"]) == ["2026-10-02", "2026-10-09"]
    assert list(df["groom"]) == [0, 1]


@patch("app.admin_client.requests.get")
def test_services_config_reads_global_defaults(mock_get):
    mock_get.return_value = make_response(200, {"time_slots": ["10:00"], "prices": {"bath": 300}})

    config = AdminApiClient(base_url="http://api.test", token="t").services_config()

    assert config["time_slots"] == ["10:00"]
    assert mock_get.call_args.args[0] == "http://api.test/dashboard/services-config"


@patch("app.admin_client.requests.request")
def test_save_services_config_puts_payload(mock_request):
    mock_request.return_value = make_response(200, {"day": "2026-10-18", "time_slots": ["09:00", "10:00"]})
    payload = {"time_slots": ["09:00", "10:00"], "prices": {"bath": 320.0}}

    AdminApiClient(base_url="http://api.test", token="t").save_services_config(payload)

    args, kwargs = mock_request.call_args
    assert args == ("PUT", "http://api.test/dashboard/services-config")
    assert kwargs["json"] == payload


def test_interval_value_never_below_form_minimum():
    assert interval_value({"interval_minutes": 3}) == 3
    assert interval_value({"interval_minutes": 0.5}) == 1
    assert interval_value({"interval_minutes": None}) == 30
    assert interval_value({}) == 30


def test_parse_slot_labels():
    assert parse_slot_labels("10:00, 10:30\n11:00,,") == ["10:00", "10:30", "11:00"]
    assert parse_slot_labels("") == []
