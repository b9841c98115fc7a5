from datetime import date
from typing import Any, Dict, List

import pandas as pd
import streamlit as st

from app.admin_client import AdminApiClient, AdminApiError

BOOKING_COLUMNS = {
    "time": "เวลา",
    "day": "วันที่",
    "service_title": "บริการ",
    "owner_name": "เจ้าของ",
    "pet_name": "ชื่อน้อง",
    "pet_weight_kg": "น้ำหนัก (กก.)",
    "pet_sex_label": "เพศน้อง",
    "groomer_gender_label": "ช่างที่ต้องการ",
    "user_email": "อีเมล",
    "note": "หมายเหตุ",
}


def bookings_frame(bookings: List[Dict[str, Any]]) -> pd.DataFrame:
    """Booking rows from the API -> table with Thai headers, known columns only."""
    df = pd.DataFrame(bookings, columns=list(BOOKING_COLUMNS))
    return df.rename(columns=BOOKING_COLUMNS)


def month_frame(summary: Dict[str, Any]) -> pd.DataFrame:
    """One row per day of the month summary, one column per service."""
    rows = []
    for day in summary.get("days", []):
        row = {"วันที่": day["day"], "รวม": day["total"]}
        row.update(day.get("by_service", {}))
        rows.append(row)
    return pd.DataFrame(rows)


MIN_INTERVAL_MINUTES = 1
DEFAULT_INTERVAL_MINUTES = 30


def interval_value(config: Dict[str, Any]) -> int:
    """Stored interval as a whole number the form accepts, never below the minimum."""
    stored = config.get("interval_minutes") or DEFAULT_INTERVAL_MINUTES
    return max(MIN_INTERVAL_MINUTES, int(stored))


def parse_slot_labels(text: str) -> List[str]:
    """Labels separated by commas or new lines. The API validates each one."""
    return [label.strip() for label in text.replace("\n", ",").split(",") if label.strip()]


def login_form():
    st.subheader("เข้าสู่ระบบผู้ดูแล")
    with st.form("login"):
        email = st.text_input("อีเมล")
        password = st.text_input("รหัสผ่าน", type="password")
        submitted = st.form_submit_button("เข้าสู่ระบบ")
    if submitted:
        client = AdminApiClient()
        try:
            session = client.sign_in(email.strip(), password)
        except AdminApiError as e:
            st.error(e.message)
            return
        if session.get("user", {}).get("role") != "admin":
            st.error("บัญชีนี้ไม่มีสิทธิ์ผู้ดูแลระบบ")
            return
        st.session_state["token"] = client.token
        st.rerun()


def daily_tab(client: AdminApiClient):
    day = st.date_input("วันที่", value=date.today())
    try:
        page = client.daily(day.isoformat())
    except AdminApiError as e:
        st.error(e.message)
        return

    summary = page["summary"]
    cols = st.columns(len(summary["by_service"]) + 1)
    cols[0].metric("คิวทั้งหมด", summary["total"])
    for col, (service_id, count) in zip(cols[1:], summary["by_service"].items()):
        col.metric(service_id, count)
    st.dataframe(bookings_frame(summary["bookings"]), use_container_width=True)

    active = page["active"]
    st.subheader("ตั้งค่าเวลาและราคาของวันนี้")
    config = active.get("config") or {}
    with st.form("day_config"):
        is_closed = st.checkbox("ปิดร้านทั้งวัน", value=active["closed"])
        start_time = st.text_input("เวลาเริ่ม", value=config.get("start_time") or "10:00")
        end_time = st.text_input("เวลาปิด", value=config.get("end_time") or "18:00")
        interval = st.number_input(
            "ช่วงห่าง (นาที)", min_value=MIN_INTERVAL_MINUTES, step=1, value=interval_value(config)
        )
        prices = {
            service_id: st.number_input(f"ราคา {service_id}", min_value=0.0, value=float(price))
            for service_id, price in active["prices"].items()
        }
        submitted = st.form_submit_button("บันทึก")
    if submitted:
        try:
            client.save_day_config(day.isoformat(), {
                "is_closed": is_closed,
                "start_time": start_time.strip(),
                "end_time": end_time.strip(),
                "interval_minutes": interval,
                "prices": prices,
            })
            st.success("บันทึกการตั้งค่าแล้ว")
        except AdminApiError as e:
            st.error(e.message)
    st.caption("ช่วงเวลา: " + (", ".join(active["time_slots"]) or "-"))


def month_tab(client: AdminApiClient):
    month = st.text_input("เดือน (YYYY-MM)", value=date.today().strftime("%Y-%m"))
    try:
        page = client.month(month)
    except AdminApiError as e:
        st.error(e.message)
        return
    summary = page["summary"]
    st.metric("คิวทั้งเดือน", summary["total"])
    st.dataframe(month_frame(summary), use_container_width=True)


def history_tab(client: AdminApiClient):
    col1, col2, col3 = st.columns(3)
    service = col1.selectbox("บริการ", ["all", "bath", "groom", "nail", "combo"])
    range_key = col2.selectbox("ช่วงเวลา", ["all", "7d", "30d"])
    q = col3.text_input("ค้นหา")
    try:
        page = client.history(service, range_key, q.strip())
    except AdminApiError as e:
        st.error(e.message)
        return
    st.caption(f"พบ {page['total']} รายการ")
    st.dataframe(bookings_frame(page["bookings"]), use_container_width=True)


def global_tab(client: AdminApiClient):
    st.subheader("ช่วงเวลาและราคามาตรฐาน")
    st.caption("ใช้กับทุกวันที่ไม่ได้ตั้งค่าแยกไว้")
    try:
        current = client.services_config()
    except AdminApiError as e:
        st.error(e.message)
        return

    with st.form("services_config"):
        slots_text = st.text_area("ช่วงเวลา (คั่นด้วยจุลภาค)", value=", ".join(current["time_slots"]))
        prices = {
            service_id: st.number_input(f"ราคา {service_id}", min_value=0.0, value=float(price), key=f"global_{service_id}")
            for service_id, price in current["prices"].items()
        }
        submitted = st.form_submit_button("บันทึก")
    if submitted:
        try:
            client.save_services_config({"time_slots": parse_slot_labels(slots_text), "prices": prices})
            st.success("บันทึกการตั้งค่ามาตรฐานแล้ว")
        except AdminApiError as e:
            st.error(e.message)


def main():
    st.set_page_config(page_title="Grooming Admin", page_icon="🐾", layout="wide")
    st.title("🐾 Admin Dashboard · คิวอาบน้ำตัดแต่งขน")

    token = st.session_state.get("token")
    if not token:
        login_form()
        return

    client = AdminApiClient(token=token)
    if st.button("ออกจากระบบ"):
        st.session_state.pop("token", None)
        st.rerun()

    daily, monthly, history, defaults = st.tabs(["รายวัน", "รายเดือน", "ประวัติทั้งหมด", "ตั้งค่ามาตรฐาน"])
    with daily:
        daily_tab(client)
    with monthly:
        month_tab(client)
    with history:
        history_tab(client)
    with defaults:
        global_tab(client)


if __name__ == "__main__":
    main()
