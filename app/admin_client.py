from typing import Any, Dict, Optional

import requests

from app.core.config import settings
from app.core.logger import logger

REQUEST_TIMEOUT = 10
CONNECTION_FAILED = "ไม่สามารถเชื่อมต่อเซิร์ฟเวอร์ได้"


class AdminApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, redirect: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.redirect = redirect


class AdminApiClient:
    """
    HTTP client the Streamlit admin panel uses to talk to the backend.
    Redirects are not followed: a 303 from an admin endpoint means the
    signed-in account is not an admin.
    """

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.token = token

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _handle(self, response) -> Dict[str, Any]:
        if response.status_code in (301, 302, 303, 307):
            raise AdminApiError(
                "บัญชีนี้ไม่มีสิทธิ์ผู้ดูแลระบบ",
                response.status_code,
                response.headers.get("location"),
            )
        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            raise AdminApiError(
                body.get("message", CONNECTION_FAILED),
                response.status_code,
                body.get("redirect"),
            )
        return response.json()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = requests.get(
                f"{self.base_url}{path}",
                params={k: v for k, v in (params or {}).items() if v},
                headers=self._headers(),
                timeout=REQUEST_TIMEOUT,
                allow_redirects=False,
            )
        except requests.RequestException as e:
            logger.error(f"❌ Admin API GET {path} failed: {e}")
            raise AdminApiError(CONNECTION_FAILED) from e
        return self._handle(response)

    def _send(self, method: str, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = requests.request(
                method,
                f"{self.base_url}{path}",
                json=payload,
                headers=self._headers(),
                timeout=REQUEST_TIMEOUT,
                allow_redirects=False,
            )
        except requests.RequestException as e:
            logger.error(f"❌ Admin API {method} {path} failed: {e}")
            raise AdminApiError(CONNECTION_FAILED) from e
        return self._handle(response)

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        session = self._send("POST", "/auth/sign-in", {"email": email, "password": password})
        self.token = session.get("access_token")
        logger.info(f"🔑 Admin panel signed in as {email}")
        return session

    def daily(self, day: str) -> Dict[str, Any]:
        return self._get("/dashboard", {"date": day})

    def month(self, month: str) -> Dict[str, Any]:
        return self._get("/dashboard/month", {"month": month})

    def history(self, service: str = "all", range_key: str = "all", q: str = "") -> Dict[str, Any]:
        return self._get("/dashboard/bookings-history", {"service": service, "range": range_key, "q": q})

    def save_day_config(self, day: str, update: Dict[str, Any]) -> Dict[str, Any]:
        return self._send("PUT", f"/dashboard/day-config/{day}", update)

    def services_config(self) -> Dict[str, Any]:
        return self._get("/dashboard/services-config")

    def save_services_config(self, update: Dict[str, Any]) -> Dict[str, Any]:
        return self._send("PUT", "/dashboard/services-config", update)
