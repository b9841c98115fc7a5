from typing import Optional

from pydantic import BaseModel
from supabase import AsyncClient, create_async_client
from supabase.lib.client_options import AsyncClientOptions

from app.core.config import settings
from app.core.exceptions import AuthError, StoreError
from app.core.logger import logger
from app.models.db_models import UserProfile
from app.services.db_service import db_service

LANDING_ADMIN = "/dashboard"
LANDING_CUSTOMER = "/services"

SIGN_IN_FAILED = "ไม่สามารถเข้าสู่ระบบได้ กรุณาลองใหม่อีกครั้ง"
SIGN_UP_FAILED = "ไม่สามารถสมัครสมาชิกได้ กรุณาลองใหม่อีกครั้ง"
SESSION_EXPIRED = "เซสชันหมดอายุ กรุณาเข้าสู่ระบบใหม่"


class AuthSession(BaseModel):
    access_token: Optional[str] = None
    user: UserProfile
    redirect: str


def landing_page(profile: UserProfile) -> str:
    return LANDING_ADMIN if profile.is_admin else LANDING_CUSTOMER


class AuthService:
    """
    Email/password identity backed by Supabase Auth.
    Uses its own client, created once, separate from the table client in
    db_service so that client never picks up a user session. Sessions are
    not persisted or refreshed here; every request passes its own token.
    """
    _client: AsyncClient = None

    async def _auth_client(self):
        if not self._client:
            if not (settings.SUPABASE_URL and settings.SUPABASE_KEY):
                logger.warning("⚠️ Supabase credentials missing")
                raise StoreError(SIGN_IN_FAILED)
            options = AsyncClientOptions(auto_refresh_token=False, persist_session=False)
            self._client = await create_async_client(settings.SUPABASE_URL, settings.SUPABASE_KEY, options=options)
            logger.info("✅ Supabase Auth client initialized")
        return self._client.auth

    async def sign_in(self, email: str, password: str) -> AuthSession:
        auth = await self._auth_client()
        try:
            response = await auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.warning(f"⚠️ Sign-in failed for {email}: {e}")
            raise AuthError(SIGN_IN_FAILED) from e

        if not response.user or not response.session:
            raise AuthError(SIGN_IN_FAILED)

        profile = UserProfile.from_record(
            await db_service.ensure_user(response.user.id, response.user.email or email)
        )
        logger.info(f"🔓 Signed in: {profile.email} ({profile.role})")
        return AuthSession(
            access_token=response.session.access_token,
            user=profile,
            redirect=landing_page(profile),
        )

    async def sign_up(self, email: str, password: str) -> AuthSession:
        auth = await self._auth_client()
        try:
            response = await auth.sign_up({"email": email, "password": password})
        except Exception as e:
            logger.warning(f"⚠️ Sign-up failed for {email}: {e}")
            raise AuthError(SIGN_UP_FAILED) from e

        if not response.user:
            raise AuthError(SIGN_UP_FAILED)

        profile = UserProfile.from_record(
            await db_service.ensure_user(response.user.id, response.user.email or email)
        )
        logger.info(f"🆕 Registered: {profile.email}")
        # Projects with email confirmation enabled return no session yet
        token = response.session.access_token if response.session else None
        return AuthSession(access_token=token, user=profile, redirect=landing_page(profile))

    async def resolve_token(self, token: str) -> UserProfile:
        """
        Bearer token -> profile with role. A missing or unreadable users row
        means customer.
        """
        auth = await self._auth_client()
        try:
            response = await auth.get_user(token)
        except Exception as e:
            logger.info(f"🔒 Rejected session token: {e}")
            raise AuthError(SESSION_EXPIRED) from e

        if not response or not response.user:
            raise AuthError(SESSION_EXPIRED)

        try:
            row = await db_service.get_user(response.user.id)
        except StoreError:
            # Unknown role is treated as customer, admin pages redirect away
            logger.warning(f"⚠️ Role lookup failed for {response.user.id}")
            row = None
        if row is None:
            return UserProfile(id=response.user.id, email=response.user.email or "")
        return UserProfile.from_record(row)


auth_service = AuthService()
