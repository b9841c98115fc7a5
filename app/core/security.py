from fastapi import Depends, Header

from app.core.exceptions import AuthError, RoleRedirect
from app.core.logger import logger
from app.models.db_models import UserProfile
from app.services.auth_service import auth_service, LANDING_CUSTOMER, SESSION_EXPIRED


async def get_current_user(authorization: str = Header(None)) -> UserProfile:
    """
    Resolves `Authorization: Bearer <token>` to a profile.
    No or bad token -> AuthError (client goes back to the sign-in page).
    """
    if not authorization or not authorization.lower().startswith("bearer "):
        raise AuthError(SESSION_EXPIRED)
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise AuthError(SESSION_EXPIRED)
    return await auth_service.resolve_token(token)


async def require_admin(user: UserProfile = Depends(get_current_user)) -> UserProfile:
    """Admin pages: anyone else is sent to the booking page without an error."""
    if not user.is_admin:
        logger.info(f"↪️ Non-admin {user.email} redirected to {LANDING_CUSTOMER}")
        raise RoleRedirect(LANDING_CUSTOMER)
    return user
