from fastapi import APIRouter, Depends

from app.core.security import get_current_user
from app.models.api_models import Credentials, MeResponse
from app.models.db_models import UserProfile
from app.services.auth_service import auth_service, AuthSession, landing_page

router = APIRouter(prefix="/auth")


@router.post("/sign-in", response_model=AuthSession)
async def sign_in(req: Credentials):
    return await auth_service.sign_in(req.email.strip(), req.password)


@router.post("/sign-up", response_model=AuthSession)
async def sign_up(req: Credentials):
    return await auth_service.sign_up(req.email.strip(), req.password)


@router.get("/me", response_model=MeResponse)
async def me(user: UserProfile = Depends(get_current_user)):
    """Session check used by every page to pick its landing route."""
    return MeResponse(user=user, redirect=landing_page(user))
