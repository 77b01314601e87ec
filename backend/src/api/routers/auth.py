"""Registration, login and profile endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_claim, get_request_settings
from core.config import Settings
from core.security import SessionClaim
from schemas.user import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserPublic,
)
from services import user_service

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    data: RegisterRequest | None = None,
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_request_settings),
) -> RegisterResponse:
    """Create an account. Duplicate e-mails are rejected with 400."""
    data = data or RegisterRequest()
    user = await user_service.register_user(
        db, settings, data.name, data.email, data.password,
    )
    return RegisterResponse(message="User registered", user=UserPublic.model_validate(user))


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest | None = None,
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_request_settings),
) -> LoginResponse:
    """Exchange e-mail and password for a bearer token valid for one hour."""
    data = data or LoginRequest()
    token, user = await user_service.authenticate(db, settings, data.email, data.password)
    return LoginResponse(token=token, user=UserPublic.model_validate(user))


@router.get("/profile", response_model=UserPublic)
async def profile(
    claim: SessionClaim = Depends(get_current_claim),
    db: AsyncSession = Depends(get_async_session),
) -> UserPublic:
    """Return the caller's public profile."""
    user = await user_service.get_profile(db, claim)
    return UserPublic.model_validate(user)
