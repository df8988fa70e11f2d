"""
Authentication router - login, admin-only registration and current user.
"""

from datetime import timedelta

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.config import Settings
from county_portal.core.dependencies import get_current_user, get_db, get_settings, require_admin
from county_portal.models.user import User
from county_portal.schemas.user import LoginRequest, LoginResponse, UserCreated, UserRead, UserRegister
from county_portal.services.auth_service import AuthService
from county_portal.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Authenticate user and return JWT token.

    Returns 401 for an unknown email or a wrong password.
    """
    auth_service = AuthService(
        db,
        secret_key=settings.SECRET_KEY,
        token_ttl=timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS),
    )
    return await auth_service.login(credentials)


@router.post("/register", response_model=UserCreated, status_code=status.HTTP_201_CREATED)
async def register(
    data: UserRegister,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create an account. Public registration is disabled; the new user logs in separately."""
    user = await UserService(db).register(admin, data)
    await db.commit()
    return UserCreated(message="User created successfully", user=UserRead.model_validate(user))


@router.get("/me", response_model=UserRead)
async def get_me(user: User = Depends(get_current_user)):
    """Get current authenticated user information."""
    return user
