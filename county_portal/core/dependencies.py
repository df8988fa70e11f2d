"""
FastAPI dependencies for the application.

Collaborators (session factory, email dispatcher, file storage, settings)
live on app.state so tests can build the app with fakes.
"""

from typing import AsyncGenerator, Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.config import Settings
from county_portal.core.jwt import decode_access_token
from county_portal.core.permissions import ensure_admin
from county_portal.db.session import session_scope
from county_portal.errors import AuthenticationFailed
from county_portal.models.user import User
from county_portal.repositories.user_repository import UserRepository
from county_portal.services.email_service import EmailDispatcher
from county_portal.services.storage_service import FileStorage

# Security scheme for JWT bearer tokens
security = HTTPBearer(auto_error=False)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get a database session, committed when the request succeeds."""
    async with session_scope(request.app.state.session_factory) as session:
        yield session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_email_dispatcher(request: Request) -> EmailDispatcher:
    return request.app.state.email_dispatcher


def get_file_storage(request: Request) -> FileStorage:
    return request.app.state.file_storage


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Get the current authenticated user from the bearer token.

    Raises:
        AuthenticationFailed: missing, invalid or expired token, or the user
            no longer exists
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationFailed("No token, authorization denied")

    payload = decode_access_token(credentials.credentials, secret_key=settings.SECRET_KEY)
    if not payload:
        raise AuthenticationFailed("Token is not valid")

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise AuthenticationFailed("Invalid token payload")

    user = await UserRepository(db).get_by_id(user_id)
    if not user:
        raise AuthenticationFailed("User not found")

    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency that only lets admins through."""
    ensure_admin(user)
    return user
