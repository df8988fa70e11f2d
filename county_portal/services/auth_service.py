"""
Authentication service for user login and token management.
"""

from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.jwt import create_access_token
from county_portal.core.security import verify_password
from county_portal.errors import AuthenticationFailed
from county_portal.models.user import User
from county_portal.repositories.user_repository import UserRepository
from county_portal.schemas.user import LoginRequest, LoginResponse, UserRead


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        db: AsyncSession,
        secret_key: Optional[str] = None,
        token_ttl: Optional[timedelta] = None,
    ):
        self.user_repository = UserRepository(db)
        self.secret_key = secret_key
        self.token_ttl = token_ttl

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user by email and password.

        Args:
            email: User email, matched case-insensitively
            password: Plain text password

        Returns:
            User object if authentication successful, None otherwise
        """
        user = await self.user_repository.get_by_email(email)
        if not user:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    def create_token_for_user(self, user: User) -> str:
        """Create a JWT access token whose subject is the user id."""
        token_data = {
            "sub": str(user.id),
            "role": user.role,
        }
        return create_access_token(token_data, expires_delta=self.token_ttl, secret_key=self.secret_key)

    async def login(self, credentials: LoginRequest) -> LoginResponse:
        """
        Perform user login.

        Raises:
            AuthenticationFailed: unknown email or wrong password
        """
        user = await self.authenticate_user(credentials.email, credentials.password)
        if not user:
            raise AuthenticationFailed("Invalid credentials")

        return LoginResponse(
            access_token=self.create_token_for_user(user),
            user=UserRead.model_validate(user),
        )
