"""
Schools24 Backend — Auth Service
==================================

What:  Registration, login and self-service profile management.
How:   bcrypt for password hashes, TokenService for the access/refresh pair,
       UserRepository for persistence.
Who:   routes/auth.py; AdminService reuses hash_password for onboarding.

Login Flow:
    email (lowercased) → active user? ─no─▶ 401 "Invalid email or password"
                              │yes
                     bcrypt.checkpw ─fail─▶ 401 (same message)
                              │ok
                  last_login_at = now → issue access + refresh tokens

    Unknown email, inactive account and wrong password share one message,
    so the endpoint does not reveal which emails are registered.
"""

import logging
import uuid

import bcrypt
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError, UnauthorizedError
from app.models.user import User
from app.repositories.user_repository import user_repository
from app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UpdateProfileRequest,
    UserResponse,
)
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """False for a wrong password or a malformed stored hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


class AuthService:
    """
    Args:
        token_service: the application's TokenService (app.state.token_service)
    """

    def __init__(self, token_service: TokenService):
        self.tokens = token_service

    def _auth_response(self, user: User) -> AuthResponse:
        return AuthResponse(
            user=UserResponse.model_validate(user),
            access_token=self.tokens.issue_access_token(str(user.id), user.email, user.role),
            refresh_token=self.tokens.issue_refresh_token(str(user.id), user.email, user.role),
            expires_in=self.tokens.access_ttl_seconds,
        )

    async def register(self, db: AsyncSession, req: RegisterRequest) -> AuthResponse:
        email = req.email.lower()
        if await user_repository.email_exists(db, email):
            raise ConflictError(message="This email is already registered")

        user = await user_repository.create(
            db,
            email=email,
            password_hash=hash_password(req.password),
            role=req.role,
            full_name=req.full_name,
            phone=req.phone or None,
        )
        logger.info("Registered user %s (role=%s)", user.id, user.role)
        return self._auth_response(user)

    async def login(self, db: AsyncSession, req: LoginRequest) -> AuthResponse:
        user = await user_repository.get_active_by_email(db, req.email.lower())
        if user is None or not verify_password(req.password, user.password_hash):
            raise UnauthorizedError(message="Invalid email or password")

        await user_repository.touch_last_login(db, user)
        await db.refresh(user)
        logger.info("User %s logged in", user.id)
        return self._auth_response(user)

    async def get_me(self, db: AsyncSession, user_id: uuid.UUID) -> UserResponse:
        user = await user_repository.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError(resource="user")
        return UserResponse.model_validate(user)

    async def update_profile(
        self, db: AsyncSession, user_id: uuid.UUID, req: UpdateProfileRequest
    ) -> UserResponse:
        user = await user_repository.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError(resource="user")

        # Null and absent fields leave the column unchanged
        fields = req.model_dump(exclude_none=True)
        if fields:
            user = await user_repository.update_fields(db, user, fields)
        return UserResponse.model_validate(user)
