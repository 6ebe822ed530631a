"""
Schools24 Backend — Auth Routes
=================================

What:  Login, registration, current-user view/update and logout.
How:   Thin handlers around AuthService; the service is built per request
       from the app's TokenService.

login and register are public (listed in PUBLIC_PATH_PREFIXES); the rest
need a bearer token.
"""

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.middleware.auth import get_current_user_id
from app.routes.deps import get_auth_service
from app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UpdateProfileRequest,
    UserEnvelope,
)
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Exchange email and password for tokens",
)
async def login(
    req: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    return await auth.login(db, req)


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    responses={409: {"description": "Email already registered", "model": ErrorResponse}},
    summary="Create an account and sign in",
)
async def register(
    req: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    return await auth.register(db, req)


@router.get("/me", response_model=UserEnvelope, summary="Current user")
async def get_me(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
    auth: AuthService = Depends(get_auth_service),
) -> UserEnvelope:
    return UserEnvelope(user=await auth.get_me(db, user_id))


@router.put("/me", response_model=UserEnvelope, summary="Update own profile")
async def update_me(
    req: UpdateProfileRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
    auth: AuthService = Depends(get_auth_service),
) -> UserEnvelope:
    return UserEnvelope(user=await auth.update_profile(db, user_id, req))


@router.post("/logout", response_model=MessageResponse, summary="Sign out")
async def logout(user_id: uuid.UUID = Depends(get_current_user_id)) -> MessageResponse:
    # Tokens are stateless; the client discards them
    logger.info("User %s logged out", user_id)
    return MessageResponse(message="Logged out successfully")
