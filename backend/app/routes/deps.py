"""
Schools24 Backend — Shared Route Dependencies
===============================================

What:  FastAPI dependencies for the objects create_app() owns on app.state
       (cache, token service) and the per-request audit context.
Why:   Services receive their collaborators as arguments; routes pull them
       from the running app instead of importing module globals.
"""

from fastapi import Depends, Request

from app.middleware.auth import get_current_user_id
from app.services.admin_service import AuditContext
from app.services.auth_service import AuthService
from app.services.cache_service import CacheService
from app.services.token_service import TokenService


def get_cache(request: Request) -> CacheService:
    return request.app.state.cache


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_auth_service(tokens: TokenService = Depends(get_token_service)) -> AuthService:
    return AuthService(tokens)


def get_audit_context(request: Request, user_id=Depends(get_current_user_id)) -> AuditContext:
    """Caller, client IP and user agent recorded on every admin mutation."""
    return AuditContext(
        user_id=user_id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("User-Agent"),
    )
