"""
Schools24 Backend — JWT Authentication Middleware & Role Gate
===============================================================

What:  Verifies the bearer token on every API request and exposes the
       decoded claims to handlers; RoleChecker restricts route groups.
How:   JWTAuthMiddleware runs before routing. Handlers read the claims
       through the get_current_claims dependency.
Who:   Registered in main.create_app(); RoleChecker is attached to the
       teacher, admin and admin-only academic/class routes.

Request decision:
    path outside API prefix (docs, /uploads) ──────────────▶ pass through
    path starts with a public prefix ──────────────────────▶ pass through
    no "Authorization: Bearer <token>" ────────────────────▶ 401 unauthorized
    TokenService.verify fails ─────────────────────────────▶ 401 invalid_token
    ok ──▶ request.state.claims = TokenClaims ─────────────▶ handler
"""

import logging
import uuid
from typing import Iterable, Sequence, Tuple

from fastapi import Depends, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.exceptions import ForbiddenError, InvalidTokenError, UnauthorizedError
from app.middleware.request_id import request_id_var
from app.schemas.auth import TokenClaims
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)

PUBLIC_PATH_PREFIXES: Tuple[str, ...] = (
    "/health",
    "/ready",
    f"{settings.api_prefix}/auth/login",
    f"{settings.api_prefix}/auth/register",
)


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "request_id": request_id_var.get("")},
        headers={"WWW-Authenticate": "Bearer"},
    )


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """
    Args:
        token_service:   verifier shared with AuthService (app.state.token_service)
        api_prefix:      only paths under this prefix require a token
        public_prefixes: prefix-matched paths that never require a token
    """

    def __init__(
        self,
        app,
        token_service: TokenService,
        api_prefix: str = settings.api_prefix,
        public_prefixes: Iterable[str] = PUBLIC_PATH_PREFIXES,
    ):
        super().__init__(app)
        self.token_service = token_service
        self.api_prefix = api_prefix
        self.public_prefixes = tuple(public_prefixes)

    def requires_auth(self, path: str) -> bool:
        if path.startswith(self.public_prefixes):
            return False
        return path.startswith(self.api_prefix)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # CORS preflight carries no credentials
        if request.method == "OPTIONS" or not self.requires_auth(request.url.path):
            return await call_next(request)

        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            unauthorized = UnauthorizedError()
            return _error(401, unauthorized.error_code, unauthorized.message)

        try:
            claims = self.token_service.verify(token.strip())
        except InvalidTokenError as e:
            logger.info("Rejected token on %s %s", request.method, request.url.path)
            return _error(401, e.error_code, e.message)

        request.state.claims = claims
        return await call_next(request)


# ── Dependencies ──────────────────────────────────────────────────────────


def get_current_claims(request: Request) -> TokenClaims:
    """Claims attached by JWTAuthMiddleware; 401 if the route was reached without them."""
    claims = getattr(request.state, "claims", None)
    if claims is None:
        raise UnauthorizedError()
    return claims


def get_current_user_id(claims: TokenClaims = Depends(get_current_claims)) -> uuid.UUID:
    try:
        return uuid.UUID(claims.user_id)
    except ValueError:
        raise InvalidTokenError(context={"reason": "user_id"})


class RoleChecker:
    """
    Route-group dependency: the claim role must be in allowed_roles.

    Usage:
        router = APIRouter(dependencies=[Depends(RoleChecker(["teacher", "admin"]))])
    """

    def __init__(self, allowed_roles: Sequence[str]):
        self.allowed_roles = tuple(allowed_roles)

    def __call__(self, claims: TokenClaims = Depends(get_current_claims)) -> TokenClaims:
        if claims.role not in self.allowed_roles:
            logger.info("Role %s denied (allowed: %s)", claims.role, ", ".join(self.allowed_roles))
            raise ForbiddenError()
        return claims
