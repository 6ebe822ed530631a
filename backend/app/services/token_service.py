"""
Schools24 Backend — Token Service
===================================

What:  Issues and verifies the signed bearer tokens used for authentication.
Why:   Stateless auth: a token carries the caller's identity and role, so no
       server-side session lookup is needed per request.
How:   HS256 JWTs via python-jose. Claims:
           {user_id, email, role, iat, nbf, exp}
       Two tokens per login/registration, identical apart from expiry:
           access:  JWT_EXPIRATION_HOURS         (default 24h)
           refresh: JWT_REFRESH_EXPIRATION_DAYS  (default 7d)
Who:   AuthService (issue), JWTAuthMiddleware (verify).

Verification rules:
    1. Signature must match JWT_SECRET
    2. Header alg must be HS256; anything else ("none", HS512, RS256) fails
    3. nbf <= now <= exp, checked against the injected clock
    Every failure raises the same InvalidTokenError. Callers never learn
    whether a token was expired, malformed or forged.

There is no revocation list: logout is client-side discard, and a leaked
token stays valid until exp.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from app.config import settings
from app.exceptions import InvalidTokenError
from app.schemas.auth import TokenClaims

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenService:
    """
    Stateless JWT issuer/verifier.

    Args:
        secret:         HMAC key shared by issue and verify
        access_hours:   access token lifetime
        refresh_days:   refresh token lifetime
        clock:          returns current UNIX time in seconds (tests inject a fake)
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        access_hours: Optional[int] = None,
        refresh_days: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.secret = secret or settings.jwt_secret
        self.access_hours = access_hours or settings.jwt_expiration_hours
        self.refresh_days = refresh_days or settings.jwt_refresh_expiration_days
        self._clock = clock

    @property
    def access_ttl_seconds(self) -> int:
        return self.access_hours * 3600

    @property
    def refresh_ttl_seconds(self) -> int:
        return self.refresh_days * 86400

    def issue(self, user_id: str, email: str, role: str, ttl_seconds: int) -> str:
        """Sign a token valid from now for ttl_seconds."""
        now = int(self._clock())
        claims: Dict[str, Any] = {
            "user_id": str(user_id),
            "email": email,
            "role": role,
            "iat": now,
            "nbf": now,
            "exp": now + ttl_seconds,
        }
        return jwt.encode(claims, self.secret, algorithm=ALGORITHM)

    def issue_access_token(self, user_id: str, email: str, role: str) -> str:
        return self.issue(user_id, email, role, self.access_ttl_seconds)

    def issue_refresh_token(self, user_id: str, email: str, role: str) -> str:
        return self.issue(user_id, email, role, self.refresh_ttl_seconds)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate a token.

        python-jose checks the signature and algorithm; the time window is
        checked here so it follows the injected clock instead of the
        library's wall clock.

        Raises:
            InvalidTokenError: for every kind of failure
        """
        try:
            header = jwt.get_unverified_header(token)
            if header.get("alg") != ALGORITHM:
                raise InvalidTokenError(context={"reason": "algorithm"})
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                options={"verify_exp": False, "verify_nbf": False, "verify_iat": False},
            )
            claims = TokenClaims(**payload)
        except (JWTError, PydanticValidationError) as e:
            logger.debug("Token rejected: %s", type(e).__name__)
            raise InvalidTokenError(context={"reason": type(e).__name__})

        now = self._clock()
        if now < claims.nbf or now > claims.exp:
            logger.debug("Token outside validity window (now=%s exp=%s)", int(now), claims.exp)
            raise InvalidTokenError(context={"reason": "window"})
        return claims
