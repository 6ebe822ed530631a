"""
Schools24 Backend — Token Service Unit Tests
==============================================

What:  Issue/verify round trip, expiry window and algorithm pinning.
How:   A fake clock drives the validity window; no database involved.

Test Strategy:
    ✅ Claims survive the round trip
    ✅ Expired and not-yet-valid tokens fail
    ✅ Wrong secret, alg "none", HS512 and garbage all fail the same way
"""

import pytest
from jose import jwt

from app.exceptions import InvalidTokenError
from app.services.token_service import TokenService


class FakeClock:
    def __init__(self, now: float = 1_700_000_000):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestTokenService:

    def setup_method(self):
        self.clock = FakeClock()
        self.service = TokenService(secret="unit-secret", access_hours=1, refresh_days=7, clock=self.clock)

    def test_round_trip_preserves_claims(self):
        token = self.service.issue_access_token("user-1", "a@school.test", "teacher")
        claims = self.service.verify(token)

        assert claims.user_id == "user-1"
        assert claims.email == "a@school.test"
        assert claims.role == "teacher"
        assert claims.iat == claims.nbf == int(self.clock.now)
        assert claims.exp == int(self.clock.now) + 3600

    def test_refresh_token_lives_longer(self):
        token = self.service.issue_refresh_token("user-1", "a@school.test", "student")
        claims = self.service.verify(token)
        assert claims.exp - claims.iat == 7 * 86400

    def test_expired_token_rejected(self):
        token = self.service.issue_access_token("user-1", "a@school.test", "admin")
        self.clock.now += 3601
        with pytest.raises(InvalidTokenError, match="invalid token"):
            self.service.verify(token)

    def test_token_valid_until_exp(self):
        token = self.service.issue_access_token("user-1", "a@school.test", "admin")
        self.clock.now += 3600
        assert self.service.verify(token).role == "admin"

    def test_not_yet_valid_token_rejected(self):
        token = self.service.issue_access_token("user-1", "a@school.test", "admin")
        self.clock.now -= 10
        with pytest.raises(InvalidTokenError):
            self.service.verify(token)

    def test_wrong_secret_rejected(self):
        other = TokenService(secret="another-secret", clock=self.clock)
        token = other.issue_access_token("user-1", "a@school.test", "admin")
        with pytest.raises(InvalidTokenError):
            self.service.verify(token)

    def test_hs512_token_rejected(self):
        now = int(self.clock.now)
        token = jwt.encode(
            {"user_id": "u", "email": "e", "role": "admin", "iat": now, "nbf": now, "exp": now + 60},
            "unit-secret",
            algorithm="HS512",
        )
        with pytest.raises(InvalidTokenError):
            self.service.verify(token)

    def test_alg_none_rejected(self):
        # header {"alg":"none","typ":"JWT"}, payload {"user_id":"u"}, empty signature
        token = "eyJhbGciOiJub25lIiwidHlwIjoiSldUIn0.eyJ1c2VyX2lkIjoidSJ9."
        with pytest.raises(InvalidTokenError):
            self.service.verify(token)

    def test_missing_claims_rejected(self):
        token = jwt.encode({"user_id": "u"}, "unit-secret", algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            self.service.verify(token)

    @pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c"])
    def test_garbage_rejected(self, garbage):
        with pytest.raises(InvalidTokenError):
            self.service.verify(garbage)
