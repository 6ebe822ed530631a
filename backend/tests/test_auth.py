"""
Schools24 Backend — Auth Service & Route Tests
================================================

What:  Password hashing, registration, login, current-user view/update and
       logout, end to end through the HTTP layer.
How:   In-memory SQLite via the `client` fixture; users seeded with the
       shared test password.
"""

import uuid

import pytest
from sqlalchemy import select

from app.models.user import User
from app.services.auth_service import hash_password, verify_password
from conftest import PASSWORD, auth_headers, make_user

API = "/api/v1"


class TestPasswordHashing:

    def test_hash_verifies(self):
        hashed = hash_password("correct horse")
        assert hashed.startswith("$2b$12$")
        assert verify_password("correct horse", hashed)

    def test_wrong_password_fails(self):
        assert not verify_password("wrong", hash_password("correct horse"))

    def test_malformed_hash_fails_closed(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_returns_tokens(self, client, db_session):
        response = await client.post(
            f"{API}/auth/register",
            json={
                "email": "New.Teacher@School.test",
                "password": "secret123",
                "full_name": "New Teacher",
                "role": "teacher",
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["user"]["email"] == "new.teacher@school.test"
        assert body["user"]["role"] == "teacher"
        assert "password_hash" not in body["user"]
        assert body["access_token"] and body["refresh_token"]
        assert body["expires_in"] == 24 * 3600

        stored = (await db_session.execute(select(User))).scalars().one()
        assert stored.password_hash != "secret123"

    @pytest.mark.asyncio
    async def test_duplicate_email_conflict(self, client, db_session):
        await make_user(db_session, "student", email="taken@school.test")
        response = await client.post(
            f"{API}/auth/register",
            json={
                "email": "taken@school.test",
                "password": "secret123",
                "full_name": "Someone Else",
                "role": "student",
            },
        )

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"
        assert response.json()["message"] == "This email is already registered"

    @pytest.mark.asyncio
    async def test_unknown_role_rejected_by_schema(self, client):
        response = await client.post(
            f"{API}/auth/register",
            json={"email": "x@school.test", "password": "secret123", "full_name": "X Y", "role": "principal"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, client):
        response = await client.post(
            f"{API}/auth/register",
            json={"email": "x@school.test", "password": "123", "full_name": "X Y", "role": "student"},
        )
        assert response.status_code == 422


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_success_updates_last_login(self, app, client, db_session):
        user = await make_user(db_session, "admin", email="admin@school.test")
        assert user.last_login_at is None

        response = await client.post(
            f"{API}/auth/login", json={"email": "ADMIN@school.test", "password": PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == str(user.id)
        assert body["user"]["last_login_at"] is not None

        claims = app.state.token_service.verify(body["access_token"])
        assert claims.user_id == str(user.id)
        assert claims.role == "admin"

    @pytest.mark.asyncio
    async def test_wrong_password_unauthorized(self, client, db_session):
        await make_user(db_session, "admin", email="admin@school.test")
        response = await client.post(
            f"{API}/auth/login", json={"email": "admin@school.test", "password": "not-it"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_unknown_email_same_error(self, client):
        response = await client.post(
            f"{API}/auth/login", json={"email": "ghost@school.test", "password": PASSWORD}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_inactive_user_cannot_login(self, client, db_session):
        await make_user(db_session, "teacher", email="gone@school.test", is_active=False)
        response = await client.post(
            f"{API}/auth/login", json={"email": "gone@school.test", "password": PASSWORD}
        )
        assert response.status_code == 401


class TestCurrentUser:

    @pytest.mark.asyncio
    async def test_get_me(self, app, client, db_session):
        user = await make_user(db_session, "student", full_name="Meera Iyer")
        response = await client.get(f"{API}/auth/me", headers=auth_headers(app, user))

        assert response.status_code == 200
        assert response.json()["user"]["full_name"] == "Meera Iyer"

    @pytest.mark.asyncio
    async def test_get_me_unknown_user_not_found(self, app, client):
        ghost = User(id=uuid.uuid4(), email="ghost@school.test", role="student", full_name="Ghost")
        response = await client.get(f"{API}/auth/me", headers=auth_headers(app, ghost))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_profile_partial(self, app, client, db_session):
        user = await make_user(db_session, "parent", full_name="Old Name")
        user.phone = "9999999999"
        await db_session.commit()

        response = await client.put(
            f"{API}/auth/me",
            headers=auth_headers(app, user),
            json={"full_name": "New Name", "phone": None},
        )

        assert response.status_code == 200
        body = response.json()["user"]
        assert body["full_name"] == "New Name"
        assert body["phone"] == "9999999999"

    @pytest.mark.asyncio
    async def test_logout_is_a_no_op(self, app, client, db_session):
        user = await make_user(db_session, "staff")
        headers = auth_headers(app, user)

        response = await client.post(f"{API}/auth/logout", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Logged out successfully"}

        # No revocation: the same token still works
        assert (await client.get(f"{API}/auth/me", headers=headers)).status_code == 200
