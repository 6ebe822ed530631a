"""
Schools24 Backend — Health, Readiness & Error Envelope Tests
==============================================================

What:  Health and readiness endpoints, request ID propagation and the uniform error body
       produced by the global exception handlers.
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from app import __version__
from app.database import ping_database
from app.exceptions import CacheError, DatabaseError
from app.services.academic_service import academic_service
from conftest import auth_headers, make_user

API = "/api/v1"


class TestHealthEndpoints:

    @pytest.mark.asyncio
    async def test_health_reports_service_and_cache(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "schools24-backend"
        assert body["version"] == __version__
        assert body["time"] > 0
        assert {"cache_hits", "cache_misses", "cache_items"} <= body.keys()

    @pytest.mark.asyncio
    async def test_health_survives_unreachable_cache(self, app, client):
        failure = CacheError(message="Cache size query failed")

        with patch.object(app.state.cache.backend, "length", new=AsyncMock(side_effect=failure)):
            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["cache_items"] is None

    @pytest.mark.asyncio
    async def test_ready_when_database_answers(self, client):
        with patch("app.routes.health.ping_database", new=AsyncMock(return_value=True)):
            response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json() == {"ready": True}

    @pytest.mark.asyncio
    async def test_not_ready_is_503(self, client):
        with patch("app.routes.health.ping_database", new=AsyncMock(return_value=False)):
            response = await client.get("/ready")
        assert response.status_code == 503
        assert response.json() == {"ready": False}

    @pytest.mark.asyncio
    async def test_ping_database(self, db_engine, tmp_path):
        assert await ping_database(db_engine) is True

        unreachable = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/missing/dir/db.sqlite")
        try:
            assert await ping_database(unreachable) is False
        finally:
            await unreachable.dispose()


class TestRequestId:

    @pytest.mark.asyncio
    async def test_generated_when_absent(self, client):
        response = await client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_client_value_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "trace-abc"})
        assert response.headers["X-Request-ID"] == "trace-abc"


class TestErrorEnvelope:

    @pytest.mark.asyncio
    async def test_not_found_body(self, app, client, db_session):
        user = await make_user(db_session, "parent")
        response = await client.get(
            f"{API}/student/profile", headers={**auth_headers(app, user), "X-Request-ID": "req-404"}
        )

        assert response.status_code == 404
        assert response.json() == {
            "error": "not_found",
            "message": "student not found",
            "details": {"resource": "student"},
            "request_id": "req-404",
        }

    @pytest.mark.asyncio
    async def test_server_errors_hide_context(self, app, client, db_session):
        user = await make_user(db_session, "student")
        failure = DatabaseError(context={"sql": "SELECT * FROM subjects"})

        with patch.object(academic_service, "list_subjects", new=AsyncMock(side_effect=failure)):
            response = await client.get(f"{API}/academic/subjects", headers=auth_headers(app, user))

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert body["message"] == "A database error occurred. Please try again later."
        assert "details" not in body

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_generic_500(self, app, client, db_session):
        user = await make_user(db_session, "student")

        with patch.object(
            academic_service, "list_subjects", new=AsyncMock(side_effect=RuntimeError("secret detail"))
        ):
            response = await client.get(f"{API}/academic/subjects", headers=auth_headers(app, user))

        assert response.status_code == 500
        assert response.json()["error"] == "internal_server_error"
        assert "secret detail" not in response.text
