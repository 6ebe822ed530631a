"""
Schools24 Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock session for pure service tests
    ├── db_engine:       in-memory SQLite (aiosqlite) with the full schema
    │   └── db_session:  AsyncSession on that engine
    │       └── app:     create_app() with get_db_session overridden
    │           └── client: HTTPX AsyncClient over ASGITransport
    ├── temp_storage:    temporary upload directory
    └── sample_image_bytes

Seeding helpers (make_user, make_class, ...) add rows and commit, so the
data survives a service-level rollback inside the test.
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="schools24_test_")
os.environ["CACHE_BACKEND"] = "memory"
os.environ["RATE_LIMIT_BURST"] = "10000"
os.environ["RATE_LIMIT_REQUESTS_PER_MIN"] = "100000"
os.environ["LOG_LEVEL"] = "WARNING"

# Test fixtures use the reserved ``.test`` domain, which email-validator 2.x
# rejects as special-use by default; allow it for the test run only.
import email_validator

if "test" in email_validator.SPECIAL_USE_DOMAIN_NAMES:
    email_validator.SPECIAL_USE_DOMAIN_NAMES.remove("test")

import functools
import uuid
from datetime import date, time
from decimal import Decimal
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.database import Base, get_db_session
from app.models.academic import Timetable
from app.models.finance import FeeItem, FeeStructure, StudentFee
from app.models.school import SchoolClass, Student, Subject, Teacher
from app.models.user import User
from app.services.academic_calendar import current_academic_year
from app.services.auth_service import hash_password

PASSWORD = "secret123"


@functools.lru_cache(maxsize=None)
def password_hash() -> str:
    """bcrypt is slow by design; hash the shared test password once per run."""
    return hash_password(PASSWORD)


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior, for tests that patch
    the repositories and never reach SQL.
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_engine():
    """
    Fresh in-memory database per test. StaticPool keeps the single
    connection alive, otherwise each checkout would see an empty database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def app(db_session):
    """
    A fresh app per test (own limiter, cache, token service) whose routes
    share the test's session. Commit/rollback mirror get_db_session.
    """
    from app.main import create_app

    application = create_app()

    async def override_db_session():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    application.dependency_overrides[get_db_session] = override_db_session
    return application


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.
    Unhandled exceptions are turned into 500 responses, as under uvicorn.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


def auth_headers(app, user: User) -> dict:
    """Bearer header for `user`, signed by the app's own TokenService."""
    token = app.state.token_service.issue_access_token(str(user.id), user.email, user.role)
    return {"Authorization": f"Bearer {token}"}


# ══════════════════════════════════════════════════════════════════════════
# File Fixtures
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "uploads"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """Smallest valid JPEG: SOI + JFIF header + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# Seeding Helpers
# ══════════════════════════════════════════════════════════════════════════


async def make_user(
    db: AsyncSession,
    role: str = "student",
    email: Optional[str] = None,
    full_name: str = "Test User",
    is_active: bool = True,
) -> User:
    user = User(
        email=email or f"{role}-{uuid.uuid4().hex[:8]}@school.test",
        password_hash=password_hash(),
        role=role,
        full_name=full_name,
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    return user


async def make_teacher(db: AsyncSession, full_name: str = "Anita Rao") -> Teacher:
    user = await make_user(db, "teacher", full_name=full_name)
    teacher = Teacher(user_id=user.id, employee_id=f"EMP-{uuid.uuid4().hex[:6]}")
    db.add(teacher)
    await db.commit()
    return teacher


async def make_class(
    db: AsyncSession,
    name: str = "8-A",
    grade: int = 8,
    section: str = "A",
    class_teacher_id: Optional[uuid.UUID] = None,
) -> SchoolClass:
    school_class = SchoolClass(
        name=name,
        grade=grade,
        section=section,
        academic_year=current_academic_year(),
        class_teacher_id=class_teacher_id,
    )
    db.add(school_class)
    await db.commit()
    return school_class


async def make_student(
    db: AsyncSession,
    class_id: Optional[uuid.UUID] = None,
    full_name: str = "Ravi Kumar",
    roll_number: Optional[str] = None,
) -> Student:
    user = await make_user(db, "student", full_name=full_name)
    student = Student(
        user_id=user.id,
        admission_number=f"ADM-{uuid.uuid4().hex[:10].upper()}",
        roll_number=roll_number,
        class_id=class_id,
    )
    db.add(student)
    await db.commit()
    return student


async def make_subject(db: AsyncSession, name: str = "Mathematics", code: str = "MATH") -> Subject:
    subject = Subject(name=name, code=code)
    db.add(subject)
    await db.commit()
    return subject


async def make_period(
    db: AsyncSession,
    class_id: uuid.UUID,
    day_of_week: int,
    period_number: int,
    subject_id: Optional[uuid.UUID] = None,
    teacher_id: Optional[uuid.UUID] = None,
) -> Timetable:
    period = Timetable(
        class_id=class_id,
        day_of_week=day_of_week,
        period_number=period_number,
        subject_id=subject_id,
        teacher_id=teacher_id,
        start_time=time(8 + period_number, 0),
        end_time=time(8 + period_number, 45),
        academic_year=current_academic_year(),
    )
    db.add(period)
    await db.commit()
    return period


async def make_student_fee(
    db: AsyncSession,
    student_id: uuid.UUID,
    amount: str = "1000.00",
    waiver: str = "0",
    paid: str = "0",
    status: str = "pending",
) -> StudentFee:
    structure = FeeStructure(name="Tuition", academic_year=current_academic_year())
    db.add(structure)
    await db.flush()
    item = FeeItem(fee_structure_id=structure.id, name="Monthly tuition", amount=Decimal(amount))
    db.add(item)
    await db.flush()
    fee = StudentFee(
        student_id=student_id,
        fee_item_id=item.id,
        amount=Decimal(amount),
        due_date=date.today(),
        status=status,
        paid_amount=Decimal(paid),
        waiver_amount=Decimal(waiver),
        academic_year=current_academic_year(),
    )
    db.add(fee)
    await db.commit()
    return fee
