"""
Schools24 Backend — Admin Routes
==================================

What:  School administration: dashboard, user management, student and
       teacher onboarding, fee structures, payments and the audit trail.
Who:   Role admin only (router-level RoleChecker).

Every mutating route passes an AuditContext (caller, client IP, user agent)
to AdminService, which writes the audit row in the same transaction as the
change itself.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.middleware.auth import RoleChecker
from app.models.user import ROLE_ADMIN
from app.routes.deps import get_audit_context, get_cache
from app.schemas.admin import (
    AdminDashboard,
    AuditLogListResponse,
    CreateFeeStructureRequest,
    CreateStudentRequest,
    CreateTeacherRequest,
    CreateUserRequest,
    FeeStructureCreatedResponse,
    FeeStructureListResponse,
    PaymentCreatedResponse,
    PaymentListResponse,
    RecordPaymentRequest,
    UpdateUserRequest,
    UserCreatedResponse,
    UserListResponse,
)
from app.schemas.auth import UserEnvelope
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.admin_service import AuditContext, admin_service
from app.services.cache_service import CacheService

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(RoleChecker([ROLE_ADMIN]))],
    responses={403: {"description": "Admin role required", "model": ErrorResponse}},
)


@router.get("/dashboard", response_model=AdminDashboard, summary="School-wide counters and fee stats")
async def get_dashboard(db: AsyncSession = Depends(get_db_session)) -> AdminDashboard:
    return await admin_service.get_dashboard(db)


# ── Users ─────────────────────────────────────────────────────────────────


@router.get("/users", response_model=UserListResponse, summary="List users, newest first")
async def list_users(
    role: Optional[str] = Query(default=None),
    page: int = Query(default=1),
    page_size: int = Query(default=20),
    db: AsyncSession = Depends(get_db_session),
) -> UserListResponse:
    # Out-of-range paging is normalised by the service, not rejected
    return await admin_service.list_users(db, role, page, page_size)


@router.get(
    "/users/{user_id}",
    response_model=UserEnvelope,
    responses={404: {"model": ErrorResponse}},
    summary="User detail",
)
async def get_user(user_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)) -> UserEnvelope:
    return UserEnvelope(user=await admin_service.get_user(db, user_id))


@router.post(
    "/users",
    status_code=201,
    response_model=UserCreatedResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Create a user",
)
async def create_user(
    req: CreateUserRequest,
    ctx: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db_session),
) -> UserCreatedResponse:
    return await admin_service.create_user(db, ctx, req)


@router.put(
    "/users/{user_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Partially update a user",
)
async def update_user(
    user_id: uuid.UUID,
    req: UpdateUserRequest,
    ctx: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await admin_service.update_user(db, ctx, user_id, req)


@router.delete(
    "/users/{user_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Deactivate a user",
)
async def delete_user(
    user_id: uuid.UUID,
    ctx: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await admin_service.delete_user(db, ctx, user_id)


# ── Onboarding ────────────────────────────────────────────────────────────


@router.post("/students", status_code=201, response_model=UserCreatedResponse, summary="Enrol a student")
async def create_student(
    req: CreateStudentRequest,
    ctx: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db_session),
    cache: CacheService = Depends(get_cache),
) -> UserCreatedResponse:
    return await admin_service.create_student(db, cache, ctx, req)


@router.post("/teachers", status_code=201, response_model=UserCreatedResponse, summary="Onboard a teacher")
async def create_teacher(
    req: CreateTeacherRequest,
    ctx: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db_session),
) -> UserCreatedResponse:
    return await admin_service.create_teacher(db, ctx, req)


# ── Fees & Payments ───────────────────────────────────────────────────────


@router.get("/fees/structures", response_model=FeeStructureListResponse, summary="Fee structures with items")
async def list_fee_structures(
    academic_year: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> FeeStructureListResponse:
    return FeeStructureListResponse(
        fee_structures=await admin_service.list_fee_structures(db, academic_year)
    )


@router.post(
    "/fees/structures",
    status_code=201,
    response_model=FeeStructureCreatedResponse,
    summary="Create a fee structure",
)
async def create_fee_structure(
    req: CreateFeeStructureRequest,
    ctx: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db_session),
) -> FeeStructureCreatedResponse:
    return await admin_service.create_fee_structure(db, ctx, req)


@router.post(
    "/payments",
    status_code=201,
    response_model=PaymentCreatedResponse,
    responses={404: {"description": "Unknown student or fee", "model": ErrorResponse}},
    summary="Record a payment",
)
async def record_payment(
    req: RecordPaymentRequest,
    ctx: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db_session),
) -> PaymentCreatedResponse:
    return await admin_service.record_payment(db, ctx, req)


@router.get("/payments", response_model=PaymentListResponse, summary="Recent payments")
async def list_payments(
    limit: int = Query(default=50, ge=1, le=500),
    db: AsyncSession = Depends(get_db_session),
) -> PaymentListResponse:
    return PaymentListResponse(payments=await admin_service.list_payments(db, limit))


@router.get("/audit-logs", response_model=AuditLogListResponse, summary="Recent audit log entries")
async def list_audit_logs(
    limit: int = Query(default=100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db_session),
) -> AuditLogListResponse:
    return AuditLogListResponse(audit_logs=await admin_service.list_audit_logs(db, limit))
