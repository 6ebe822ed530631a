"""
Schools24 Backend — Admin Service
===================================

What:  User management, student/teacher onboarding, fee structures,
       payments and the audit trail.
Who:   routes/admin.py (admin role only).

Audit trail:
    Every mutating call takes an AuditContext (caller id, IP, user agent)
    and writes one audit_logs row in the same transaction as the change.

Payment → fee status:
    new_paid = paid_amount + amount
    new_paid ≥ amount − waiver_amount  → "paid"
    new_paid > 0                       → "partial"
    otherwise                          → unchanged
"""

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.common import utcnow
from app.models.finance import FeeItem, FeeStructure, Payment
from app.models.school import Student, Teacher
from app.models.user import ROLE_STUDENT, ROLE_TEACHER, ROLES, User
from app.repositories.admin_repository import admin_repository
from app.repositories.student_repository import student_repository
from app.repositories.teacher_repository import teacher_repository
from app.repositories.user_repository import user_repository
from app.schemas.admin import (
    AdminDashboard,
    AuditLogResponse,
    CreateFeeStructureRequest,
    CreateStudentRequest,
    CreateTeacherRequest,
    CreateUserRequest,
    FeeStructureCreatedResponse,
    FeeStructureResponse,
    PaymentCreatedResponse,
    PaymentResponse,
    RecordPaymentRequest,
    UpdateUserRequest,
    UserCreatedResponse,
    UserListItem,
    UserListResponse,
)
from app.schemas.auth import UserResponse
from app.schemas.common import MessageResponse
from app.services.academic_calendar import current_academic_year
from app.services.auth_service import hash_password
from app.services.cache_service import CacheService
from app.services.class_service import classes_cache_key

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DASHBOARD_ACTIVITY = 10


@dataclass
class AuditContext:
    user_id: Optional[uuid.UUID]
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def normalize_paging(page: int, page_size: int):
    """page < 1 → 1; page_size outside 1..100 → 20."""
    if page < 1:
        page = 1
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        page_size = DEFAULT_PAGE_SIZE
    return page, page_size


def next_fee_status(
    current_status: str,
    paid_amount: Decimal,
    payment: Decimal,
    amount: Decimal,
    waiver_amount: Decimal,
) -> str:
    new_paid = paid_amount + payment
    if new_paid >= amount - waiver_amount:
        return "paid"
    if new_paid > 0:
        return "partial"
    return current_status


def generate_receipt_number(now: Optional[datetime] = None) -> str:
    """RCP-YYYYMMDD-<nanoseconds mod 100000>."""
    now = now or utcnow()
    return f"RCP-{now:%Y%m%d}-{time.time_ns() % 100000}"


def _user_item(user: User) -> UserListItem:
    return UserListItem(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        phone=user.phone,
        is_active=user.is_active,
        created_at=user.created_at,
        last_login=user.last_login_at,
    )


class AdminService:

    async def _audit(
        self,
        db: AsyncSession,
        ctx: AuditContext,
        action: str,
        entity_type: str,
        entity_id: Optional[uuid.UUID],
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
    ) -> None:
        await admin_repository.create_audit_log(
            db,
            user_id=ctx.user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_values=old_values,
            new_values=new_values,
            ip_address=ctx.ip_address,
            user_agent=ctx.user_agent,
        )

    async def _create_user(
        self, db: AsyncSession, email: str, password: str, role: str, full_name: str, phone: Optional[str]
    ) -> User:
        if role not in ROLES:
            raise ValidationError(message=f"invalid role '{role}'", field="role")
        email = email.lower()
        if await user_repository.email_exists(db, email):
            raise ConflictError(message="This email is already registered")
        return await user_repository.create(
            db,
            email=email,
            password_hash=hash_password(password),
            role=role,
            full_name=full_name,
            phone=phone or None,
        )

    # ── Dashboard ─────────────────────────────────────────────────────────

    async def get_dashboard(self, db: AsyncSession) -> AdminDashboard:
        return AdminDashboard(
            total_users=await user_repository.count_active(db),
            total_students=await user_repository.count_active(db, ROLE_STUDENT),
            total_teachers=await user_repository.count_active(db, ROLE_TEACHER),
            total_classes=await student_repository.count_classes(db),
            fee_collection=await admin_repository.get_fee_stats(db),
            recent_activity=await admin_repository.list_recent_audit_logs(db, DASHBOARD_ACTIVITY),
        )

    # ── Users ─────────────────────────────────────────────────────────────

    async def list_users(
        self, db: AsyncSession, role: Optional[str], page: int, page_size: int
    ) -> UserListResponse:
        page, page_size = normalize_paging(page, page_size)
        users, total = await user_repository.list_page(db, role or None, page, page_size)
        return UserListResponse(
            users=[_user_item(u) for u in users], total=total, page=page, page_size=page_size
        )

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> UserResponse:
        user = await user_repository.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return UserResponse.model_validate(user)

    async def create_user(
        self, db: AsyncSession, ctx: AuditContext, req: CreateUserRequest
    ) -> UserCreatedResponse:
        user = await self._create_user(db, req.email, req.password, req.role, req.full_name, req.phone)
        await self._audit(
            db, ctx, "create", "user", user.id,
            new_values={"email": user.email, "role": user.role, "full_name": user.full_name},
        )
        logger.info("Admin %s created user %s (role=%s)", ctx.user_id, user.id, user.role)
        return UserCreatedResponse(message="User created successfully", user_id=str(user.id))

    async def update_user(
        self, db: AsyncSession, ctx: AuditContext, user_id: uuid.UUID, req: UpdateUserRequest
    ) -> MessageResponse:
        user = await user_repository.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))

        fields = req.model_dump(exclude_none=True)
        if "role" in fields and fields["role"] not in ROLES:
            raise ValidationError(message=f"invalid role '{fields['role']}'", field="role")
        if "email" in fields:
            fields["email"] = fields["email"].lower()
            if fields["email"] != user.email and await user_repository.email_exists(db, fields["email"]):
                raise ConflictError(message="This email is already registered")

        old_values = {name: getattr(user, name) for name in fields}
        if fields:
            await user_repository.update_fields(db, user, fields)
        await self._audit(db, ctx, "update", "user", user_id, old_values=old_values, new_values=fields)
        return MessageResponse(message="User updated successfully")

    async def delete_user(self, db: AsyncSession, ctx: AuditContext, user_id: uuid.UUID) -> MessageResponse:
        """Soft delete: the row stays, is_active becomes false."""
        user = await user_repository.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        await user_repository.update_fields(db, user, {"is_active": False})
        await self._audit(
            db, ctx, "delete", "user", user_id,
            old_values={"is_active": True}, new_values={"is_active": False},
        )
        logger.info("Admin %s deactivated user %s", ctx.user_id, user_id)
        return MessageResponse(message="User deleted successfully")

    # ── Onboarding ────────────────────────────────────────────────────────

    async def create_student(
        self, db: AsyncSession, cache: CacheService, ctx: AuditContext, req: CreateStudentRequest
    ) -> UserCreatedResponse:
        """
        User + student profile in one transaction; returns the user id.

        Enrolling into a class changes its total_students, so that year's
        cached class list is dropped once the transaction has committed.
        """
        school_class = None
        if req.class_id is not None:
            school_class = await student_repository.get_class(db, req.class_id)
            if school_class is None:
                raise NotFoundError(resource="class", resource_id=str(req.class_id))

        admission_number = req.admission_number or f"ADM-{uuid.uuid4().hex[:10].upper()}"
        if await student_repository.admission_number_exists(db, admission_number):
            raise ConflictError(message=f"Admission number '{admission_number}' already exists")

        user = await self._create_user(db, req.email, req.password, ROLE_STUDENT, req.full_name, req.phone)
        student = await student_repository.create(
            db,
            Student(
                user_id=user.id,
                admission_number=admission_number,
                roll_number=req.roll_number,
                class_id=req.class_id,
                date_of_birth=req.date_of_birth,
                gender=req.gender,
                parent_name=req.parent_name,
                parent_email=req.parent_email,
                parent_phone=req.parent_phone,
                address=req.address,
                academic_year=current_academic_year(),
            ),
        )
        if req.class_id is not None:
            await student_repository.increment_class_size(db, req.class_id)

        await self._audit(
            db, ctx, "create", "student", student.id,
            new_values={"user_id": str(user.id), "admission_number": admission_number},
        )
        if school_class is not None:
            await db.commit()
            await cache.delete(classes_cache_key(school_class.academic_year))
        return UserCreatedResponse(message="Student created successfully", user_id=str(user.id))

    async def create_teacher(
        self, db: AsyncSession, ctx: AuditContext, req: CreateTeacherRequest
    ) -> UserCreatedResponse:
        if await teacher_repository.employee_id_exists(db, req.employee_id):
            raise ConflictError(message=f"Employee ID '{req.employee_id}' already exists")

        user = await self._create_user(db, req.email, req.password, ROLE_TEACHER, req.full_name, req.phone)
        teacher = await teacher_repository.create(
            db,
            Teacher(
                user_id=user.id,
                employee_id=req.employee_id,
                department=req.department,
                designation=req.designation,
                qualifications=req.qualifications,
                subjects_taught=req.subjects_taught,
                experience_years=req.experience_years,
            ),
        )
        await self._audit(
            db, ctx, "create", "teacher", teacher.id,
            new_values={"user_id": str(user.id), "employee_id": req.employee_id},
        )
        return UserCreatedResponse(message="Teacher created successfully", user_id=str(user.id))

    # ── Fees ──────────────────────────────────────────────────────────────

    async def list_fee_structures(
        self, db: AsyncSession, academic_year: Optional[str] = None
    ) -> List[FeeStructureResponse]:
        return await admin_repository.list_fee_structures(db, academic_year)

    async def create_fee_structure(
        self, db: AsyncSession, ctx: AuditContext, req: CreateFeeStructureRequest
    ) -> FeeStructureCreatedResponse:
        structure = await admin_repository.create_fee_structure(
            db,
            FeeStructure(
                name=req.name,
                description=req.description,
                applicable_grades=req.applicable_grades,
                academic_year=req.academic_year or current_academic_year(),
                is_active=True,
            ),
            [
                FeeItem(
                    name=item.name,
                    amount=item.amount,
                    frequency=item.frequency or "monthly",
                    is_optional=item.is_optional,
                    due_day=item.due_day or 10,
                )
                for item in req.items
            ],
        )
        await self._audit(
            db, ctx, "create", "fee_structure", structure.id,
            new_values={"name": req.name, "items": len(req.items)},
        )
        return FeeStructureCreatedResponse(
            message="Fee structure created successfully", structure_id=str(structure.id)
        )

    async def record_payment(
        self, db: AsyncSession, ctx: AuditContext, req: RecordPaymentRequest
    ) -> PaymentCreatedResponse:
        if await student_repository.get_by_id(db, req.student_id) is None:
            raise NotFoundError(resource="student", resource_id=str(req.student_id))

        fee = None
        if req.student_fee_id is not None:
            fee = await admin_repository.get_student_fee_for_update(db, req.student_fee_id)
            if fee is None:
                raise NotFoundError(resource="student fee", resource_id=str(req.student_fee_id))

        payment = await admin_repository.create_payment(
            db,
            Payment(
                student_id=req.student_id,
                student_fee_id=req.student_fee_id,
                amount=req.amount,
                payment_method=req.payment_method,
                transaction_id=req.transaction_id,
                receipt_number=generate_receipt_number(),
                status="completed",
                notes=req.notes,
                collected_by=ctx.user_id,
            ),
        )

        if fee is not None:
            fee.status = next_fee_status(fee.status, fee.paid_amount, req.amount, fee.amount, fee.waiver_amount)
            fee.paid_amount = fee.paid_amount + req.amount
            fee.updated_at = utcnow()
            await db.flush()

        await self._audit(
            db, ctx, "create", "payment", payment.id,
            new_values={
                "amount": str(req.amount),
                "receipt_number": payment.receipt_number,
                "student_fee_id": str(req.student_fee_id) if req.student_fee_id else None,
            },
        )
        logger.info("Payment %s recorded (%s)", payment.id, payment.receipt_number)
        return PaymentCreatedResponse(
            message="Payment recorded successfully",
            payment_id=str(payment.id),
            receipt_number=payment.receipt_number,
        )

    async def list_payments(self, db: AsyncSession, limit: int = 50) -> List[PaymentResponse]:
        return await admin_repository.list_recent_payments(db, limit)

    async def list_audit_logs(self, db: AsyncSession, limit: int = 100) -> List[AuditLogResponse]:
        return await admin_repository.list_recent_audit_logs(db, limit)


admin_service = AdminService()
