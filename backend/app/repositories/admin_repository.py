"""
Schools24 Backend — Admin Repository
======================================

Fee structures and items, student fee lines, payments, audit logs and the
aggregate queries behind the admin dashboard.

Money stays Decimal end to end here; conversion to float happens only when
a response schema is built.
"""

import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.models.audit import AuditLog
from app.models.finance import FeeItem, FeeStructure, Payment, StudentFee
from app.models.school import Student
from app.models.user import User
from app.schemas.admin import (
    AuditLogResponse,
    FeeItemResponse,
    FeeStats,
    FeeStructureResponse,
    PaymentResponse,
)

ZERO = Decimal("0")


def compute_collection_rate(total_collected: Decimal, total_due: Decimal) -> float:
    if total_due <= 0:
        return 0.0
    return float(total_collected / total_due * 100)


class AdminRepository:

    # ── Dashboard ─────────────────────────────────────────────────────────

    async def get_fee_stats(self, db: AsyncSession) -> FeeStats:
        outstanding = StudentFee.amount - StudentFee.paid_amount - StudentFee.waiver_amount

        def outstanding_for(status: str):
            return func.coalesce(func.sum(case((StudentFee.status == status, outstanding), else_=0)), 0)

        result = await db.execute(
            select(
                func.coalesce(func.sum(StudentFee.amount), 0),
                func.coalesce(func.sum(StudentFee.paid_amount), 0),
                outstanding_for("pending"),
                outstanding_for("overdue"),
            )
        )
        total_due, collected, pending, overdue = (Decimal(str(v)) for v in result.one())
        return FeeStats(
            total_due=float(total_due),
            total_collected=float(collected),
            total_pending=float(pending),
            total_overdue=float(overdue),
            collection_rate_percent=compute_collection_rate(collected, total_due),
        )

    # ── Fee structures ────────────────────────────────────────────────────

    async def list_fee_structures(
        self, db: AsyncSession, academic_year: Optional[str] = None
    ) -> List[FeeStructureResponse]:
        query = select(FeeStructure).order_by(FeeStructure.created_at.desc())
        if academic_year:
            query = query.where(FeeStructure.academic_year == academic_year)
        structures = list((await db.execute(query)).scalars().all())
        if not structures:
            return []

        items_result = await db.execute(
            select(FeeItem)
            .where(FeeItem.fee_structure_id.in_([s.id for s in structures]))
            .order_by(FeeItem.created_at)
        )
        items: Dict[uuid.UUID, List[FeeItemResponse]] = {}
        for item in items_result.scalars().all():
            items.setdefault(item.fee_structure_id, []).append(FeeItemResponse.model_validate(item))

        return [
            FeeStructureResponse(
                id=s.id,
                name=s.name,
                description=s.description,
                applicable_grades=s.applicable_grades,
                academic_year=s.academic_year,
                is_active=s.is_active,
                created_at=s.created_at,
                items=items.get(s.id, []),
            )
            for s in structures
        ]

    async def create_fee_structure(
        self, db: AsyncSession, structure: FeeStructure, items: List[FeeItem]
    ) -> FeeStructure:
        db.add(structure)
        await db.flush()
        for item in items:
            item.fee_structure_id = structure.id
            db.add(item)
        await db.flush()
        return structure

    # ── Payments ──────────────────────────────────────────────────────────

    async def get_student_fee_for_update(
        self, db: AsyncSession, student_fee_id: uuid.UUID
    ) -> Optional[StudentFee]:
        """Row-locks the fee line (SELECT … FOR UPDATE on PostgreSQL)."""
        return await db.get(StudentFee, student_fee_id, with_for_update=True)

    async def create_payment(self, db: AsyncSession, payment: Payment) -> Payment:
        db.add(payment)
        await db.flush()
        return payment

    async def list_recent_payments(self, db: AsyncSession, limit: int) -> List[PaymentResponse]:
        student_user = aliased(User)
        collector = aliased(User)
        result = await db.execute(
            select(Payment, student_user.full_name, func.coalesce(collector.full_name, ""))
            .join(Student, Payment.student_id == Student.id)
            .join(student_user, Student.user_id == student_user.id)
            .outerjoin(collector, Payment.collected_by == collector.id)
            .order_by(Payment.payment_date.desc())
            .limit(limit)
        )
        return [
            PaymentResponse(
                id=p.id,
                student_id=p.student_id,
                student_fee_id=p.student_fee_id,
                amount=float(p.amount),
                payment_method=p.payment_method,
                transaction_id=p.transaction_id,
                receipt_number=p.receipt_number,
                payment_date=p.payment_date,
                status=p.status,
                notes=p.notes,
                collected_by=p.collected_by,
                student_name=student_name,
                collector_name=collector_name,
            )
            for p, student_name, collector_name in result.all()
        ]

    # ── Audit log ─────────────────────────────────────────────────────────

    async def create_audit_log(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        action: str,
        entity_type: str,
        entity_id: Optional[uuid.UUID] = None,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        entry = AuditLog(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_values=old_values,
            new_values=new_values,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        db.add(entry)
        await db.flush()
        return entry

    async def list_recent_audit_logs(self, db: AsyncSession, limit: int) -> List[AuditLogResponse]:
        result = await db.execute(
            select(AuditLog, func.coalesce(User.full_name, "System"))
            .outerjoin(User, AuditLog.user_id == User.id)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
        )
        return [
            AuditLogResponse(
                id=log.id,
                user_id=log.user_id,
                action=log.action,
                entity_type=log.entity_type,
                entity_id=log.entity_id,
                ip_address=log.ip_address,
                user_agent=log.user_agent,
                created_at=log.created_at,
                user_name=user_name,
            )
            for log, user_name in result.all()
        ]


admin_repository = AdminRepository()
