"""
Schools24 Backend — Fee & Payment Models
==========================================

What:  Fee structures (a named bundle per academic year) made of fee items,
       per-student fee lines, and payments recorded against them.

Money columns are Numeric(10, 2) → Decimal in Python; never float.

Fee status lifecycle (student_fees.status):
    pending ──payment──> partial ──payment──> paid
       │                                     ▲
       └──────────── payment covering amount − waiver ┘
    overdue / waived are set by administrative processes.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.common import created_at_column, updated_at_column, utcnow, uuid_pk

FREQUENCIES = ("one_time", "monthly", "quarterly", "yearly")
PAYMENT_METHODS = ("cash", "card", "upi", "bank_transfer", "cheque", "online")


class FeeStructure(Base):
    __tablename__ = "fee_structures"

    id: Mapped[uuid.UUID] = uuid_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    applicable_grades: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()


class FeeItem(Base):
    __tablename__ = "fee_items"

    id: Mapped[uuid.UUID] = uuid_pk()
    fee_structure_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("fee_structures.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    frequency: Mapped[str] = mapped_column(String(20), nullable=False, default="monthly")
    is_optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    due_day: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    created_at: Mapped[datetime] = created_at_column()

    __table_args__ = (
        CheckConstraint(
            "frequency IN ('one_time', 'monthly', 'quarterly', 'yearly')",
            name="ck_fee_items_frequency",
        ),
    )


class StudentFee(Base):
    __tablename__ = "student_fees"

    id: Mapped[uuid.UUID] = uuid_pk()
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    fee_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("fee_items.id"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    waiver_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    waiver_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'paid', 'partial', 'overdue', 'waived')",
            name="ck_student_fees_status",
        ),
    )


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = uuid_pk()
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("students.id"), nullable=False, index=True
    )
    student_fee_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("student_fees.id"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    transaction_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    receipt_number: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    payment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="completed")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    collected_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = created_at_column()

    __table_args__ = (
        CheckConstraint(
            "payment_method IN ('cash', 'card', 'upi', 'bank_transfer', 'cheque', 'online')",
            name="ck_payments_method",
        ),
        CheckConstraint(
            "status IN ('pending', 'completed', 'failed', 'refunded')",
            name="ck_payments_status",
        ),
    )
