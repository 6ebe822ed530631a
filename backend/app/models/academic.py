"""
Schools24 Backend — Academic Models
=====================================

What:  Timetable periods, homework (+ submissions) and exam grades.

Conventions:
    - day_of_week: 0 = Sunday … 6 = Saturday (periods 1..10)
    - homework.status: active | archived | draft
    - homework_submissions.status: submitted | graded | late | returned
    - grades.marks_obtained is decimal (half marks are common)
"""

import uuid
from datetime import date, datetime, time
from decimal import Decimal

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.common import created_at_column, updated_at_column, utcnow, uuid_pk


class Timetable(Base):
    __tablename__ = "timetables"

    id: Mapped[uuid.UUID] = uuid_pk()
    class_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    period_number: Mapped[int] = mapped_column(Integer, nullable=False)
    subject_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("subjects.id"), nullable=True
    )
    teacher_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("teachers.id"), nullable=True
    )
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    room_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    __table_args__ = (
        UniqueConstraint(
            "class_id", "day_of_week", "period_number", "academic_year",
            name="uq_timetables_slot",
        ),
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_timetables_day"),
        CheckConstraint(
            "period_number >= 1 AND period_number <= 10", name="ck_timetables_period"
        ),
    )


class Homework(Base):
    __tablename__ = "homework"

    id: Mapped[uuid.UUID] = uuid_pk()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    class_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("classes.id"), nullable=False, index=True
    )
    subject_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("subjects.id"), nullable=True
    )
    teacher_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("teachers.id"), nullable=False, index=True
    )
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    max_marks: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    attachments: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'archived', 'draft')", name="ck_homework_status"
        ),
    )


class HomeworkSubmission(Base):
    __tablename__ = "homework_submissions"

    id: Mapped[uuid.UUID] = uuid_pk()
    homework_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("homework.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    submission_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    attachments: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    marks_obtained: Mapped[int | None] = mapped_column(Integer, nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    graded_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("teachers.id"), nullable=True
    )
    graded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="submitted")

    __table_args__ = (
        UniqueConstraint("homework_id", "student_id", name="uq_homework_submissions"),
        CheckConstraint(
            "status IN ('submitted', 'graded', 'late', 'returned')",
            name="ck_homework_submissions_status",
        ),
    )


class Grade(Base):
    __tablename__ = "grades"

    id: Mapped[uuid.UUID] = uuid_pk()
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subject_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("subjects.id"), nullable=True, index=True
    )
    exam_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    exam_name: Mapped[str] = mapped_column(String(255), nullable=False)
    max_marks: Mapped[int] = mapped_column(Integer, nullable=False)
    marks_obtained: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    grade: Mapped[str | None] = mapped_column(String(5), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    graded_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("teachers.id"), nullable=True
    )
    exam_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    academic_year: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()
