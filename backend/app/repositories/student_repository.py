"""
Schools24 Backend — Student & Class Repository
================================================

Student profiles, classes and per-student attendance reads. Display names
come from explicit outer joins; a null foreign key yields "".
"""

import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.attendance import STATUS_ABSENT, STATUS_LATE, STATUS_PRESENT, Attendance
from app.models.school import SchoolClass, Student, Teacher
from app.models.user import User
from app.schemas.student import AttendanceRecord, AttendanceStats, ClassResponse, StudentProfile


def _class_query():
    return (
        select(SchoolClass, func.coalesce(User.full_name, ""))
        .outerjoin(Teacher, SchoolClass.class_teacher_id == Teacher.id)
        .outerjoin(User, Teacher.user_id == User.id)
    )


def _to_class(row) -> ClassResponse:
    school_class, teacher_name = row
    return ClassResponse.model_validate(school_class).model_copy(
        update={"class_teacher_name": teacher_name or ""}
    )


def compute_attendance_percent(present_days: int, total_days: int) -> float:
    if total_days <= 0:
        return 0.0
    return present_days / total_days * 100


class StudentRepository:

    async def get_profile_by_user_id(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[StudentProfile]:
        result = await db.execute(
            select(Student, User.full_name, User.email, func.coalesce(SchoolClass.name, ""))
            .join(User, Student.user_id == User.id)
            .outerjoin(SchoolClass, Student.class_id == SchoolClass.id)
            .where(Student.user_id == user_id)
        )
        row = result.first()
        if row is None:
            return None
        student, full_name, email, class_name = row
        return StudentProfile.model_validate(student).model_copy(
            update={"full_name": full_name, "email": email, "class_name": class_name or ""}
        )

    async def get_by_id(self, db: AsyncSession, student_id: uuid.UUID) -> Optional[Student]:
        return await db.get(Student, student_id)

    async def create(self, db: AsyncSession, student: Student) -> Student:
        db.add(student)
        await db.flush()
        return student

    async def admission_number_exists(self, db: AsyncSession, admission_number: str) -> bool:
        result = await db.execute(
            select(func.count(Student.id)).where(Student.admission_number == admission_number)
        )
        return (result.scalar() or 0) > 0

    # ── Classes ───────────────────────────────────────────────────────────

    async def get_class(self, db: AsyncSession, class_id: uuid.UUID) -> Optional[ClassResponse]:
        result = await db.execute(_class_query().where(SchoolClass.id == class_id))
        row = result.first()
        return _to_class(row) if row else None

    async def list_classes(self, db: AsyncSession, academic_year: str) -> List[ClassResponse]:
        result = await db.execute(
            _class_query()
            .where(SchoolClass.academic_year == academic_year)
            .order_by(SchoolClass.grade, SchoolClass.section)
        )
        return [_to_class(row) for row in result.all()]

    async def create_class(self, db: AsyncSession, school_class: SchoolClass) -> SchoolClass:
        db.add(school_class)
        await db.flush()
        return school_class

    async def count_classes(self, db: AsyncSession) -> int:
        return (await db.execute(select(func.count(SchoolClass.id)))).scalar() or 0

    async def increment_class_size(self, db: AsyncSession, class_id: uuid.UUID) -> None:
        school_class = await db.get(SchoolClass, class_id)
        if school_class is not None:
            school_class.total_students += 1
            await db.flush()

    # ── Attendance ────────────────────────────────────────────────────────

    async def get_attendance_stats(
        self, db: AsyncSession, student_id: uuid.UUID, start: date, end: date
    ) -> AttendanceStats:
        def count_status(status: str):
            return func.coalesce(func.sum(case((Attendance.status == status, 1), else_=0)), 0)

        result = await db.execute(
            select(
                func.count(Attendance.id),
                count_status(STATUS_PRESENT),
                count_status(STATUS_ABSENT),
                count_status(STATUS_LATE),
            ).where(
                Attendance.student_id == student_id,
                Attendance.date >= start,
                Attendance.date <= end,
            )
        )
        total, present, absent, late = result.one()
        return AttendanceStats(
            total_days=total,
            present_days=present,
            absent_days=absent,
            late_days=late,
            attendance_percent=compute_attendance_percent(present, total),
        )

    async def get_recent_attendance(
        self,
        db: AsyncSession,
        student_id: uuid.UUID,
        limit: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[AttendanceRecord]:
        query = select(Attendance).where(Attendance.student_id == student_id)
        if start is not None:
            query = query.where(Attendance.date >= start)
        if end is not None:
            query = query.where(Attendance.date <= end)
        result = await db.execute(query.order_by(Attendance.date.desc()).limit(limit))
        return [AttendanceRecord.model_validate(a) for a in result.scalars().all()]


student_repository = StudentRepository()
