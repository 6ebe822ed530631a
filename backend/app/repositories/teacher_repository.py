"""
Schools24 Backend — Teacher Repository
========================================

Teacher profiles, class assignments and rosters, attendance upserts and
announcements.

Attendance writes are plain select-then-update-or-insert on the natural
keys (student_id, date) and (class_id, date). They run inside the caller's
transaction; TeacherService owns rollback.
"""

import uuid
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.attendance import Attendance, AttendanceSession
from app.models.common import utcnow
from app.models.communication import Announcement
from app.models.school import SchoolClass, Student, Subject, Teacher, TeacherAssignment
from app.models.user import User
from app.schemas.teacher import AnnouncementResponse, AssignedClass, ClassStudent, TeacherProfile


class TeacherRepository:

    async def get_by_user_id(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[Teacher]:
        result = await db.execute(select(Teacher).where(Teacher.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_profile_by_user_id(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[TeacherProfile]:
        result = await db.execute(
            select(Teacher, User.full_name, User.email, User.phone)
            .join(User, Teacher.user_id == User.id)
            .where(Teacher.user_id == user_id)
        )
        row = result.first()
        if row is None:
            return None
        teacher, full_name, email, phone = row
        return TeacherProfile.model_validate(teacher).model_copy(
            update={"full_name": full_name, "email": email, "phone": phone}
        )

    async def create(self, db: AsyncSession, teacher: Teacher) -> Teacher:
        db.add(teacher)
        await db.flush()
        return teacher

    async def employee_id_exists(self, db: AsyncSession, employee_id: str) -> bool:
        result = await db.execute(
            select(func.count(Teacher.id)).where(Teacher.employee_id == employee_id)
        )
        return (result.scalar() or 0) > 0

    # ── Classes ───────────────────────────────────────────────────────────

    async def _student_counts(self, db: AsyncSession, class_ids: Sequence[uuid.UUID]) -> Dict[uuid.UUID, int]:
        if not class_ids:
            return {}
        result = await db.execute(
            select(Student.class_id, func.count(Student.id))
            .where(Student.class_id.in_(list(class_ids)))
            .group_by(Student.class_id)
        )
        return {class_id: count for class_id, count in result.all()}

    async def get_assigned_classes(
        self, db: AsyncSession, teacher_id: uuid.UUID, academic_year: str
    ) -> List[AssignedClass]:
        """
        teacher_assignments rows for the year, plus homeroom classes
        (classes.class_teacher_id) that have no assignment row of their own.
        """
        result = await db.execute(
            select(TeacherAssignment, SchoolClass, func.coalesce(Subject.name, ""))
            .join(SchoolClass, TeacherAssignment.class_id == SchoolClass.id)
            .outerjoin(Subject, TeacherAssignment.subject_id == Subject.id)
            .where(
                TeacherAssignment.teacher_id == teacher_id,
                TeacherAssignment.academic_year == academic_year,
            )
            .order_by(SchoolClass.grade, SchoolClass.section)
        )
        rows = result.all()
        seen = {assignment.class_id for assignment, _, _ in rows}

        homeroom = await db.execute(
            select(SchoolClass)
            .where(
                SchoolClass.class_teacher_id == teacher_id,
                SchoolClass.academic_year == academic_year,
            )
            .order_by(SchoolClass.grade, SchoolClass.section)
        )
        homeroom_classes = [c for c in homeroom.scalars().all() if c.id not in seen]

        counts = await self._student_counts(
            db, list(seen) + [c.id for c in homeroom_classes]
        )

        classes = [
            AssignedClass(
                class_id=school_class.id,
                class_name=school_class.name,
                grade=school_class.grade,
                section=school_class.section,
                subject_id=assignment.subject_id,
                subject_name=subject_name,
                is_class_teacher=assignment.is_class_teacher,
                academic_year=assignment.academic_year,
                student_count=counts.get(school_class.id, 0),
            )
            for assignment, school_class, subject_name in rows
        ]
        classes.extend(
            AssignedClass(
                class_id=c.id,
                class_name=c.name,
                grade=c.grade,
                section=c.section,
                is_class_teacher=True,
                academic_year=c.academic_year,
                student_count=counts.get(c.id, 0),
            )
            for c in homeroom_classes
        )
        return classes

    async def get_class_students(self, db: AsyncSession, class_id: uuid.UUID) -> List[ClassStudent]:
        result = await db.execute(
            select(Student, User.full_name, User.email)
            .join(User, Student.user_id == User.id)
            .where(Student.class_id == class_id, User.is_active.is_(True))
            .order_by(Student.roll_number)
        )
        return [
            ClassStudent(
                id=student.id,
                user_id=student.user_id,
                admission_number=student.admission_number,
                roll_number=student.roll_number,
                full_name=full_name,
                email=email,
            )
            for student, full_name, email in result.all()
        ]

    # ── Attendance ────────────────────────────────────────────────────────

    async def upsert_attendance_session(
        self,
        db: AsyncSession,
        class_id: uuid.UUID,
        teacher_id: uuid.UUID,
        on: date,
        photo_url: str,
    ) -> AttendanceSession:
        result = await db.execute(
            select(AttendanceSession).where(
                AttendanceSession.class_id == class_id, AttendanceSession.date == on
            )
        )
        session = result.scalar_one_or_none()
        if session is None:
            session = AttendanceSession(class_id=class_id, date=on)
            db.add(session)
        session.teacher_id = teacher_id
        session.photo_url = photo_url
        await db.flush()
        return session

    async def upsert_attendance(
        self,
        db: AsyncSession,
        student_id: uuid.UUID,
        class_id: uuid.UUID,
        on: date,
        status: str,
        remarks: Optional[str],
        marked_by: uuid.UUID,
    ) -> Attendance:
        result = await db.execute(
            select(Attendance).where(Attendance.student_id == student_id, Attendance.date == on)
        )
        record = result.scalar_one_or_none()
        if record is None:
            record = Attendance(student_id=student_id, class_id=class_id, date=on)
            db.add(record)
        record.status = status
        record.remarks = remarks
        record.marked_by = marked_by
        await db.flush()
        return record

    # ── Announcements ─────────────────────────────────────────────────────

    async def create_announcement(self, db: AsyncSession, announcement: Announcement) -> Announcement:
        db.add(announcement)
        await db.flush()
        return announcement

    async def list_active_announcements(
        self, db: AsyncSession, limit: int, now: Optional[datetime] = None
    ) -> List[AnnouncementResponse]:
        """Unexpired announcements, pinned first, then newest first."""
        now = now or utcnow()
        result = await db.execute(
            select(Announcement, User.full_name)
            .join(User, Announcement.author_id == User.id)
            .where(or_(Announcement.expires_at.is_(None), Announcement.expires_at > now))
            .order_by(Announcement.is_pinned.desc(), Announcement.created_at.desc())
            .limit(limit)
        )
        return [
            AnnouncementResponse.model_validate(a).model_copy(update={"author_name": author_name})
            for a, author_name in result.all()
        ]


teacher_repository = TeacherRepository()
