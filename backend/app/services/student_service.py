"""
Schools24 Backend — Student Service
=====================================

What:  The student's own views: dashboard, profile and attendance history.
Who:   routes/student.py. Every method starts from the caller's user id and
       resolves the student profile; no profile → 404 "student not found".
"""

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, ValidationError
from app.repositories.student_repository import student_repository
from app.schemas.student import AttendanceResponse, StudentDashboard, StudentProfile
from app.services.academic_calendar import month_bounds, parse_date

logger = logging.getLogger(__name__)

RECENT_ATTENDANCE_LIMIT = 7
ATTENDANCE_HISTORY_LIMIT = 30


class StudentService:

    async def get_profile(self, db: AsyncSession, user_id: uuid.UUID) -> StudentProfile:
        profile = await student_repository.get_profile_by_user_id(db, user_id)
        if profile is None:
            raise NotFoundError(resource="student")
        return profile

    async def get_dashboard(
        self, db: AsyncSession, user_id: uuid.UUID, today: Optional[date] = None
    ) -> StudentDashboard:
        """
        Profile + class + this month's attendance stats + last 7 attendance
        rows. Quizzes and pending homework are returned as empty lists.
        """
        profile = await self.get_profile(db, user_id)

        school_class = None
        if profile.class_id is not None:
            school_class = await student_repository.get_class(db, profile.class_id)

        start, end = month_bounds(today)
        stats = await student_repository.get_attendance_stats(db, profile.id, start, end)
        recent = await student_repository.get_recent_attendance(
            db, profile.id, RECENT_ATTENDANCE_LIMIT
        )

        return StudentDashboard(
            student=profile,
            class_=school_class,
            attendance_stats=stats,
            recent_attendance=recent,
            upcoming_quizzes=[],
            pending_homework=[],
        )

    async def get_attendance(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        today: Optional[date] = None,
    ) -> AttendanceResponse:
        """
        Records and stats for [start_date, end_date] (YYYY-MM-DD). Either
        bound missing → the current month. At most the 30 most recent
        records in the range are returned; stats cover the whole range.
        """
        profile = await self.get_profile(db, user_id)

        if start_date and end_date:
            start = parse_date(start_date, "start_date")
            end = parse_date(end_date, "end_date")
            if end < start:
                raise ValidationError(message="end_date must not be before start_date", field="end_date")
        else:
            start, end = month_bounds(today)

        records = await student_repository.get_recent_attendance(
            db, profile.id, ATTENDANCE_HISTORY_LIMIT, start=start, end=end
        )
        stats = await student_repository.get_attendance_stats(db, profile.id, start, end)
        return AttendanceResponse(attendance=records, stats=stats)


student_service = StudentService()
