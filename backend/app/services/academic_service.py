"""
Schools24 Backend — Academic Service
======================================

What:  Student-facing academic reads (timetable, homework, grades) and the
       subject catalogue.
Who:   routes/academic.py.

Timetable shape:
    Periods are grouped into six days, Monday (1) … Saturday (6), each
    carrying its day name. A day without periods is still present with
    an empty list, so clients can render a fixed weekly grid.

Subjects:
    The full list is cached under SUBJECTS_CACHE_KEY and dropped once a
    created subject has committed.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError
from app.models.school import Subject
from app.repositories.academic_repository import academic_repository
from app.repositories.student_repository import student_repository
from app.schemas.academic import (
    CreateSubjectRequest,
    DaySchedule,
    GradeResponse,
    HomeworkResponse,
    SubjectResponse,
    SubmitHomeworkRequest,
    TimetablePeriod,
)
from app.schemas.common import MessageResponse
from app.schemas.student import StudentProfile
from app.services.academic_calendar import DAY_NAMES, current_academic_year
from app.services.cache_service import CacheService

logger = logging.getLogger(__name__)

SUBJECTS_CACHE_KEY = "subjects:all"

SCHOOL_DAYS = range(1, 7)


def group_timetable(periods: List[TimetablePeriod]) -> List[DaySchedule]:
    """Buckets periods into Monday..Saturday; Sunday periods are dropped."""
    days = {day: DaySchedule(day_of_week=day, day_name=DAY_NAMES[day]) for day in SCHOOL_DAYS}
    for period in periods:
        if period.day_of_week in days:
            days[period.day_of_week].periods.append(period)
    return [days[day] for day in SCHOOL_DAYS]


class AcademicService:

    async def _student(self, db: AsyncSession, user_id: uuid.UUID) -> StudentProfile:
        profile = await student_repository.get_profile_by_user_id(db, user_id)
        if profile is None:
            raise NotFoundError(resource="student")
        return profile

    async def get_timetable(self, db: AsyncSession, user_id: uuid.UUID) -> List[DaySchedule]:
        profile = await self._student(db, user_id)
        if profile.class_id is None:
            return group_timetable([])
        periods = await academic_repository.get_class_timetable(
            db, profile.class_id, current_academic_year()
        )
        return group_timetable(periods)

    async def list_homework(
        self, db: AsyncSession, user_id: uuid.UUID, status: str = "active"
    ) -> List[HomeworkResponse]:
        profile = await self._student(db, user_id)
        if profile.class_id is None:
            return []
        homework = await academic_repository.list_class_homework(db, profile.class_id, status or "active")
        submissions = await academic_repository.get_submissions_for_student(
            db, profile.id, [h.id for h in homework]
        )
        return [
            h.model_copy(update={"is_submitted": h.id in submissions, "submission": submissions.get(h.id)})
            for h in homework
        ]

    async def get_homework(
        self, db: AsyncSession, user_id: uuid.UUID, homework_id: uuid.UUID
    ) -> HomeworkResponse:
        homework = await academic_repository.get_homework(db, homework_id)
        if homework is None:
            raise NotFoundError(resource="homework", resource_id=str(homework_id))

        profile = await student_repository.get_profile_by_user_id(db, user_id)
        if profile is None:
            return homework
        submissions = await academic_repository.get_submissions_for_student(db, profile.id, [homework.id])
        submission = submissions.get(homework.id)
        return homework.model_copy(update={"is_submitted": submission is not None, "submission": submission})

    async def submit_homework(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        homework_id: uuid.UUID,
        req: SubmitHomeworkRequest,
    ) -> MessageResponse:
        profile = await self._student(db, user_id)
        if not await academic_repository.homework_exists(db, homework_id):
            raise NotFoundError(resource="homework", resource_id=str(homework_id))

        submission = await academic_repository.upsert_submission(
            db, homework_id, profile.id, req.submission_text, req.attachments
        )
        logger.info("Student %s submitted homework %s (submission %s)", profile.id, homework_id, submission.id)
        return MessageResponse(message="Homework submitted successfully")

    async def list_grades(
        self, db: AsyncSession, user_id: uuid.UUID, academic_year: Optional[str] = None
    ) -> List[GradeResponse]:
        profile = await self._student(db, user_id)
        grades = await academic_repository.list_student_grades(
            db, profile.id, academic_year or current_academic_year()
        )
        return [g.model_copy(update={"student_name": profile.full_name}) for g in grades]

    # ── Subjects ──────────────────────────────────────────────────────────

    async def list_subjects(self, db: AsyncSession, cache: CacheService) -> List[SubjectResponse]:
        cached = await cache.fetch(SUBJECTS_CACHE_KEY)
        if cached is not None:
            return [SubjectResponse.model_validate(s) for s in cached]

        subjects = await academic_repository.list_subjects(db)
        await cache.store(SUBJECTS_CACHE_KEY, [s.model_dump(mode="json") for s in subjects])
        return subjects

    async def create_subject(
        self, db: AsyncSession, cache: CacheService, req: CreateSubjectRequest
    ) -> SubjectResponse:
        if await academic_repository.subject_code_exists(db, req.code):
            raise ConflictError(message=f"Subject code '{req.code}' already exists")

        subject = await academic_repository.create_subject(
            db,
            Subject(
                name=req.name,
                code=req.code,
                description=req.description,
                grade_levels=req.grade_levels,
                credits=req.credits,
                is_optional=req.is_optional,
            ),
        )
        await db.commit()
        await cache.delete(SUBJECTS_CACHE_KEY)
        logger.info("Created subject %s (%s)", subject.id, subject.code)
        return SubjectResponse.model_validate(subject)


academic_service = AcademicService()
