"""
Schools24 Backend — Academic Repository
=========================================

Timetables, homework, submissions, grades and subjects.

Every joined read uses the same alias layout:
    subjects ── timetables/homework/grades ── teachers ── users (teacher name)
                                          └── classes
"""

import uuid
from datetime import time
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.academic import Grade, Homework, HomeworkSubmission, Timetable
from app.models.common import utcnow
from app.models.school import SchoolClass, Subject, Teacher
from app.models.user import User
from app.schemas.academic import (
    GradeResponse,
    HomeworkResponse,
    SubjectResponse,
    SubmissionResponse,
    TimetablePeriod,
)


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


def _named(*columns):
    return [func.coalesce(c, "") for c in columns]


def _to_period(row) -> TimetablePeriod:
    entry, subject_name, teacher_name, class_name = row
    return TimetablePeriod(
        id=entry.id,
        class_id=entry.class_id,
        day_of_week=entry.day_of_week,
        period_number=entry.period_number,
        subject_id=entry.subject_id,
        teacher_id=entry.teacher_id,
        start_time=format_time(entry.start_time),
        end_time=format_time(entry.end_time),
        room_number=entry.room_number,
        academic_year=entry.academic_year,
        subject_name=subject_name,
        teacher_name=teacher_name,
        class_name=class_name,
    )


def _timetable_query():
    return (
        select(Timetable, *_named(Subject.name, User.full_name, SchoolClass.name))
        .outerjoin(Subject, Timetable.subject_id == Subject.id)
        .outerjoin(Teacher, Timetable.teacher_id == Teacher.id)
        .outerjoin(User, Teacher.user_id == User.id)
        .outerjoin(SchoolClass, Timetable.class_id == SchoolClass.id)
    )


def _homework_query():
    return (
        select(Homework, *_named(Subject.name, User.full_name, SchoolClass.name))
        .outerjoin(Subject, Homework.subject_id == Subject.id)
        .outerjoin(Teacher, Homework.teacher_id == Teacher.id)
        .outerjoin(User, Teacher.user_id == User.id)
        .outerjoin(SchoolClass, Homework.class_id == SchoolClass.id)
    )


def _to_homework(row) -> HomeworkResponse:
    homework, subject_name, teacher_name, class_name = row
    return HomeworkResponse.model_validate(homework).model_copy(
        update={"subject_name": subject_name, "teacher_name": teacher_name, "class_name": class_name}
    )


class AcademicRepository:

    # ── Timetable ─────────────────────────────────────────────────────────

    async def get_class_timetable(
        self, db: AsyncSession, class_id: uuid.UUID, academic_year: str
    ) -> List[TimetablePeriod]:
        result = await db.execute(
            _timetable_query()
            .where(Timetable.class_id == class_id, Timetable.academic_year == academic_year)
            .order_by(Timetable.day_of_week, Timetable.period_number)
        )
        return [_to_period(row) for row in result.all()]

    async def get_teacher_day_schedule(
        self, db: AsyncSession, teacher_id: uuid.UUID, day_of_week: int, academic_year: str
    ) -> List[TimetablePeriod]:
        result = await db.execute(
            _timetable_query()
            .where(
                Timetable.teacher_id == teacher_id,
                Timetable.day_of_week == day_of_week,
                Timetable.academic_year == academic_year,
            )
            .order_by(Timetable.period_number)
        )
        return [_to_period(row) for row in result.all()]

    # ── Homework ──────────────────────────────────────────────────────────

    async def list_class_homework(
        self, db: AsyncSession, class_id: uuid.UUID, status: str
    ) -> List[HomeworkResponse]:
        result = await db.execute(
            _homework_query()
            .where(Homework.class_id == class_id, Homework.status == status)
            .order_by(Homework.due_date.desc())
        )
        return [_to_homework(row) for row in result.all()]

    async def get_homework(self, db: AsyncSession, homework_id: uuid.UUID) -> Optional[HomeworkResponse]:
        result = await db.execute(_homework_query().where(Homework.id == homework_id))
        row = result.first()
        return _to_homework(row) if row else None

    async def homework_exists(self, db: AsyncSession, homework_id: uuid.UUID) -> bool:
        return await db.get(Homework, homework_id) is not None

    async def create_homework(self, db: AsyncSession, homework: Homework) -> Homework:
        db.add(homework)
        await db.flush()
        return homework

    async def get_submissions_for_student(
        self, db: AsyncSession, student_id: uuid.UUID, homework_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, SubmissionResponse]:
        ids = list(homework_ids)
        if not ids:
            return {}
        result = await db.execute(
            select(HomeworkSubmission).where(
                HomeworkSubmission.student_id == student_id,
                HomeworkSubmission.homework_id.in_(ids),
            )
        )
        return {
            s.homework_id: SubmissionResponse.model_validate(s) for s in result.scalars().all()
        }

    async def upsert_submission(
        self,
        db: AsyncSession,
        homework_id: uuid.UUID,
        student_id: uuid.UUID,
        submission_text: Optional[str],
        attachments: List[str],
    ) -> HomeworkSubmission:
        """
        One submission per (homework_id, student_id). Resubmitting replaces
        text and attachments, resets status to "submitted" and refreshes
        submitted_at; grading fields are left alone.
        """
        result = await db.execute(
            select(HomeworkSubmission).where(
                HomeworkSubmission.homework_id == homework_id,
                HomeworkSubmission.student_id == student_id,
            )
        )
        submission = result.scalar_one_or_none()
        if submission is None:
            submission = HomeworkSubmission(homework_id=homework_id, student_id=student_id)
            db.add(submission)
        submission.submission_text = submission_text
        submission.attachments = list(attachments)
        submission.submitted_at = utcnow()
        submission.status = "submitted"
        await db.flush()
        return submission

    async def count_pending_grading(self, db: AsyncSession, teacher_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count(HomeworkSubmission.id))
            .join(Homework, HomeworkSubmission.homework_id == Homework.id)
            .where(Homework.teacher_id == teacher_id, HomeworkSubmission.status == "submitted")
        )
        return result.scalar() or 0

    # ── Grades ────────────────────────────────────────────────────────────

    async def list_student_grades(
        self, db: AsyncSession, student_id: uuid.UUID, academic_year: str
    ) -> List[GradeResponse]:
        result = await db.execute(
            select(Grade, func.coalesce(Subject.name, ""))
            .outerjoin(Subject, Grade.subject_id == Subject.id)
            .where(Grade.student_id == student_id, Grade.academic_year == academic_year)
            .order_by(Grade.exam_date.desc(), Grade.subject_id)
        )
        return [
            GradeResponse.model_validate(grade).model_copy(update={"subject_name": subject_name})
            for grade, subject_name in result.all()
        ]

    async def create_grade(self, db: AsyncSession, grade: Grade) -> Grade:
        db.add(grade)
        await db.flush()
        return grade

    # ── Subjects ──────────────────────────────────────────────────────────

    async def list_subjects(self, db: AsyncSession) -> List[SubjectResponse]:
        result = await db.execute(select(Subject).order_by(Subject.name))
        return [SubjectResponse.model_validate(s) for s in result.scalars().all()]

    async def subject_code_exists(self, db: AsyncSession, code: str) -> bool:
        result = await db.execute(select(func.count(Subject.id)).where(Subject.code == code))
        return (result.scalar() or 0) > 0

    async def create_subject(self, db: AsyncSession, subject: Subject) -> Subject:
        db.add(subject)
        await db.flush()
        return subject


academic_repository = AcademicRepository()
