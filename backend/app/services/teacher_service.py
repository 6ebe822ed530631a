"""
Schools24 Backend — Teacher Service
=====================================

What:  Teacher dashboard, rosters, attendance marking, homework and grade
       entry, and announcements.
Who:   routes/teacher.py, routes/announcements.py.

Attendance Marking (the one multi-statement atomic operation):
    ┌──────────────┐   ┌──────────────┐   ┌────────────────────────────┐
    │ parse form   │──▶│ save photo   │──▶│ session upsert (if photo)  │
    │ date + JSON  │   │ (FileService)│   │ attendance upsert × N      │
    └──────────────┘   └──────────────┘   └────────────────────────────┘
          │400                                   │ any failure
          ▼                                      ▼
    nothing written                  rollback + photo removed, error re-raised

    Entries whose student_id is not a UUID are skipped, not rejected.
    The request session commits once the handler returns.
"""

import json
import logging
import uuid
from datetime import date
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, ValidationError
from app.models.academic import Grade, Homework
from app.models.communication import Announcement
from app.models.school import Teacher
from app.repositories.academic_repository import academic_repository
from app.repositories.student_repository import student_repository
from app.repositories.teacher_repository import teacher_repository
from app.schemas.common import CreatedResponse, MessageResponse
from app.schemas.teacher import (
    AnnouncementResponse,
    AssignedClass,
    AttendanceEntry,
    ClassStudent,
    CreateAnnouncementRequest,
    CreateHomeworkRequest,
    EnterGradeRequest,
    MarkAttendanceResponse,
    TeacherDashboard,
    TeacherProfile,
)
from app.services.academic_calendar import current_academic_year, parse_date, timetable_weekday
from app.services.file_service import FileService, file_service

logger = logging.getLogger(__name__)

DASHBOARD_ANNOUNCEMENTS = 5
DEFAULT_MAX_MARKS = 100


def parse_attendance_entries(raw: str) -> List[AttendanceEntry]:
    """The form's `attendance` field: a JSON array of {student_id, status, remarks}."""
    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise TypeError("attendance must be a JSON array")
        return [AttendanceEntry.model_validate(item) for item in data]
    except (ValueError, TypeError, PydanticValidationError):
        raise ValidationError(message="invalid attendance json format", field="attendance")


def parse_uuid(value: str, field: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(message=f"invalid {field}", field=field)


class TeacherService:
    """
    Args:
        files: upload sink for attendance photos (tests pass one rooted in tmp_path)
    """

    def __init__(self, files: Optional[FileService] = None):
        self.files = files or file_service

    async def _teacher(self, db: AsyncSession, user_id: uuid.UUID) -> Teacher:
        teacher = await teacher_repository.get_by_user_id(db, user_id)
        if teacher is None:
            raise NotFoundError(resource="teacher")
        return teacher

    async def get_profile(self, db: AsyncSession, user_id: uuid.UUID) -> TeacherProfile:
        profile = await teacher_repository.get_profile_by_user_id(db, user_id)
        if profile is None:
            raise NotFoundError(resource="teacher")
        return profile

    async def get_classes(self, db: AsyncSession, user_id: uuid.UUID) -> List[AssignedClass]:
        teacher = await self._teacher(db, user_id)
        return await teacher_repository.get_assigned_classes(db, teacher.id, current_academic_year())

    async def get_class_students(
        self, db: AsyncSession, user_id: uuid.UUID, class_id: uuid.UUID
    ) -> List[ClassStudent]:
        await self._teacher(db, user_id)
        return await teacher_repository.get_class_students(db, class_id)

    async def get_dashboard(
        self, db: AsyncSession, user_id: uuid.UUID, today: Optional[date] = None
    ) -> TeacherDashboard:
        profile = await self.get_profile(db, user_id)
        today = today or date.today()
        year = current_academic_year(today)

        classes = await teacher_repository.get_assigned_classes(db, profile.id, year)
        schedule = await academic_repository.get_teacher_day_schedule(
            db, profile.id, timetable_weekday(today), year
        )
        pending = await academic_repository.count_pending_grading(db, profile.id)
        announcements = await teacher_repository.list_active_announcements(db, DASHBOARD_ANNOUNCEMENTS)

        # A class covering several subjects appears once per subject; count its students once
        students_per_class = {c.class_id: c.student_count for c in classes}

        return TeacherDashboard(
            teacher=profile,
            assigned_classes=classes,
            today_schedule=schedule,
            pending_homework_to_grade=pending,
            total_students=sum(students_per_class.values()),
            attendance_today=None,
            recent_announcements=announcements,
        )

    async def mark_attendance(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        class_id: str,
        date_value: str,
        attendance_json: str,
        photo_filename: Optional[str] = None,
        photo_content: Optional[bytes] = None,
    ) -> MarkAttendanceResponse:
        teacher = await self._teacher(db, user_id)
        class_uuid = parse_uuid(class_id, "class_id")
        on = parse_date(date_value)
        entries = parse_attendance_entries(attendance_json)

        photo_url: Optional[str] = None
        if photo_content:
            photo_url = await self.files.save(
                photo_filename or "", photo_content, f"attendance/{on:%Y-%m}"
            )

        marked = 0
        try:
            if photo_url:
                await teacher_repository.upsert_attendance_session(
                    db, class_uuid, teacher.id, on, photo_url
                )
            for entry in entries:
                try:
                    student_id = uuid.UUID(entry.student_id)
                except ValueError:
                    logger.debug("Skipping attendance entry with invalid student_id %r", entry.student_id)
                    continue
                await teacher_repository.upsert_attendance(
                    db, student_id, class_uuid, on, entry.status, entry.remarks, user_id
                )
                marked += 1
        except Exception:
            await db.rollback()
            if photo_url:
                await self.files.cleanup(photo_url)
            logger.error("Attendance batch for class %s on %s rolled back", class_uuid, on)
            raise

        logger.info("Marked attendance for %d students in class %s on %s", marked, class_uuid, on)
        return MarkAttendanceResponse(message="Attendance marked successfully", photo_url=photo_url)

    async def create_homework(
        self, db: AsyncSession, user_id: uuid.UUID, req: CreateHomeworkRequest
    ) -> CreatedResponse:
        teacher = await self._teacher(db, user_id)
        if await student_repository.get_class(db, req.class_id) is None:
            raise NotFoundError(resource="class", resource_id=str(req.class_id))

        homework = await academic_repository.create_homework(
            db,
            Homework(
                title=req.title,
                description=req.description,
                class_id=req.class_id,
                subject_id=req.subject_id,
                teacher_id=teacher.id,
                due_date=req.due_date,
                max_marks=req.max_marks or DEFAULT_MAX_MARKS,
                attachments=req.attachments,
                status="active",
            ),
        )
        logger.info("Teacher %s created homework %s", teacher.id, homework.id)
        return CreatedResponse(id=str(homework.id), message="Homework created successfully")

    async def enter_grade(
        self, db: AsyncSession, user_id: uuid.UUID, req: EnterGradeRequest
    ) -> MessageResponse:
        teacher = await self._teacher(db, user_id)
        if await student_repository.get_by_id(db, req.student_id) is None:
            raise NotFoundError(resource="student", resource_id=str(req.student_id))

        grade = await academic_repository.create_grade(
            db,
            Grade(
                student_id=req.student_id,
                subject_id=req.subject_id,
                exam_type=req.exam_type,
                exam_name=req.exam_name,
                max_marks=req.max_marks,
                marks_obtained=req.marks_obtained,
                grade=req.grade,
                remarks=req.remarks,
                graded_by=teacher.id,
                exam_date=req.exam_date,
                academic_year=current_academic_year(),
            ),
        )
        logger.info("Teacher %s graded student %s (grade %s)", teacher.id, req.student_id, grade.id)
        return MessageResponse(message="Grade entered successfully")

    async def create_announcement(
        self, db: AsyncSession, user_id: uuid.UUID, req: CreateAnnouncementRequest
    ) -> CreatedResponse:
        await self._teacher(db, user_id)
        announcement = await teacher_repository.create_announcement(
            db,
            Announcement(
                title=req.title,
                content=req.content,
                author_id=user_id,
                target_type=req.target_type,
                target_id=req.target_id,
                priority=req.priority or "normal",
                is_pinned=req.is_pinned,
                expires_at=req.expires_at,
            ),
        )
        logger.info("Announcement %s posted by %s", announcement.id, user_id)
        return CreatedResponse(id=str(announcement.id), message="Announcement created successfully")

    async def list_announcements(self, db: AsyncSession, limit: int = 20) -> List[AnnouncementResponse]:
        return await teacher_repository.list_active_announcements(db, limit)


teacher_service = TeacherService()
