"""
Schools24 Backend — Teacher Schemas
=====================================

What:  Teacher profile, assigned classes, the class roster, and the bodies
       for homework, grade and announcement creation.
Who:   routes/teacher.py and routes/announcements.py.

The attendance batch is NOT a JSON body: it arrives as a multipart form with
the list serialized into the `attendance` field, because a class photo can
ride along. AttendanceEntry validates each element after json.loads.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.attendance import ATTENDANCE_STATUSES
from app.models.communication import PRIORITIES, TARGET_TYPES
from app.schemas.academic import TimetablePeriod


class TeacherProfile(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    employee_id: str
    department: Optional[str] = None
    designation: Optional[str] = None
    qualifications: List[str] = Field(default_factory=list)
    subjects_taught: List[str] = Field(default_factory=list)
    experience_years: int = 0
    hire_date: date
    created_at: datetime
    updated_at: datetime
    full_name: str = ""
    email: str = ""
    phone: Optional[str] = None

    model_config = {"from_attributes": True}


class AssignedClass(BaseModel):
    """
    One (class, subject) pair the teacher covers. Homeroom classes without
    a teacher_assignments row appear with subject_id = None.
    """
    class_id: uuid.UUID
    class_name: str
    grade: int
    section: Optional[str] = None
    subject_id: Optional[uuid.UUID] = None
    subject_name: str = ""
    is_class_teacher: bool = False
    academic_year: str
    student_count: int = 0


class AssignedClassListResponse(BaseModel):
    classes: List[AssignedClass]


class ClassStudent(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    admission_number: str
    roll_number: Optional[str] = None
    full_name: str = ""
    email: str = ""


class ClassStudentListResponse(BaseModel):
    students: List[ClassStudent]


class AttendanceEntry(BaseModel):
    """
    One element of the attendance form field. student_id stays a string:
    entries that are not UUIDs are skipped by the service, not rejected.
    """
    student_id: str
    status: str
    remarks: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in ATTENDANCE_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(ATTENDANCE_STATUSES)}")
        return v


class MarkAttendanceResponse(BaseModel):
    message: str
    photo_url: Optional[str] = None


class CreateHomeworkRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    class_id: uuid.UUID
    subject_id: Optional[uuid.UUID] = None
    due_date: datetime = Field(description="RFC3339 timestamp")
    max_marks: int = Field(default=100, ge=0)
    attachments: List[str] = Field(default_factory=list)


class EnterGradeRequest(BaseModel):
    student_id: uuid.UUID
    subject_id: Optional[uuid.UUID] = None
    exam_type: str = Field(min_length=1, max_length=50)
    exam_name: str = Field(min_length=1, max_length=255)
    max_marks: int = Field(gt=0)
    marks_obtained: Decimal = Field(ge=0)
    grade: Optional[str] = Field(default=None, max_length=5)
    remarks: Optional[str] = None
    exam_date: Optional[date] = None


class CreateAnnouncementRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    target_type: str = "all"
    target_id: Optional[uuid.UUID] = None
    priority: str = "normal"
    is_pinned: bool = False
    expires_at: Optional[datetime] = None

    @field_validator("target_type")
    @classmethod
    def validate_target_type(cls, v: str) -> str:
        if v not in TARGET_TYPES:
            raise ValueError(f"target_type must be one of: {', '.join(TARGET_TYPES)}")
        return v

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: str) -> str:
        if not v:
            return "normal"
        if v not in PRIORITIES:
            raise ValueError(f"priority must be one of: {', '.join(PRIORITIES)}")
        return v


class AnnouncementResponse(BaseModel):
    id: uuid.UUID
    title: str
    content: str
    author_id: uuid.UUID
    target_type: str
    target_id: Optional[uuid.UUID] = None
    priority: str
    is_pinned: bool
    expires_at: Optional[datetime] = None
    created_at: datetime
    author_name: str = ""

    model_config = {"from_attributes": True}


class AnnouncementListResponse(BaseModel):
    announcements: List[AnnouncementResponse]


class TeacherDashboard(BaseModel):
    teacher: TeacherProfile
    assigned_classes: List[AssignedClass] = Field(default_factory=list)
    today_schedule: List[TimetablePeriod] = Field(default_factory=list)
    pending_homework_to_grade: int = 0
    total_students: int = 0
    attendance_today: Optional[dict] = None
    recent_announcements: List[AnnouncementResponse] = Field(default_factory=list)
