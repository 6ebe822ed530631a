"""
Schools24 Backend — Student & Class Schemas
=============================================

Profile, class, attendance and dashboard views for the student module, plus
the class-management bodies shared with /classes.
"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class StudentProfile(BaseModel):
    """Student row joined with its user (name, email) and class name."""
    id: uuid.UUID
    user_id: uuid.UUID
    admission_number: str
    roll_number: Optional[str] = None
    class_id: Optional[uuid.UUID] = None
    section: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    blood_group: Optional[str] = None
    address: Optional[str] = None
    parent_name: Optional[str] = None
    parent_email: Optional[str] = None
    parent_phone: Optional[str] = None
    emergency_contact: Optional[str] = None
    admission_date: date
    academic_year: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    full_name: str = ""
    email: str = ""
    class_name: str = ""

    model_config = {"from_attributes": True}


class StudentProfileEnvelope(BaseModel):
    student: StudentProfile


class ClassResponse(BaseModel):
    id: uuid.UUID
    name: str
    grade: int
    section: Optional[str] = None
    class_teacher_id: Optional[uuid.UUID] = None
    academic_year: str
    total_students: int
    room_number: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    class_teacher_name: str = ""

    model_config = {"from_attributes": True}


class ClassListResponse(BaseModel):
    classes: List[ClassResponse]


class ClassEnvelope(BaseModel):
    class_: ClassResponse = Field(alias="class")

    model_config = {"populate_by_name": True}


class CreateClassRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    grade: int = Field(ge=1, le=12)
    section: Optional[str] = Field(default=None, max_length=10)
    academic_year: Optional[str] = Field(
        default=None, description="Defaults to the current academic year"
    )
    room_number: Optional[str] = None
    class_teacher_id: Optional[uuid.UUID] = None


class AttendanceRecord(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    class_id: uuid.UUID
    date: date
    status: str
    marked_by: Optional[uuid.UUID] = None
    remarks: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AttendanceStats(BaseModel):
    """
    attendance_percent = present_days / total_days × 100 (0 when no days).
    Late days are counted separately and not as present.
    """
    total_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    late_days: int = 0
    attendance_percent: float = 0.0


class AttendanceResponse(BaseModel):
    attendance: List[AttendanceRecord]
    stats: AttendanceStats


class StudentDashboard(BaseModel):
    """
    Aggregated landing view. upcoming_quizzes and pending_homework are
    always present (empty until quizzes exist as a feature).
    """
    student: StudentProfile
    class_: Optional[ClassResponse] = Field(default=None, alias="class")
    attendance_stats: Optional[AttendanceStats] = None
    recent_attendance: List[AttendanceRecord] = Field(default_factory=list)
    upcoming_quizzes: List[dict] = Field(default_factory=list)
    pending_homework: List[dict] = Field(default_factory=list)

    model_config = {"populate_by_name": True}
