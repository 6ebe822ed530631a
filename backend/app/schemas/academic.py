"""
Schools24 Backend — Academic Schemas
======================================

Timetable, homework, submission, grade and subject views. Display names
(subject_name, teacher_name, class_name) are filled by repository joins and
default to "" when the foreign key is null.
"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TimetablePeriod(BaseModel):
    id: uuid.UUID
    class_id: uuid.UUID
    day_of_week: int
    period_number: int
    subject_id: Optional[uuid.UUID] = None
    teacher_id: Optional[uuid.UUID] = None
    start_time: str = Field(description="HH:MM")
    end_time: str = Field(description="HH:MM")
    room_number: Optional[str] = None
    academic_year: str
    subject_name: str = ""
    teacher_name: str = ""
    class_name: str = ""


class DaySchedule(BaseModel):
    day_of_week: int
    day_name: str
    periods: List[TimetablePeriod] = Field(default_factory=list)


class TimetableResponse(BaseModel):
    timetable: List[DaySchedule]


class SubmissionResponse(BaseModel):
    id: uuid.UUID
    homework_id: uuid.UUID
    student_id: uuid.UUID
    submission_text: Optional[str] = None
    attachments: List[str] = Field(default_factory=list)
    submitted_at: datetime
    marks_obtained: Optional[int] = None
    feedback: Optional[str] = None
    graded_by: Optional[uuid.UUID] = None
    graded_at: Optional[datetime] = None
    status: str

    model_config = {"from_attributes": True}


class HomeworkResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    class_id: uuid.UUID
    subject_id: Optional[uuid.UUID] = None
    teacher_id: uuid.UUID
    due_date: datetime
    max_marks: int
    attachments: List[str] = Field(default_factory=list)
    status: str
    created_at: datetime
    updated_at: datetime
    subject_name: str = ""
    teacher_name: str = ""
    class_name: str = ""
    is_submitted: bool = False
    submission: Optional[SubmissionResponse] = None

    model_config = {"from_attributes": True}


class HomeworkListResponse(BaseModel):
    homework: List[HomeworkResponse]


class SubmitHomeworkRequest(BaseModel):
    submission_text: Optional[str] = None
    attachments: List[str] = Field(default_factory=list)


class GradeResponse(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    subject_id: Optional[uuid.UUID] = None
    exam_type: str
    exam_name: str
    max_marks: int
    marks_obtained: float
    grade: Optional[str] = None
    remarks: Optional[str] = None
    graded_by: Optional[uuid.UUID] = None
    exam_date: Optional[date] = None
    academic_year: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    subject_name: str = ""
    student_name: str = ""

    model_config = {"from_attributes": True}


class GradeListResponse(BaseModel):
    grades: List[GradeResponse]


class SubjectResponse(BaseModel):
    id: uuid.UUID
    name: str
    code: str
    description: Optional[str] = None
    grade_levels: List[int] = Field(default_factory=list)
    credits: int
    is_optional: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class SubjectListResponse(BaseModel):
    subjects: List[SubjectResponse]


class SubjectEnvelope(BaseModel):
    subject: SubjectResponse


class CreateSubjectRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    code: str = Field(min_length=1, max_length=20)
    description: Optional[str] = None
    grade_levels: List[int] = Field(default_factory=list)
    credits: int = Field(default=1, ge=0)
    is_optional: bool = False
