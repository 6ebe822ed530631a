"""
Schools24 Backend — Teacher Routes
====================================

What:  Teacher dashboard, class rosters, attendance marking, homework,
       grades and announcements.
Who:   Roles teacher and admin (router-level RoleChecker). Routes that need
       a teacher profile answer 404 "teacher not found" without one, which
       includes admins who have none.

Attendance Request Flow (POST /teacher/attendance, multipart/form-data):
    1. Form fields class_id, date (YYYY-MM-DD), attendance (JSON list)
       and an optional photo file
    2. Photo bytes are read here and handed to TeacherService
    3. TeacherService saves the photo, writes the batch, and on failure
       rolls back and removes the photo
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.middleware.auth import RoleChecker, get_current_user_id
from app.models.user import ROLE_ADMIN, ROLE_TEACHER
from app.schemas.common import CreatedResponse, ErrorResponse, MessageResponse
from app.schemas.teacher import (
    AssignedClassListResponse,
    ClassStudentListResponse,
    CreateAnnouncementRequest,
    CreateHomeworkRequest,
    EnterGradeRequest,
    MarkAttendanceResponse,
    TeacherDashboard,
    TeacherProfile,
)
from app.services.teacher_service import teacher_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/teacher",
    tags=["Teacher"],
    dependencies=[Depends(RoleChecker([ROLE_TEACHER, ROLE_ADMIN]))],
    responses={
        403: {"description": "Role not allowed", "model": ErrorResponse},
        404: {"description": "No teacher profile", "model": ErrorResponse},
    },
)


@router.get("/dashboard", response_model=TeacherDashboard, summary="Teacher dashboard")
async def get_dashboard(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> TeacherDashboard:
    return await teacher_service.get_dashboard(db, user_id)


@router.get("/profile", response_model=TeacherProfile, summary="Teacher profile")
async def get_profile(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> TeacherProfile:
    return await teacher_service.get_profile(db, user_id)


@router.get("/classes", response_model=AssignedClassListResponse, summary="Assigned classes")
async def get_classes(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> AssignedClassListResponse:
    return AssignedClassListResponse(classes=await teacher_service.get_classes(db, user_id))


@router.get(
    "/classes/{class_id}/students",
    response_model=ClassStudentListResponse,
    summary="Students of a class, by roll number",
)
async def get_class_students(
    class_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ClassStudentListResponse:
    return ClassStudentListResponse(
        students=await teacher_service.get_class_students(db, user_id, class_id)
    )


@router.post(
    "/attendance",
    response_model=MarkAttendanceResponse,
    responses={400: {"description": "Bad date, ids, JSON or photo", "model": ErrorResponse}},
    summary="Mark attendance for a class and date",
)
async def mark_attendance(
    class_id: str = Form(...),
    date: str = Form(..., description="YYYY-MM-DD"),
    attendance: str = Form(..., description='JSON: [{"student_id", "status", "remarks"}]'),
    photo: Optional[UploadFile] = File(default=None, description="Class photo (jpg, png, webp)"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MarkAttendanceResponse:
    photo_filename = None
    photo_content = None
    if photo is not None:
        try:
            photo_content = await photo.read()
            photo_filename = photo.filename
        finally:
            await photo.close()
        logger.info("Attendance photo received: %s (%d bytes)", photo_filename, len(photo_content))

    return await teacher_service.mark_attendance(
        db,
        user_id,
        class_id,
        date,
        attendance,
        photo_filename=photo_filename,
        photo_content=photo_content,
    )


@router.post("/homework", status_code=201, response_model=CreatedResponse, summary="Create homework")
async def create_homework(
    req: CreateHomeworkRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CreatedResponse:
    return await teacher_service.create_homework(db, user_id, req)


@router.post("/grades", response_model=MessageResponse, summary="Enter a grade")
async def enter_grade(
    req: EnterGradeRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await teacher_service.enter_grade(db, user_id, req)


@router.post(
    "/announcements",
    status_code=201,
    response_model=CreatedResponse,
    summary="Post an announcement",
)
async def create_announcement(
    req: CreateAnnouncementRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CreatedResponse:
    return await teacher_service.create_announcement(db, user_id, req)
