"""
Schools24 Backend — Student Routes
====================================

Dashboard, profile and attendance history for the calling student.
A caller without a student profile gets 404 from every route.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.middleware.auth import get_current_user_id
from app.schemas.common import ErrorResponse
from app.schemas.student import AttendanceResponse, StudentDashboard, StudentProfileEnvelope
from app.services.student_service import student_service

router = APIRouter(
    prefix="/student",
    tags=["Student"],
    responses={404: {"description": "No student profile", "model": ErrorResponse}},
)


@router.get("/dashboard", response_model=StudentDashboard, summary="Student dashboard")
async def get_dashboard(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> StudentDashboard:
    return await student_service.get_dashboard(db, user_id)


@router.get("/profile", response_model=StudentProfileEnvelope, summary="Student profile")
async def get_profile(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> StudentProfileEnvelope:
    return StudentProfileEnvelope(student=await student_service.get_profile(db, user_id))


@router.get(
    "/attendance",
    response_model=AttendanceResponse,
    summary="Attendance records and stats for a date range",
    description=(
        "Both dates are YYYY-MM-DD. Without both, the current month is used. "
        "At most the 30 most recent records in the range are returned."
    ),
)
async def get_attendance(
    start_date: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> AttendanceResponse:
    return await student_service.get_attendance(db, user_id, start_date, end_date)
