"""
Schools24 Backend — Academic Routes
=====================================

What:  Timetable, homework, grades and the subject catalogue.
Who:   Students (timetable, homework, grades); everyone (subjects);
       admins (subject creation).
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.middleware.auth import RoleChecker, get_current_user_id
from app.models.user import ROLE_ADMIN
from app.routes.deps import get_cache
from app.schemas.academic import (
    CreateSubjectRequest,
    GradeListResponse,
    HomeworkListResponse,
    HomeworkResponse,
    SubjectEnvelope,
    SubjectListResponse,
    SubmitHomeworkRequest,
    TimetableResponse,
)
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.academic_service import academic_service
from app.services.cache_service import CacheService

router = APIRouter(prefix="/academic", tags=["Academic"])

admin_only = RoleChecker([ROLE_ADMIN])


@router.get("/timetable", response_model=TimetableResponse, summary="Weekly timetable of the caller's class")
async def get_timetable(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> TimetableResponse:
    return TimetableResponse(timetable=await academic_service.get_timetable(db, user_id))


@router.get("/homework", response_model=HomeworkListResponse, summary="Homework for the caller's class")
async def list_homework(
    status: str = Query(default="active"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> HomeworkListResponse:
    return HomeworkListResponse(homework=await academic_service.list_homework(db, user_id, status))


@router.get(
    "/homework/{homework_id}",
    response_model=HomeworkResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Homework detail",
)
async def get_homework(
    homework_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> HomeworkResponse:
    return await academic_service.get_homework(db, user_id, homework_id)


@router.post(
    "/homework/{homework_id}/submit",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Submit or resubmit homework",
)
async def submit_homework(
    homework_id: uuid.UUID,
    req: SubmitHomeworkRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await academic_service.submit_homework(db, user_id, homework_id, req)


@router.get("/grades", response_model=GradeListResponse, summary="Caller's grades for an academic year")
async def list_grades(
    academic_year: Optional[str] = Query(default=None, description="e.g. 2025-2026"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> GradeListResponse:
    return GradeListResponse(grades=await academic_service.list_grades(db, user_id, academic_year))


@router.get("/subjects", response_model=SubjectListResponse, summary="All subjects")
async def list_subjects(
    db: AsyncSession = Depends(get_db_session),
    cache: CacheService = Depends(get_cache),
) -> SubjectListResponse:
    return SubjectListResponse(subjects=await academic_service.list_subjects(db, cache))


@router.post(
    "/subjects",
    status_code=201,
    response_model=SubjectEnvelope,
    dependencies=[Depends(admin_only)],
    responses={409: {"description": "Duplicate subject code", "model": ErrorResponse}},
    summary="Create a subject (admin)",
)
async def create_subject(
    req: CreateSubjectRequest,
    db: AsyncSession = Depends(get_db_session),
    cache: CacheService = Depends(get_cache),
) -> SubjectEnvelope:
    return SubjectEnvelope(subject=await academic_service.create_subject(db, cache, req))
