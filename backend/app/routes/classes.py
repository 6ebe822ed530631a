"""
Schools24 Backend — Class Routes
==================================

GET  /classes: classes of an academic year (cached), any authenticated user
POST /classes: create a class, admin only; returns {"class": ...} and
              invalidates that year's cache
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.middleware.auth import RoleChecker, get_current_claims
from app.models.user import ROLE_ADMIN
from app.routes.deps import get_cache
from app.schemas.common import ErrorResponse
from app.schemas.student import ClassEnvelope, ClassListResponse, CreateClassRequest
from app.services.cache_service import CacheService
from app.services.class_service import class_service

router = APIRouter(prefix="/classes", tags=["Classes"])


@router.get(
    "",
    response_model=ClassListResponse,
    dependencies=[Depends(get_current_claims)],
    summary="Classes of an academic year",
)
async def list_classes(
    academic_year: Optional[str] = Query(default=None, description="Defaults to the current academic year"),
    db: AsyncSession = Depends(get_db_session),
    cache: CacheService = Depends(get_cache),
) -> ClassListResponse:
    return ClassListResponse(classes=await class_service.list_classes(db, cache, academic_year))


@router.post(
    "",
    status_code=201,
    response_model=ClassEnvelope,
    dependencies=[Depends(RoleChecker([ROLE_ADMIN]))],
    responses={403: {"model": ErrorResponse}},
    summary="Create a class (admin)",
)
async def create_class(
    req: CreateClassRequest,
    db: AsyncSession = Depends(get_db_session),
    cache: CacheService = Depends(get_cache),
) -> ClassEnvelope:
    return ClassEnvelope(class_=await class_service.create_class(db, cache, req))
