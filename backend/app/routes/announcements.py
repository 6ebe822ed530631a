"""
Schools24 Backend — Announcement Feed
=======================================

GET /announcements: unexpired announcements, pinned first then newest.
Open to every authenticated role.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.middleware.auth import get_current_claims
from app.schemas.teacher import AnnouncementListResponse
from app.services.teacher_service import teacher_service

router = APIRouter(tags=["Announcements"], dependencies=[Depends(get_current_claims)])


@router.get("/announcements", response_model=AnnouncementListResponse, summary="Announcement feed")
async def list_announcements(
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> AnnouncementListResponse:
    return AnnouncementListResponse(announcements=await teacher_service.list_announcements(db, limit))
