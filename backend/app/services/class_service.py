"""
Schools24 Backend — Class Service
===================================

Class listing (any authenticated user) and creation (admin). The list for
an academic year is cached under "classes:<year>". Creating a class, or
enrolling a student into one, drops that key only after the transaction
has committed.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.school import SchoolClass
from app.repositories.student_repository import student_repository
from app.schemas.student import ClassResponse, CreateClassRequest
from app.services.academic_calendar import current_academic_year
from app.services.cache_service import CacheService

logger = logging.getLogger(__name__)


def classes_cache_key(academic_year: str) -> str:
    return f"classes:{academic_year}"


class ClassService:

    async def list_classes(
        self, db: AsyncSession, cache: CacheService, academic_year: Optional[str] = None
    ) -> List[ClassResponse]:
        year = academic_year or current_academic_year()
        key = classes_cache_key(year)

        cached = await cache.fetch(key)
        if cached is not None:
            return [ClassResponse.model_validate(c) for c in cached]

        classes = await student_repository.list_classes(db, year)
        await cache.store(key, [c.model_dump(mode="json") for c in classes])
        return classes

    async def create_class(
        self, db: AsyncSession, cache: CacheService, req: CreateClassRequest
    ) -> ClassResponse:
        year = req.academic_year or current_academic_year()
        school_class = await student_repository.create_class(
            db,
            SchoolClass(
                name=req.name,
                grade=req.grade,
                section=req.section,
                academic_year=year,
                room_number=req.room_number,
                class_teacher_id=req.class_teacher_id,
                total_students=0,
            ),
        )
        created = await student_repository.get_class(db, school_class.id)
        await db.commit()
        await cache.delete(classes_cache_key(year))
        logger.info("Created class %s (%s, grade %d)", school_class.id, school_class.name, school_class.grade)
        return created


class_service = ClassService()
