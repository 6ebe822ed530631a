"""
Schools24 Backend — User Repository
=====================================

Queries against `users`. Emails are compared as stored (lowercased by the
services before they reach here).
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.common import utcnow
from app.models.user import User


class UserRepository:

    async def get_by_id(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
        return await db.get(User, user_id)

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_active_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(
            select(User).where(User.email == email, User.is_active.is_(True))
        )
        return result.scalar_one_or_none()

    async def email_exists(self, db: AsyncSession, email: str) -> bool:
        result = await db.execute(select(func.count(User.id)).where(User.email == email))
        return (result.scalar() or 0) > 0

    async def create(
        self,
        db: AsyncSession,
        email: str,
        password_hash: str,
        role: str,
        full_name: str,
        phone: Optional[str] = None,
    ) -> User:
        user = User(
            email=email,
            password_hash=password_hash,
            role=role,
            full_name=full_name,
            phone=phone,
            is_active=True,
            email_verified=False,
        )
        db.add(user)
        # Flush assigns defaults (id, timestamps) without committing
        await db.flush()
        await db.refresh(user)
        return user

    async def update_fields(self, db: AsyncSession, user: User, fields: Dict[str, Any]) -> User:
        for name, value in fields.items():
            setattr(user, name, value)
        user.updated_at = utcnow()
        await db.flush()
        await db.refresh(user)
        return user

    async def touch_last_login(self, db: AsyncSession, user: User, at: Optional[datetime] = None) -> None:
        user.last_login_at = at or utcnow()
        await db.flush()

    async def list_page(
        self,
        db: AsyncSession,
        role: Optional[str],
        page: int,
        page_size: int,
    ) -> Tuple[List[User], int]:
        """Newest first; returns (users on this page, total matching)."""
        query = select(User)
        count_query = select(func.count(User.id))
        if role:
            query = query.where(User.role == role)
            count_query = count_query.where(User.role == role)

        query = query.order_by(User.created_at.desc()).offset((page - 1) * page_size).limit(page_size)
        users = list((await db.execute(query)).scalars().all())
        total = (await db.execute(count_query)).scalar() or 0
        return users, total

    async def count_active(self, db: AsyncSession, role: Optional[str] = None) -> int:
        query = select(func.count(User.id)).where(User.is_active.is_(True))
        if role:
            query = query.where(User.role == role)
        return (await db.execute(query)).scalar() or 0


user_repository = UserRepository()
