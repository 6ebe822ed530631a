"""
Schools24 Backend — User & Password Reset Models
==================================================

What:  Identity rows. Every person (admin, teacher, student, staff, parent)
       has exactly one `users` row; role-specific profiles hang off it.
Who:   AuthService (login/register/me), AdminService (user CRUD), and every
       profile join that needs a display name.

Index rationale:
    - email: login lookup (also UNIQUE)
    - role:  admin user listing filtered by role
    - is_active: login and dashboard counts only consider active users
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.common import created_at_column, updated_at_column, uuid_pk

ROLE_ADMIN = "admin"
ROLE_TEACHER = "teacher"
ROLE_STUDENT = "student"
ROLE_STAFF = "staff"
ROLE_PARENT = "parent"

ROLES = (ROLE_ADMIN, ROLE_TEACHER, ROLE_STUDENT, ROLE_STAFF, ROLE_PARENT)


class User(Base):
    """
    An account that can authenticate.

    Soft-deleted users keep their row with is_active = false; they can no
    longer log in but their history (attendance marked, payments collected)
    stays attributable.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = uuid_pk()
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    profile_picture_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'teacher', 'student', 'staff', 'parent')",
            name="ck_users_role",
        ),
        Index("idx_users_role", "role"),
        Index("idx_users_active", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class PasswordReset(Base):
    __tablename__ = "password_resets"

    id: Mapped[uuid.UUID] = uuid_pk()
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = created_at_column()
