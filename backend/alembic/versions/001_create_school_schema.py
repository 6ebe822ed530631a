"""Create school schema

Revision ID: 001
Revises: None
Create Date: 2025-06-01 00:00:00.000000+00:00

What:  Creates every table of the school backend: identity, school
       structure, academics, attendance, fees, communication and audit.
How:   Dialect-neutral column types (Uuid, JSON, timezone-aware DateTime),
       matching app/models so init_models() and this revision agree.

Creation order follows the foreign keys:
    users → teachers → classes → students → subjects → assignments →
    timetables/homework/grades → attendance → fees → payments → comms → audit

Rollback: downgrade() drops everything in reverse order (destructive).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.Uuid(), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def _fk(name: str, target: str, nullable: bool = False, ondelete: str = None) -> sa.Column:
    return sa.Column(name, sa.Uuid(), sa.ForeignKey(target, ondelete=ondelete), nullable=nullable)


def upgrade() -> None:
    # ── Identity ──────────────────────────────────────────────────────────
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20)),
        sa.Column("profile_picture_url", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint(
            "role IN ('admin', 'teacher', 'student', 'staff', 'parent')", name="ck_users_role"
        ),
    )
    op.create_index("idx_users_role", "users", ["role"])
    op.create_index("idx_users_active", "users", ["is_active"])

    op.create_table(
        "password_resets",
        _id(),
        _fk("user_id", "users.id", ondelete="CASCADE"),
        sa.Column("token", sa.String(255), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index("ix_password_resets_user_id", "password_resets", ["user_id"])

    # ── School Structure ──────────────────────────────────────────────────
    op.create_table(
        "teachers",
        _id(),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("employee_id", sa.String(50), nullable=False, unique=True),
        sa.Column("department", sa.String(100)),
        sa.Column("designation", sa.String(100)),
        sa.Column("qualifications", sa.JSON(), nullable=False),
        sa.Column("subjects_taught", sa.JSON(), nullable=False),
        sa.Column("experience_years", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("hire_date", sa.Date(), nullable=False, server_default=sa.text("CURRENT_DATE")),
        sa.Column("salary", sa.Numeric(10, 2)),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "classes",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("grade", sa.Integer(), nullable=False),
        sa.Column("section", sa.String(10)),
        _fk("class_teacher_id", "teachers.id", nullable=True),
        sa.Column("academic_year", sa.String(20), nullable=False),
        sa.Column("total_students", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("room_number", sa.String(50)),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint("grade >= 1 AND grade <= 12", name="ck_classes_grade"),
    )
    op.create_index("ix_classes_grade", "classes", ["grade"])
    op.create_index("ix_classes_academic_year", "classes", ["academic_year"])

    op.create_table(
        "students",
        _id(),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("admission_number", sa.String(50), nullable=False, unique=True),
        sa.Column("roll_number", sa.String(50)),
        _fk("class_id", "classes.id", nullable=True),
        sa.Column("section", sa.String(10)),
        sa.Column("date_of_birth", sa.Date()),
        sa.Column("gender", sa.String(20)),
        sa.Column("blood_group", sa.String(5)),
        sa.Column("address", sa.Text()),
        sa.Column("parent_name", sa.String(255)),
        sa.Column("parent_email", sa.String(255)),
        sa.Column("parent_phone", sa.String(20)),
        sa.Column("emergency_contact", sa.String(20)),
        sa.Column("admission_date", sa.Date(), nullable=False, server_default=sa.text("CURRENT_DATE")),
        sa.Column("academic_year", sa.String(20)),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint(
            "gender IS NULL OR gender IN ('male', 'female', 'other')", name="ck_students_gender"
        ),
    )
    op.create_index("ix_students_class_id", "students", ["class_id"])

    op.create_table(
        "subjects",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(20), nullable=False, unique=True),
        sa.Column("description", sa.Text()),
        sa.Column("grade_levels", sa.JSON(), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_optional", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )

    op.create_table(
        "teacher_assignments",
        _id(),
        _fk("teacher_id", "teachers.id", ondelete="CASCADE"),
        _fk("class_id", "classes.id", ondelete="CASCADE"),
        _fk("subject_id", "subjects.id", nullable=True),
        sa.Column("is_class_teacher", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("academic_year", sa.String(20), nullable=False),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint(
            "teacher_id", "class_id", "subject_id", "academic_year", name="uq_teacher_assignments"
        ),
    )
    op.create_index("ix_teacher_assignments_teacher_id", "teacher_assignments", ["teacher_id"])
    op.create_index("ix_teacher_assignments_class_id", "teacher_assignments", ["class_id"])

    # ── Academics ─────────────────────────────────────────────────────────
    op.create_table(
        "timetables",
        _id(),
        _fk("class_id", "classes.id", ondelete="CASCADE"),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("period_number", sa.Integer(), nullable=False),
        _fk("subject_id", "subjects.id", nullable=True),
        _fk("teacher_id", "teachers.id", nullable=True),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("room_number", sa.String(50)),
        sa.Column("academic_year", sa.String(20), nullable=False),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint(
            "class_id", "day_of_week", "period_number", "academic_year", name="uq_timetables_slot"
        ),
        sa.CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_timetables_day"),
        sa.CheckConstraint("period_number >= 1 AND period_number <= 10", name="ck_timetables_period"),
    )
    op.create_index("ix_timetables_class_id", "timetables", ["class_id"])
    op.create_index("ix_timetables_day_of_week", "timetables", ["day_of_week"])

    op.create_table(
        "homework",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        _fk("class_id", "classes.id"),
        _fk("subject_id", "subjects.id", nullable=True),
        _fk("teacher_id", "teachers.id"),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("max_marks", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'active'")),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint("status IN ('active', 'archived', 'draft')", name="ck_homework_status"),
    )
    op.create_index("ix_homework_class_id", "homework", ["class_id"])
    op.create_index("ix_homework_teacher_id", "homework", ["teacher_id"])
    op.create_index("ix_homework_due_date", "homework", ["due_date"])

    op.create_table(
        "homework_submissions",
        _id(),
        _fk("homework_id", "homework.id", ondelete="CASCADE"),
        _fk("student_id", "students.id", ondelete="CASCADE"),
        sa.Column("submission_text", sa.Text()),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column(
            "submitted_at", sa.DateTime(timezone=True), nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("marks_obtained", sa.Integer()),
        sa.Column("feedback", sa.Text()),
        _fk("graded_by", "teachers.id", nullable=True),
        sa.Column("graded_at", sa.DateTime(timezone=True)),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'submitted'")),
        sa.UniqueConstraint("homework_id", "student_id", name="uq_homework_submissions"),
        sa.CheckConstraint(
            "status IN ('submitted', 'graded', 'late', 'returned')",
            name="ck_homework_submissions_status",
        ),
    )
    op.create_index("ix_homework_submissions_homework_id", "homework_submissions", ["homework_id"])
    op.create_index("ix_homework_submissions_student_id", "homework_submissions", ["student_id"])

    op.create_table(
        "grades",
        _id(),
        _fk("student_id", "students.id", ondelete="CASCADE"),
        _fk("subject_id", "subjects.id", nullable=True),
        sa.Column("exam_type", sa.String(50), nullable=False),
        sa.Column("exam_name", sa.String(255), nullable=False),
        sa.Column("max_marks", sa.Integer(), nullable=False),
        sa.Column("marks_obtained", sa.Numeric(5, 2), nullable=False),
        sa.Column("grade", sa.String(5)),
        sa.Column("remarks", sa.Text()),
        _fk("graded_by", "teachers.id", nullable=True),
        sa.Column("exam_date", sa.Date()),
        sa.Column("academic_year", sa.String(20)),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_grades_student_id", "grades", ["student_id"])
    op.create_index("ix_grades_subject_id", "grades", ["subject_id"])
    op.create_index("ix_grades_exam_type", "grades", ["exam_type"])

    # ── Attendance ────────────────────────────────────────────────────────
    op.create_table(
        "attendance",
        _id(),
        _fk("student_id", "students.id", ondelete="CASCADE"),
        _fk("class_id", "classes.id"),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        _fk("marked_by", "users.id", nullable=True),
        sa.Column("remarks", sa.Text()),
        _created_at(),
        sa.UniqueConstraint("student_id", "date", name="uq_attendance_student_date"),
        sa.CheckConstraint(
            "status IN ('present', 'absent', 'late', 'excused')", name="ck_attendance_status"
        ),
    )
    op.create_index("ix_attendance_student_id", "attendance", ["student_id"])
    op.create_index("ix_attendance_class_id", "attendance", ["class_id"])
    op.create_index("ix_attendance_date", "attendance", ["date"])

    op.create_table(
        "attendance_sessions",
        _id(),
        _fk("class_id", "classes.id", ondelete="CASCADE"),
        _fk("teacher_id", "teachers.id"),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("photo_url", sa.Text()),
        _created_at(),
        sa.UniqueConstraint("class_id", "date", name="uq_attendance_sessions_class_date"),
    )
    op.create_index("ix_attendance_sessions_date", "attendance_sessions", ["date"])

    # ── Fees & Payments ───────────────────────────────────────────────────
    op.create_table(
        "fee_structures",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("applicable_grades", sa.JSON(), nullable=False),
        sa.Column("academic_year", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_fee_structures_academic_year", "fee_structures", ["academic_year"])

    op.create_table(
        "fee_items",
        _id(),
        _fk("fee_structure_id", "fee_structures.id", ondelete="CASCADE"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("frequency", sa.String(20), nullable=False, server_default=sa.text("'monthly'")),
        sa.Column("is_optional", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("due_day", sa.Integer(), nullable=False, server_default=sa.text("10")),
        _created_at(),
        sa.CheckConstraint(
            "frequency IN ('one_time', 'monthly', 'quarterly', 'yearly')",
            name="ck_fee_items_frequency",
        ),
    )
    op.create_index("ix_fee_items_fee_structure_id", "fee_items", ["fee_structure_id"])

    op.create_table(
        "student_fees",
        _id(),
        _fk("student_id", "students.id", ondelete="CASCADE"),
        _fk("fee_item_id", "fee_items.id"),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("paid_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("waiver_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("waiver_reason", sa.Text()),
        sa.Column("academic_year", sa.String(20), nullable=False),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint(
            "status IN ('pending', 'paid', 'partial', 'overdue', 'waived')",
            name="ck_student_fees_status",
        ),
    )
    op.create_index("ix_student_fees_student_id", "student_fees", ["student_id"])
    op.create_index("ix_student_fees_due_date", "student_fees", ["due_date"])
    op.create_index("ix_student_fees_status", "student_fees", ["status"])

    op.create_table(
        "payments",
        _id(),
        _fk("student_id", "students.id"),
        _fk("student_fee_id", "student_fees.id", nullable=True),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_method", sa.String(50), nullable=False),
        sa.Column("transaction_id", sa.String(255)),
        sa.Column("receipt_number", sa.String(100), nullable=False, unique=True),
        sa.Column(
            "payment_date", sa.DateTime(timezone=True), nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'completed'")),
        sa.Column("notes", sa.Text()),
        _fk("collected_by", "users.id", nullable=True),
        _created_at(),
        sa.CheckConstraint(
            "payment_method IN ('cash', 'card', 'upi', 'bank_transfer', 'cheque', 'online')",
            name="ck_payments_method",
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'completed', 'failed', 'refunded')", name="ck_payments_status"
        ),
    )
    op.create_index("ix_payments_student_id", "payments", ["student_id"])
    op.create_index("ix_payments_payment_date", "payments", ["payment_date"])

    # ── Communication ─────────────────────────────────────────────────────
    op.create_table(
        "announcements",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _fk("author_id", "users.id"),
        sa.Column("target_type", sa.String(20), nullable=False),
        sa.Column("target_id", sa.Uuid()),
        sa.Column("priority", sa.String(20), nullable=False, server_default=sa.text("'normal'")),
        sa.Column("is_pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("expires_at", sa.DateTime(timezone=True)),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint(
            "target_type IN ('all', 'class', 'grade', 'teachers', 'parents')",
            name="ck_announcements_target_type",
        ),
        sa.CheckConstraint(
            "priority IN ('low', 'normal', 'high', 'urgent')", name="ck_announcements_priority"
        ),
    )
    op.create_index("ix_announcements_author_id", "announcements", ["author_id"])
    op.create_index("ix_announcements_target_type", "announcements", ["target_type"])
    op.create_index("idx_announcements_created_at", "announcements", ["created_at"])

    op.create_table(
        "messages",
        _id(),
        _fk("sender_id", "users.id"),
        _fk("recipient_id", "users.id"),
        sa.Column("subject", sa.String(255)),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True)),
        _fk("parent_id", "messages.id", nullable=True),
        _created_at(),
    )
    op.create_index("ix_messages_sender_id", "messages", ["sender_id"])
    op.create_index("ix_messages_recipient_id", "messages", ["recipient_id"])
    op.create_index("ix_messages_is_read", "messages", ["is_read"])

    # ── Audit & Settings ──────────────────────────────────────────────────
    op.create_table(
        "audit_logs",
        _id(),
        _fk("user_id", "users.id", nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=False),
        sa.Column("entity_id", sa.Uuid()),
        sa.Column("old_values", sa.JSON()),
        sa.Column("new_values", sa.JSON()),
        sa.Column("ip_address", sa.String(50)),
        sa.Column("user_agent", sa.Text()),
        _created_at(),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("idx_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])
    op.create_index("idx_audit_logs_created_at", "audit_logs", ["created_at"])

    op.create_table(
        "settings",
        _id(),
        sa.Column("key", sa.String(255), nullable=False, unique=True),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("category", sa.String(100)),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_settings_category", "settings", ["category"])


def downgrade() -> None:
    """Drops every table (and its indexes) in reverse dependency order."""
    for table in (
        "settings",
        "audit_logs",
        "messages",
        "announcements",
        "payments",
        "student_fees",
        "fee_items",
        "fee_structures",
        "attendance_sessions",
        "attendance",
        "grades",
        "homework_submissions",
        "homework",
        "timetables",
        "teacher_assignments",
        "subjects",
        "students",
        "classes",
        "teachers",
        "password_resets",
        "users",
    ):
        op.drop_table(table)
