"""
Schools24 Backend — Admin Schemas
===================================

What:  User management, student/teacher onboarding, fee structures,
       payments, audit log entries and the admin dashboard.
Who:   routes/admin.py only.

Money:
    Request amounts are Decimal (exact); response amounts are float so the
    JSON carries numbers rather than pydantic's Decimal-as-string encoding.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.finance import FREQUENCIES, PAYMENT_METHODS


# ══════════════════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════════════════


class UserListItem(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str
    role: str
    phone: Optional[str] = None
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None


class UserListResponse(BaseModel):
    users: List[UserListItem]
    total: int
    page: int
    page_size: int


class CreateUserRequest(BaseModel):
    """
    Role is checked by AdminService (400 validation_error) rather than here,
    so an unknown role gets the same error body as other business rules.
    """
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=2)
    role: str
    phone: Optional[str] = None


class UpdateUserRequest(BaseModel):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(default=None, min_length=2)
    role: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None


class CreateStudentRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=2)
    phone: Optional[str] = None
    class_id: Optional[uuid.UUID] = None
    roll_number: Optional[str] = None
    admission_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    parent_name: Optional[str] = None
    parent_email: Optional[str] = None
    parent_phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("gender")
    @classmethod
    def validate_gender(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        lower = v.lower()
        if lower not in {"male", "female", "other"}:
            raise ValueError("gender must be one of: male, female, other")
        return lower


class CreateTeacherRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=2)
    phone: Optional[str] = None
    employee_id: str = Field(min_length=1, max_length=50)
    department: Optional[str] = None
    designation: Optional[str] = None
    qualifications: List[str] = Field(default_factory=list)
    subjects_taught: List[str] = Field(default_factory=list)
    experience_years: int = Field(default=0, ge=0)


# ══════════════════════════════════════════════════════════════════════════
# Fees & Payments
# ══════════════════════════════════════════════════════════════════════════


class FeeItemInput(BaseModel):
    """Blank frequency / zero due_day fall back to monthly / 10."""
    name: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    frequency: str = "monthly"
    is_optional: bool = False
    due_day: int = Field(default=10, ge=0, le=31)

    @field_validator("frequency")
    @classmethod
    def validate_frequency(cls, v: str) -> str:
        if not v:
            return "monthly"
        if v not in FREQUENCIES:
            raise ValueError(f"frequency must be one of: {', '.join(FREQUENCIES)}")
        return v


class CreateFeeStructureRequest(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    applicable_grades: List[int] = Field(default_factory=list)
    academic_year: Optional[str] = None
    items: List[FeeItemInput] = Field(default_factory=list)


class FeeItemResponse(BaseModel):
    id: uuid.UUID
    fee_structure_id: uuid.UUID
    name: str
    amount: float
    frequency: str
    is_optional: bool
    due_day: int

    model_config = {"from_attributes": True}


class FeeStructureResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    applicable_grades: List[int] = Field(default_factory=list)
    academic_year: str
    is_active: bool
    created_at: datetime
    items: List[FeeItemResponse] = Field(default_factory=list)


class FeeStructureListResponse(BaseModel):
    fee_structures: List[FeeStructureResponse]


class RecordPaymentRequest(BaseModel):
    student_id: uuid.UUID
    student_fee_id: Optional[uuid.UUID] = None
    amount: Decimal = Field(gt=0)
    payment_method: str
    transaction_id: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("payment_method")
    @classmethod
    def validate_payment_method(cls, v: str) -> str:
        if v not in PAYMENT_METHODS:
            raise ValueError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
        return v


class UserCreatedResponse(BaseModel):
    message: str
    user_id: str


class FeeStructureCreatedResponse(BaseModel):
    message: str
    structure_id: str


class PaymentCreatedResponse(BaseModel):
    message: str
    payment_id: str
    receipt_number: str


class PaymentResponse(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    student_fee_id: Optional[uuid.UUID] = None
    amount: float
    payment_method: str
    transaction_id: Optional[str] = None
    receipt_number: str
    payment_date: datetime
    status: str
    notes: Optional[str] = None
    collected_by: Optional[uuid.UUID] = None
    student_name: str = ""
    collector_name: str = ""


class PaymentListResponse(BaseModel):
    payments: List[PaymentResponse]


# ══════════════════════════════════════════════════════════════════════════
# Audit & Dashboard
# ══════════════════════════════════════════════════════════════════════════


class AuditLogResponse(BaseModel):
    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    action: str
    entity_type: str
    entity_id: Optional[uuid.UUID] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    user_name: str = ""


class AuditLogListResponse(BaseModel):
    audit_logs: List[AuditLogResponse]


class FeeStats(BaseModel):
    """collection_rate_percent = total_collected / total_due × 100 (0 when nothing is due)."""
    total_due: float = 0.0
    total_collected: float = 0.0
    total_pending: float = 0.0
    total_overdue: float = 0.0
    collection_rate_percent: float = 0.0


class AttendanceOverview(BaseModel):
    today_present: int = 0
    today_absent: int = 0
    today_late: int = 0
    week_average_percent: float = 0.0
    month_average_percent: float = 0.0


class AdminDashboard(BaseModel):
    total_users: int
    total_students: int
    total_teachers: int
    total_classes: int
    fee_collection: FeeStats
    # Reserved for the attendance overview; not computed yet
    attendance_stats: Optional[AttendanceOverview] = None
    recent_activity: List[AuditLogResponse] = Field(default_factory=list)
