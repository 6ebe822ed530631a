"""
ORM models. Importing this package registers every table on Base.metadata.
"""

from app.models.academic import Grade, Homework, HomeworkSubmission, Timetable
from app.models.attendance import Attendance, AttendanceSession
from app.models.audit import AuditLog, SystemSetting
from app.models.communication import Announcement, Message
from app.models.finance import FeeItem, FeeStructure, Payment, StudentFee
from app.models.school import SchoolClass, Student, Subject, Teacher, TeacherAssignment
from app.models.user import PasswordReset, User

__all__ = [
    "Announcement",
    "Attendance",
    "AttendanceSession",
    "AuditLog",
    "FeeItem",
    "FeeStructure",
    "Grade",
    "Homework",
    "HomeworkSubmission",
    "Message",
    "PasswordReset",
    "Payment",
    "SchoolClass",
    "Student",
    "StudentFee",
    "Subject",
    "SystemSetting",
    "Teacher",
    "TeacherAssignment",
    "Timetable",
    "User",
]
