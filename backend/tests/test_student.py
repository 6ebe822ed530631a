"""
Schools24 Backend — Student View Tests
========================================

What:  Student dashboard, profile and attendance history with stats.
How:   Attendance rows are inserted directly; the service is called with a
       fixed `today` where the current month matters.
"""

from datetime import date, timedelta

import pytest

from app.exceptions import NotFoundError, ValidationError
from app.models.attendance import Attendance
from app.models.user import User
from app.repositories.student_repository import compute_attendance_percent
from app.services.student_service import student_service
from conftest import auth_headers, make_class, make_student, make_user

API = "/api/v1"


async def _attend(db, student, day: date, status: str) -> None:
    db.add(Attendance(student_id=student.id, class_id=student.class_id, date=day, status=status))
    await db.commit()


class TestAttendancePercent:

    def test_no_days(self):
        assert compute_attendance_percent(0, 0) == 0.0

    def test_only_present_counts(self):
        assert compute_attendance_percent(3, 4) == 75.0


class TestStudentService:

    @pytest.mark.asyncio
    async def test_dashboard_stats_cover_current_month(self, db_session):
        school_class = await make_class(db_session)
        student = await make_student(db_session, school_class.id)
        await _attend(db_session, student, date(2025, 6, 2), "present")
        await _attend(db_session, student, date(2025, 6, 3), "late")
        await _attend(db_session, student, date(2025, 6, 4), "absent")
        await _attend(db_session, student, date(2025, 5, 30), "absent")

        dashboard = await student_service.get_dashboard(db_session, student.user_id, today=date(2025, 6, 15))

        stats = dashboard.attendance_stats
        assert (stats.total_days, stats.present_days, stats.late_days, stats.absent_days) == (3, 1, 1, 1)
        assert stats.attendance_percent == pytest.approx(33.333, rel=1e-3)
        # Recent rows are not limited to the month
        assert len(dashboard.recent_attendance) == 4
        assert dashboard.recent_attendance[0].date == date(2025, 6, 4)
        assert dashboard.upcoming_quizzes == [] and dashboard.pending_homework == []

    @pytest.mark.asyncio
    async def test_recent_attendance_capped_at_seven(self, db_session):
        school_class = await make_class(db_session)
        student = await make_student(db_session, school_class.id)
        for offset in range(10):
            await _attend(db_session, student, date(2025, 6, 1) + timedelta(days=offset), "present")

        dashboard = await student_service.get_dashboard(db_session, student.user_id, today=date(2025, 6, 15))
        assert len(dashboard.recent_attendance) == 7

    @pytest.mark.asyncio
    async def test_attendance_history_capped_at_thirty(self, db_session):
        school_class = await make_class(db_session)
        student = await make_student(db_session, school_class.id)
        for offset in range(40):
            await _attend(db_session, student, date(2025, 4, 1) + timedelta(days=offset), "present")

        result = await student_service.get_attendance(db_session, student.user_id, "2025-04-01", "2025-06-30")

        assert len(result.attendance) == 30
        assert result.attendance[0].date == date(2025, 5, 10)
        assert result.stats.total_days == 40

    @pytest.mark.asyncio
    async def test_missing_bound_means_current_month(self, db_session):
        school_class = await make_class(db_session)
        student = await make_student(db_session, school_class.id)
        await _attend(db_session, student, date(2025, 6, 2), "present")
        await _attend(db_session, student, date(2025, 7, 2), "present")

        result = await student_service.get_attendance(
            db_session, student.user_id, start_date="2025-01-01", today=date(2025, 6, 20)
        )
        assert [r.date for r in result.attendance] == [date(2025, 6, 2)]

    @pytest.mark.asyncio
    async def test_reversed_range_rejected(self, db_session):
        student = await make_student(db_session)
        with pytest.raises(ValidationError, match="end_date must not be before start_date"):
            await student_service.get_attendance(db_session, student.user_id, "2025-06-10", "2025-06-01")

    @pytest.mark.asyncio
    async def test_user_without_student_profile(self, db_session):
        teacher = await make_user(db_session, "teacher")
        with pytest.raises(NotFoundError, match="student not found"):
            await student_service.get_profile(db_session, teacher.id)


class TestStudentRoutes:

    @pytest.mark.asyncio
    async def test_dashboard_uses_class_key(self, app, client, db_session):
        school_class = await make_class(db_session, name="7-C", grade=7, section="C")
        student = await make_student(db_session, school_class.id, full_name="Tara Singh")
        user = await db_session.get(User, student.user_id)

        response = await client.get(f"{API}/student/dashboard", headers=auth_headers(app, user))

        assert response.status_code == 200
        body = response.json()
        assert body["class"]["name"] == "7-C"
        assert "class_" not in body
        assert body["student"]["full_name"] == "Tara Singh"
        assert body["student"]["class_name"] == "7-C"

    @pytest.mark.asyncio
    async def test_profile(self, app, client, db_session):
        student = await make_student(db_session, roll_number="12")
        user = await db_session.get(User, student.user_id)

        body = (await client.get(f"{API}/student/profile", headers=auth_headers(app, user))).json()["student"]

        assert body["id"] == str(student.id)
        assert body["roll_number"] == "12"
        assert body["email"] == user.email
        assert body["class_name"] == ""

    @pytest.mark.asyncio
    async def test_attendance_range(self, app, client, db_session):
        school_class = await make_class(db_session)
        student = await make_student(db_session, school_class.id)
        await _attend(db_session, student, date(2025, 5, 5), "present")
        await _attend(db_session, student, date(2025, 5, 6), "absent")
        await _attend(db_session, student, date(2025, 6, 1), "present")
        user = await db_session.get(User, student.user_id)

        response = await client.get(
            f"{API}/student/attendance",
            headers=auth_headers(app, user),
            params={"start_date": "2025-05-01", "end_date": "2025-05-31"},
        )

        body = response.json()
        assert [r["date"] for r in body["attendance"]] == ["2025-05-06", "2025-05-05"]
        assert body["stats"]["total_days"] == 2
        assert body["stats"]["attendance_percent"] == 50.0

    @pytest.mark.asyncio
    async def test_bad_date_is_400(self, app, client, db_session):
        student = await make_student(db_session)
        user = await db_session.get(User, student.user_id)

        response = await client.get(
            f"{API}/student/attendance",
            headers=auth_headers(app, user),
            params={"start_date": "05/01/2025", "end_date": "2025-05-31"},
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "start_date"}

    @pytest.mark.asyncio
    async def test_teacher_has_no_student_dashboard(self, app, client, db_session):
        teacher = await make_user(db_session, "teacher")
        response = await client.get(f"{API}/student/dashboard", headers=auth_headers(app, teacher))
        assert response.status_code == 404
