"""
Schools24 Backend — Attendance Marking Tests
==============================================

What:  TeacherService.mark_attendance and POST /teacher/attendance.
How:   Real SQLite session; the photo sink is a FileService rooted in
       tmp_path. Atomicity is checked by failing the second upsert.

Test Strategy:
    ✅ Batch written, invalid student ids skipped, re-marking overwrites
    ✅ Photo saved and linked through attendance_sessions
    ✅ Failure mid-batch leaves no rows and no photo behind
    ✅ Bad date / class id / JSON rejected before anything is written
"""

import json
import uuid
from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest
from sqlalchemy import select

from app.exceptions import NotFoundError, ValidationError
from app.models.attendance import Attendance, AttendanceSession
from app.models.user import User
from app.repositories.teacher_repository import teacher_repository
from app.services.file_service import FileService
from app.services.teacher_service import TeacherService, parse_attendance_entries
from conftest import auth_headers, make_class, make_student, make_teacher, make_user

API = "/api/v1"


def _stored_files(root: str):
    return [p for p in Path(root).rglob("*") if p.is_file()]


class TestParseAttendanceEntries:

    def test_valid_array(self):
        entries = parse_attendance_entries(
            '[{"student_id": "abc", "status": "late", "remarks": "bus"}]'
        )
        assert entries[0].status == "late"
        assert entries[0].remarks == "bus"

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            '{"student_id": "abc", "status": "present"}',
            '[{"student_id": "abc", "status": "sleeping"}]',
            '[{"status": "present"}]',
        ],
    )
    def test_invalid_payloads(self, raw):
        with pytest.raises(ValidationError, match="invalid attendance json format"):
            parse_attendance_entries(raw)


class TestMarkAttendanceService:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.storage = temp_storage
        self.service = TeacherService(files=FileService(upload_dir=temp_storage))

    async def _seed(self, db):
        teacher = await make_teacher(db)
        school_class = await make_class(db, class_teacher_id=teacher.id)
        first = await make_student(db, school_class.id, "Asha", "1")
        second = await make_student(db, school_class.id, "Bilal", "2")
        return teacher.user_id, school_class.id, first.id, second.id

    @pytest.mark.asyncio
    async def test_marks_batch_and_skips_invalid_ids(self, db_session):
        user_id, class_id, first, second = await self._seed(db_session)
        payload = json.dumps([
            {"student_id": str(first), "status": "present"},
            {"student_id": "not-a-uuid", "status": "absent"},
            {"student_id": str(second), "status": "late", "remarks": "bus delayed"},
        ])

        result = await self.service.mark_attendance(
            db_session, user_id, str(class_id), "2025-06-10", payload
        )

        assert result.message == "Attendance marked successfully"
        assert result.photo_url is None
        rows = (await db_session.execute(select(Attendance))).scalars().all()
        assert {(r.student_id, r.status) for r in rows} == {(first, "present"), (second, "late")}
        assert all(r.marked_by == user_id for r in rows)
        assert all(r.date == date(2025, 6, 10) for r in rows)

    @pytest.mark.asyncio
    async def test_remarking_overwrites(self, db_session):
        user_id, class_id, first, _ = await self._seed(db_session)
        await self.service.mark_attendance(
            db_session, user_id, str(class_id), "2025-06-10",
            json.dumps([{"student_id": str(first), "status": "absent"}]),
        )
        await self.service.mark_attendance(
            db_session, user_id, str(class_id), "2025-06-10",
            json.dumps([{"student_id": str(first), "status": "excused", "remarks": "medical"}]),
        )

        rows = (await db_session.execute(select(Attendance))).scalars().all()
        assert len(rows) == 1
        assert rows[0].status == "excused"
        assert rows[0].remarks == "medical"

    @pytest.mark.asyncio
    async def test_photo_saved_and_session_recorded(self, db_session, sample_image_bytes):
        user_id, class_id, first, _ = await self._seed(db_session)

        result = await self.service.mark_attendance(
            db_session, user_id, str(class_id), "2025-06-10",
            json.dumps([{"student_id": str(first), "status": "present"}]),
            photo_filename="class.JPG",
            photo_content=sample_image_bytes,
        )

        assert result.photo_url.startswith("/uploads/attendance/2025-06/")
        assert result.photo_url.endswith(".jpg")
        assert len(_stored_files(self.storage)) == 1

        session_row = (await db_session.execute(select(AttendanceSession))).scalars().one()
        assert session_row.class_id == class_id
        assert session_row.photo_url == result.photo_url

    @pytest.mark.asyncio
    async def test_failure_rolls_back_and_removes_photo(self, db_session, sample_image_bytes):
        user_id, class_id, first, second = await self._seed(db_session)
        real_upsert = teacher_repository.upsert_attendance
        calls = []

        async def flaky_upsert(*args, **kwargs):
            calls.append(args)
            if len(calls) == 2:
                raise RuntimeError("connection lost")
            return await real_upsert(*args, **kwargs)

        payload = json.dumps([
            {"student_id": str(first), "status": "present"},
            {"student_id": str(second), "status": "present"},
        ])
        with patch.object(teacher_repository, "upsert_attendance", side_effect=flaky_upsert):
            with pytest.raises(RuntimeError, match="connection lost"):
                await self.service.mark_attendance(
                    db_session, user_id, str(class_id), "2025-06-10", payload,
                    photo_filename="class.png",
                    photo_content=sample_image_bytes,
                )

        assert (await db_session.execute(select(Attendance))).scalars().all() == []
        assert (await db_session.execute(select(AttendanceSession))).scalars().all() == []
        assert _stored_files(self.storage) == []

    @pytest.mark.asyncio
    async def test_bad_photo_rejected_before_any_write(self, db_session):
        user_id, class_id, first, _ = await self._seed(db_session)

        with pytest.raises(ValidationError, match="not supported"):
            await self.service.mark_attendance(
                db_session, user_id, str(class_id), "2025-06-10",
                json.dumps([{"student_id": str(first), "status": "present"}]),
                photo_filename="notes.pdf",
                photo_content=b"%PDF-1.4",
            )
        assert (await db_session.execute(select(Attendance))).scalars().all() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "class_id, day, message",
        [
            ("not-a-uuid", "2025-06-10", "invalid class_id"),
            (None, "10/06/2025", "invalid date format, expected YYYY-MM-DD"),
            (None, "2025-02-30", "invalid date format, expected YYYY-MM-DD"),
        ],
    )
    async def test_bad_form_fields(self, db_session, class_id, day, message):
        user_id, seeded_class, _, _ = await self._seed(db_session)

        with pytest.raises(ValidationError) as exc_info:
            await self.service.mark_attendance(
                db_session, user_id, class_id or str(seeded_class), day, "[]"
            )
        assert exc_info.value.message == message

    @pytest.mark.asyncio
    async def test_user_without_teacher_profile(self, db_session):
        admin = await make_user(db_session, "admin")
        with pytest.raises(NotFoundError, match="teacher not found"):
            await self.service.mark_attendance(
                db_session, admin.id, str(uuid.uuid4()), "2025-06-10", "[]"
            )


class TestMarkAttendanceRoute:

    @pytest.mark.asyncio
    async def test_multipart_with_photo(self, app, client, db_session, sample_image_bytes):
        teacher = await make_teacher(db_session)
        school_class = await make_class(db_session)
        student = await make_student(db_session, school_class.id)
        teacher_user = await db_session.get(User, teacher.user_id)

        response = await client.post(
            f"{API}/teacher/attendance",
            headers=auth_headers(app, teacher_user),
            data={
                "class_id": str(school_class.id),
                "date": "2025-06-10",
                "attendance": json.dumps([{"student_id": str(student.id), "status": "present"}]),
            },
            files={"photo": ("class.jpg", sample_image_bytes, "image/jpeg")},
        )

        assert response.status_code == 200
        photo_url = response.json()["photo_url"]
        assert photo_url.startswith("/uploads/attendance/2025-06/")

        # Served by the static mount
        served = await client.get(photo_url)
        assert served.status_code == 200
        assert served.content == sample_image_bytes

    @pytest.mark.asyncio
    async def test_invalid_json_is_400(self, app, client, db_session):
        teacher = await make_teacher(db_session)
        school_class = await make_class(db_session)
        teacher_user = await db_session.get(User, teacher.user_id)

        response = await client.post(
            f"{API}/teacher/attendance",
            headers=auth_headers(app, teacher_user),
            data={"class_id": str(school_class.id), "date": "2025-06-10", "attendance": "{oops"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["details"] == {"field": "attendance"}

    @pytest.mark.asyncio
    async def test_missing_form_field_is_422(self, app, client, db_session):
        teacher = await make_teacher(db_session)
        teacher_user = await db_session.get(User, teacher.user_id)

        response = await client.post(
            f"{API}/teacher/attendance",
            headers=auth_headers(app, teacher_user),
            data={"date": "2025-06-10", "attendance": "[]"},
        )
        assert response.status_code == 422
