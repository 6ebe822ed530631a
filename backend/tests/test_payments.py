"""
Schools24 Backend — Fees & Payments Tests
===========================================

What:  Fee status transitions, receipt numbers, payment recording with its
       audit row, fee structures and the dashboard's fee statistics.
"""

import re
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.exceptions import NotFoundError
from app.models.audit import AuditLog
from app.models.finance import Payment, StudentFee
from app.repositories.admin_repository import compute_collection_rate
from app.schemas.admin import RecordPaymentRequest
from app.services.admin_service import (
    AuditContext,
    admin_service,
    generate_receipt_number,
    next_fee_status,
)
from conftest import auth_headers, make_student, make_student_fee, make_user

API = "/api/v1"


class TestNextFeeStatus:

    @pytest.mark.parametrize(
        "status, paid, payment, amount, waiver, expected",
        [
            ("pending", "0", "1000", "1000", "0", "paid"),
            ("pending", "0", "400", "1000", "0", "partial"),
            ("partial", "400", "600", "1000", "0", "paid"),
            ("pending", "0", "800", "1000", "200", "paid"),
            ("overdue", "0", "100", "1000", "0", "partial"),
            ("pending", "0", "1200", "1000", "0", "paid"),
        ],
    )
    def test_transitions(self, status, paid, payment, amount, waiver, expected):
        assert next_fee_status(
            status, Decimal(paid), Decimal(payment), Decimal(amount), Decimal(waiver)
        ) == expected

    def test_nothing_paid_keeps_status(self):
        # Unreachable through the API (amount > 0) but the rule is total
        assert next_fee_status("overdue", Decimal("0"), Decimal("0"), Decimal("10"), Decimal("0")) == "overdue"


class TestReceiptNumber:

    def test_format(self):
        receipt = generate_receipt_number(datetime(2025, 6, 10, 9, 30, tzinfo=timezone.utc))
        assert re.fullmatch(r"RCP-20250610-\d{1,5}", receipt)


class TestCollectionRate:

    def test_rate(self):
        assert compute_collection_rate(Decimal("250"), Decimal("1000")) == 25.0

    def test_nothing_due(self):
        assert compute_collection_rate(Decimal("0"), Decimal("0")) == 0.0


class TestRecordPayment:

    def setup_method(self):
        self.ctx = AuditContext(user_id=None, ip_address="10.0.0.9", user_agent="pytest")

    @pytest.mark.asyncio
    async def test_partial_then_paid(self, db_session):
        student = await make_student(db_session)
        fee = await make_student_fee(db_session, student.id, amount="1000.00")
        fee_id = fee.id

        first = await admin_service.record_payment(
            db_session, self.ctx,
            RecordPaymentRequest(student_id=student.id, student_fee_id=fee_id, amount="400", payment_method="cash"),
        )
        fee = await db_session.get(StudentFee, fee_id)
        assert fee.status == "partial"
        assert fee.paid_amount == Decimal("400")

        await admin_service.record_payment(
            db_session, self.ctx,
            RecordPaymentRequest(student_id=student.id, student_fee_id=fee_id, amount="600", payment_method="upi"),
        )
        fee = await db_session.get(StudentFee, fee_id)
        assert fee.status == "paid"
        assert fee.paid_amount == Decimal("1000")

        assert first.receipt_number.startswith("RCP-")
        assert first.message == "Payment recorded successfully"

    @pytest.mark.asyncio
    async def test_waiver_counts_towards_paid(self, db_session):
        student = await make_student(db_session)
        fee = await make_student_fee(db_session, student.id, amount="1000.00", waiver="250")

        await admin_service.record_payment(
            db_session, self.ctx,
            RecordPaymentRequest(student_id=student.id, student_fee_id=fee.id, amount="750", payment_method="card"),
        )
        assert (await db_session.get(StudentFee, fee.id)).status == "paid"

    @pytest.mark.asyncio
    async def test_payment_without_fee_line(self, db_session):
        student = await make_student(db_session)

        created = await admin_service.record_payment(
            db_session, self.ctx,
            RecordPaymentRequest(student_id=student.id, amount="150.50", payment_method="cheque"),
        )

        payment = await db_session.get(Payment, uuid.UUID(created.payment_id))
        assert payment.student_fee_id is None
        assert payment.status == "completed"
        assert payment.amount == Decimal("150.50")

    @pytest.mark.asyncio
    async def test_unknown_student(self, db_session):
        with pytest.raises(NotFoundError, match="student"):
            await admin_service.record_payment(
                db_session, self.ctx,
                RecordPaymentRequest(student_id=uuid.uuid4(), amount="10", payment_method="cash"),
            )

    @pytest.mark.asyncio
    async def test_unknown_fee_line_writes_nothing(self, db_session):
        student = await make_student(db_session)

        with pytest.raises(NotFoundError, match="student fee"):
            await admin_service.record_payment(
                db_session, self.ctx,
                RecordPaymentRequest(
                    student_id=student.id, student_fee_id=uuid.uuid4(), amount="10", payment_method="cash"
                ),
            )
        assert (await db_session.execute(select(Payment))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_audit_row_written(self, db_session):
        admin = await make_user(db_session, "admin")
        student = await make_student(db_session)
        ctx = AuditContext(user_id=admin.id, ip_address="10.0.0.9", user_agent="pytest")

        created = await admin_service.record_payment(
            db_session, ctx,
            RecordPaymentRequest(student_id=student.id, amount="99.99", payment_method="online"),
        )

        log = (await db_session.execute(select(AuditLog))).scalars().one()
        assert log.action == "create"
        assert log.entity_type == "payment"
        assert log.entity_id == uuid.UUID(created.payment_id)
        assert log.user_id == admin.id
        assert log.ip_address == "10.0.0.9"
        assert log.new_values["amount"] == "99.99"
        assert log.new_values["receipt_number"] == created.receipt_number


class TestPaymentRoutes:

    @pytest.mark.asyncio
    async def test_record_and_list(self, app, client, db_session):
        admin = await make_user(db_session, "admin", full_name="Office Admin")
        student = await make_student(db_session, full_name="Kiran Das")
        fee = await make_student_fee(db_session, student.id, amount="500.00")
        headers = auth_headers(app, admin)

        created = await client.post(
            f"{API}/admin/payments",
            headers=headers,
            json={
                "student_id": str(student.id),
                "student_fee_id": str(fee.id),
                "amount": 200,
                "payment_method": "upi",
                "transaction_id": "UPI-123",
            },
        )
        assert created.status_code == 201
        assert created.json()["receipt_number"].startswith("RCP-")

        listed = await client.get(f"{API}/admin/payments", headers=headers)
        payment = listed.json()["payments"][0]
        assert payment["id"] == created.json()["payment_id"]
        assert payment["amount"] == 200.0
        assert payment["student_name"] == "Kiran Das"
        assert payment["collector_name"] == "Office Admin"

        logs = (await client.get(f"{API}/admin/audit-logs", headers=headers)).json()["audit_logs"]
        assert logs[0]["entity_type"] == "payment"
        assert logs[0]["user_name"] == "Office Admin"

    @pytest.mark.asyncio
    async def test_unknown_payment_method_rejected(self, app, client, db_session):
        admin = await make_user(db_session, "admin")
        student = await make_student(db_session)

        response = await client.post(
            f"{API}/admin/payments",
            headers=auth_headers(app, admin),
            json={"student_id": str(student.id), "amount": 10, "payment_method": "barter"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_fee_structure_round_trip(self, app, client, db_session):
        admin = await make_user(db_session, "admin")
        headers = auth_headers(app, admin)

        created = await client.post(
            f"{API}/admin/fees/structures",
            headers=headers,
            json={
                "name": "Grade 8 fees",
                "applicable_grades": [8],
                "academic_year": "2025-2026",
                "items": [
                    {"name": "Tuition", "amount": "2500.00"},
                    {"name": "Transport", "amount": 800, "frequency": "quarterly", "is_optional": True, "due_day": 0},
                ],
            },
        )
        assert created.status_code == 201
        assert created.json()["message"] == "Fee structure created successfully"

        listed = await client.get(
            f"{API}/admin/fees/structures", headers=headers, params={"academic_year": "2025-2026"}
        )
        structures = listed.json()["fee_structures"]
        assert len(structures) == 1
        assert structures[0]["id"] == created.json()["structure_id"]
        items = {i["name"]: i for i in structures[0]["items"]}
        assert items["Tuition"]["amount"] == 2500.0
        assert items["Tuition"]["frequency"] == "monthly"
        assert items["Transport"]["due_day"] == 10

    @pytest.mark.asyncio
    async def test_dashboard_fee_stats(self, app, client, db_session):
        admin = await make_user(db_session, "admin")
        student = await make_student(db_session)
        await make_student_fee(db_session, student.id, amount="1000.00", paid="250", status="partial")
        await make_student_fee(db_session, student.id, amount="500.00", status="pending")
        await make_student_fee(db_session, student.id, amount="300.00", status="overdue")

        response = await client.get(f"{API}/admin/dashboard", headers=auth_headers(app, admin))

        assert response.status_code == 200
        stats = response.json()["fee_collection"]
        assert stats["total_due"] == 1800.0
        assert stats["total_collected"] == 250.0
        assert stats["total_pending"] == 500.0
        assert stats["total_overdue"] == 300.0
        assert stats["collection_rate_percent"] == pytest.approx(13.888, rel=1e-3)
