"""
Integration tests for /api/v1/enrollments
"""
import uuid

from sqlalchemy import select

from app.core.dependencies import get_optional_asaas_client
from app.main import app
from app.modules.enrollments.models import Enrollment, STATUS_ACTIVE, STATUS_PENDING
from app.modules.payments.models import Payment

URL = "/api/v1/enrollments"


class TestCashEnrollment:
    async def test_creates_active_enrollment_and_fee_payment(self, api, db, factories, admin_headers):
        student = await factories.student(db)
        turma = await factories.dance_class(db)

        r = await api.post(URL, json={"student_id": str(student.id), "class_id": str(turma.id)}, headers=admin_headers)

        assert r.status_code == 201
        body = r.json()
        assert body["ativa"] is True
        assert body["status"] == "active"
        assert body["valor_pago_matricula"] == 50.0
        pay = (await db.execute(select(Payment))).scalar_one()
        assert pay.status == "pago"
        assert pay.payment_method == "dinheiro"
        assert str(pay.enrollment_id) == body["id"]

    async def test_duplicate_current_enrollment_is_409(self, api, db, factories, admin_headers):
        student = await factories.student(db)
        turma = await factories.dance_class(db)
        db.add(Enrollment(student_id=student.id, class_id=turma.id, ativa=False, status=STATUS_PENDING))
        await db.commit()

        r = await api.post(URL, json={"student_id": str(student.id), "class_id": str(turma.id)}, headers=admin_headers)

        assert r.status_code == 409

    async def test_inactive_class_is_rejected(self, api, db, factories, admin_headers):
        student = await factories.student(db)
        turma = await factories.dance_class(db, ativa=False)
        r = await api.post(URL, json={"student_id": str(student.id), "class_id": str(turma.id)}, headers=admin_headers)
        assert r.status_code == 400


class TestEnrollmentLifecycle:
    async def _active(self, db, factories, **kw):
        student = await factories.student(db)
        turma = await factories.dance_class(db)
        e = Enrollment(student_id=student.id, class_id=turma.id, ativa=True, status=STATUS_ACTIVE, **kw)
        db.add(e)
        await db.commit()
        return student, e

    async def test_toggle_deactivates_and_reactivates(self, api, db, factories, admin_headers):
        _, e = await self._active(db, factories)

        off = await api.post(f"{URL}/{e.id}/toggle", headers=admin_headers)
        on = await api.post(f"{URL}/{e.id}/toggle", headers=admin_headers)

        assert (off.json()["ativa"], off.json()["status"]) == (False, "cancelled")
        assert (on.json()["ativa"], on.json()["status"]) == (True, "active")

    async def test_student_cancels_own_enrollment(self, api, db, factories, headers_for):
        student, e = await self._active(db, factories)

        r = await api.post(f"{URL}/{e.id}/cancel", headers=headers_for(student.profile))

        assert r.status_code == 200
        assert r.json()["status"] == "cancelled"

    async def test_cancel_deletes_gateway_subscription(self, api, db, asaas, factories, headers_for):
        student, e = await self._active(db, factories, asaas_subscription_id="sub_123")

        r = await api.post(f"{URL}/{e.id}/cancel", headers=headers_for(student.profile))

        assert r.status_code == 200
        assert r.json()["status"] == "cancelled"
        assert asaas.count("DELETE", "/subscriptions/sub_123") == 1

    async def test_cancel_keeps_enrollment_when_gateway_refuses(self, api, db, asaas, factories, admin_headers):
        _, e = await self._active(db, factories, asaas_subscription_id="sub_123")
        asaas.subscription_status = 500

        r = await api.post(f"{URL}/{e.id}/cancel", headers=admin_headers)

        assert r.status_code == 500
        assert r.json()["error"] == "gateway_error"
        await db.refresh(e)
        assert e.status == STATUS_ACTIVE

    async def test_cancel_with_subscription_needs_gateway(self, api, db, asaas, factories, admin_headers):
        _, e = await self._active(db, factories, asaas_subscription_id="sub_123")
        app.dependency_overrides[get_optional_asaas_client] = lambda: None

        r = await api.post(f"{URL}/{e.id}/cancel", headers=admin_headers)

        assert r.status_code == 503
        assert r.json()["error"] == "gateway_unavailable"
        assert sum(asaas.calls.values()) == 0
        await db.refresh(e)
        assert e.status == STATUS_ACTIVE

    async def test_cancel_without_subscription_needs_no_gateway(self, api, db, asaas, factories, admin_headers):
        _, e = await self._active(db, factories)
        app.dependency_overrides[get_optional_asaas_client] = lambda: None

        r = await api.post(f"{URL}/{e.id}/cancel", headers=admin_headers)

        assert r.status_code == 200
        assert r.json()["status"] == "cancelled"
        assert sum(asaas.calls.values()) == 0

    async def test_student_lists_only_own(self, api, db, factories, headers_for):
        student, mine = await self._active(db, factories)
        await self._active(db, factories)

        r = await api.get(URL, headers=headers_for(student.profile))

        assert [e["id"] for e in r.json()] == [str(mine.id)]

    async def test_subscription_cancel(self, api, db, asaas, factories, headers_for):
        student, e = await self._active(db, factories, asaas_subscription_id="sub_5")

        r = await api.post(
            f"{URL}/{e.id}/subscription", json={"action": "cancel"}, headers=headers_for(student.profile)
        )

        assert r.status_code == 200
        assert r.json()["enrollment"]["status"] == "cancelled"
        assert asaas.count("DELETE", "/subscriptions/sub_5") == 1

    async def test_subscription_without_id_is_400(self, api, db, factories, admin_headers):
        _, e = await self._active(db, factories)

        r = await api.post(f"{URL}/{e.id}/subscription", json={"action": "pause"}, headers=admin_headers)

        assert r.status_code == 400
        assert r.json()["error"] == "validation_error"

    async def test_unknown_enrollment_is_404(self, api, admin_headers):
        r = await api.post(f"{URL}/{uuid.uuid4()}/toggle", headers=admin_headers)
        assert r.status_code == 404
