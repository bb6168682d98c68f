"""
Integration tests for /api/v1/payments
"""
from datetime import date

from app.modules.payments.models import Payment

URL = "/api/v1/payments"


class TestPayments:
    async def test_create_and_pay(self, api, db, factories, admin_headers):
        st = await factories.student(db)

        created = await api.post(
            URL,
            json={"student_id": str(st.id), "amount": 150, "due_date": "2025-05-10", "description": "Maio"},
            headers=admin_headers,
        )
        assert created.status_code == 201
        assert created.json()["status"] == "pendente"

        paid = await api.post(
            f"{URL}/{created.json()['id']}/pay",
            json={"payment_method": "pix", "paid_date": "2025-05-09"},
            headers=admin_headers,
        )
        assert paid.json()["status"] == "pago"
        assert paid.json()["paid_date"] == "2025-05-09"
        assert paid.json()["payment_method"] == "pix"

    async def test_status_patch_clears_paid_date(self, api, db, factories, admin_headers):
        st = await factories.student(db)
        p = Payment(
            student_id=st.id, amount=100, due_date=date(2025, 1, 10), status="pago", paid_date=date(2025, 1, 9)
        )
        db.add(p)
        await db.commit()

        r = await api.patch(f"{URL}/{p.id}/status", json={"status": "vencido"}, headers=admin_headers)

        assert r.json()["status"] == "vencido"
        assert r.json()["paid_date"] is None

    async def test_invalid_status_is_422(self, api, db, factories, admin_headers):
        st = await factories.student(db)
        p = Payment(student_id=st.id, amount=100, due_date=date(2025, 1, 10))
        db.add(p)
        await db.commit()

        r = await api.patch(f"{URL}/{p.id}/status", json={"status": "estornado"}, headers=admin_headers)
        assert r.status_code == 422

    async def test_student_sees_only_own_payments(self, api, db, factories, headers_for):
        me = await factories.student(db)
        other = await factories.student(db)
        db.add_all([
            Payment(student_id=me.id, amount=100, due_date=date(2025, 2, 10)),
            Payment(student_id=other.id, amount=100, due_date=date(2025, 2, 10)),
        ])
        await db.commit()

        r = await api.get(URL, params={"student_id": str(other.id)}, headers=headers_for(me.profile))

        assert [p["student_id"] for p in r.json()] == [str(me.id)]

    async def test_cancelled_payment_cannot_be_paid(self, api, db, factories, admin_headers):
        st = await factories.student(db)
        p = Payment(student_id=st.id, amount=80, due_date=date(2025, 3, 10), status="cancelado")
        db.add(p)
        await db.commit()

        r = await api.post(f"{URL}/{p.id}/pay", json={}, headers=admin_headers)
        assert r.status_code == 400


class TestAsaasCharge:
    async def _open(self, db, student):
        p = Payment(student_id=student.id, amount=50, description="Figurino", due_date=date.today())
        db.add(p)
        await db.commit()
        return p

    async def test_student_charges_own_payment(self, api, db, asaas, factories, headers_for):
        me = await factories.student(db, asaas_customer_id="cus_9")
        p = await self._open(db, me)

        r = await api.post(f"{URL}/{p.id}/asaas", json={"billing_type": "PIX"}, headers=headers_for(me.profile))

        assert r.status_code == 200
        assert r.json()["asaas_payment_id"] == "pay_000001"
        assert r.json()["asaas_invoice_url"] == "https://sandbox.asaas.com/i/pay_000001"
        body = asaas.last_json("POST", "/payments")
        assert (body["customer"], body["billingType"]) == ("cus_9", "PIX")
        assert body["externalReference"] == str(p.id)

    async def test_body_is_optional(self, api, db, asaas, factories, admin_headers):
        st = await factories.student(db, asaas_customer_id="cus_9")
        p = await self._open(db, st)

        r = await api.post(f"{URL}/{p.id}/asaas", headers=admin_headers)

        assert r.status_code == 200
        assert asaas.last_json("POST", "/payments")["billingType"] == "UNDEFINED"

    async def test_student_cannot_charge_someone_else(self, api, db, asaas, factories, headers_for):
        me = await factories.student(db)
        other = await factories.student(db)
        p = await self._open(db, other)

        r = await api.post(f"{URL}/{p.id}/asaas", json={}, headers=headers_for(me.profile))

        assert r.status_code == 403
        assert sum(asaas.calls.values()) == 0

    async def test_paid_payment_is_400(self, api, db, asaas, factories, admin_headers):
        st = await factories.student(db)
        p = await self._open(db, st)
        p.status = "pago"
        await db.commit()

        r = await api.post(f"{URL}/{p.id}/asaas", json={}, headers=admin_headers)

        assert r.status_code == 400
        assert r.json()["error"] == "validation_error"
        assert sum(asaas.calls.values()) == 0
