"""
Integration tests for one-off Asaas charges

A local payment becomes an Asaas invoice exactly once; the local id travels
as externalReference.
"""
from datetime import date
from decimal import Decimal

import pytest

from app.core.errors import GatewayError, ValidationError
from app.modules.payments.models import Payment
from app.services.payment_charges import charge_payment

TODAY = date(2025, 5, 1)


@pytest.fixture
async def open_payment(db, factories):
    student = await factories.student(db)
    p = Payment(
        student_id=student.id,
        amount=Decimal("50.00"),
        description="Taxa de matrícula",
        due_date=date(2025, 5, 10),
    )
    db.add(p)
    await db.commit()
    return p


class TestChargePayment:
    async def test_creates_invoice_and_stores_ids(self, db, asaas, gateway, open_payment):
        await charge_payment(db, gateway, open_payment, today=TODAY)

        body = asaas.last_json("POST", "/payments")
        assert body["customer"] == "cus_000001"
        assert body["billingType"] == "UNDEFINED"
        assert body["value"] == 50.0
        assert body["dueDate"] == "2025-05-10"
        assert body["externalReference"] == str(open_payment.id)
        assert body["fine"] == {"value": 2.0}
        assert body["interest"] == {"value": 1.0}
        assert open_payment.asaas_payment_id == "pay_000001"
        assert open_payment.asaas_invoice_url == "https://sandbox.asaas.com/i/pay_000001"
        assert open_payment.status == "pendente"

    async def test_past_due_date_moves_to_today(self, db, asaas, gateway, open_payment):
        await charge_payment(db, gateway, open_payment, today=date(2025, 6, 2))
        assert asaas.last_json("POST", "/payments")["dueDate"] == "2025-06-02"

    async def test_second_call_does_not_charge_again(self, db, asaas, gateway, open_payment):
        await charge_payment(db, gateway, open_payment, billing_type="PIX", today=TODAY)
        await charge_payment(db, gateway, open_payment, billing_type="PIX", today=TODAY)

        assert asaas.count("POST", "/payments") == 1
        assert asaas.count("POST", "/customers") == 1

    @pytest.mark.parametrize("status_", ["pago", "cancelado"])
    async def test_settled_payment_is_rejected(self, db, asaas, gateway, open_payment, status_):
        open_payment.status = status_
        await db.commit()

        with pytest.raises(ValidationError):
            await charge_payment(db, gateway, open_payment, today=TODAY)
        assert sum(asaas.calls.values()) == 0

    async def test_invalid_billing_type(self, db, asaas, gateway, open_payment):
        with pytest.raises(ValidationError) as exc:
            await charge_payment(db, gateway, open_payment, billing_type="CHEQUE", today=TODAY)
        assert exc.value.detail == {"field": "billing_type"}
        assert sum(asaas.calls.values()) == 0

    async def test_gateway_rejection_leaves_payment_uncharged(self, db, asaas, gateway, open_payment):
        asaas.payment_status = 400

        with pytest.raises(GatewayError) as exc:
            await charge_payment(db, gateway, open_payment, today=TODAY)

        assert "Data de vencimento inválida" in exc.value.message
        assert exc.value.step == "payment"
        assert open_payment.asaas_payment_id is None
