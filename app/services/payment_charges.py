# app/services/payment_charges.py
"""
Cobrança avulsa no Asaas para um pagamento local (taxa de matrícula, figurino,
mensalidade lançada à mão).

O ``externalReference`` enviado é o id do pagamento local; o webhook usa esse
valor para baixar a linha certa. Um pagamento já enviado não gera segunda
cobrança: a chamada devolve o que já está gravado.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

from pydantic import ValidationError as SchemaError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import GatewayError, NotFound, PersistenceError, ValidationError
from app.gateways.asaas.client import AsaasClient, AsaasError
from app.gateways.asaas.schemas import AsaasPaymentOut
from app.modules.payments.models import Payment, STATUS_CANCELADO, STATUS_PAGO
from app.modules.students.models import Student
from app.services.checkout import FINE_PERCENT, INTEREST_PERCENT
from app.services.customer_provisioning import ensure_asaas_customer

logger = logging.getLogger(__name__)

# UNDEFINED = o aluno escolhe a forma na fatura
CHARGE_BILLING_TYPES = ("UNDEFINED", "PIX", "BOLETO", "CREDIT_CARD")


def charge_payload(
    payment: Payment, customer_id: str, billing_type: str, today: Optional[date] = None
) -> Dict[str, Any]:
    # Asaas recusa vencimento no passado
    due = max(payment.due_date, today or date.today())
    return {
        "customer": customer_id,
        "billingType": billing_type,
        "value": round(float(payment.amount), 2),
        "dueDate": due.isoformat(),
        "description": payment.description,
        "externalReference": str(payment.id),
        "fine": {"value": FINE_PERCENT},
        "interest": {"value": INTEREST_PERCENT},
        "postalService": False,
    }


async def charge_payment(
    db: AsyncSession,
    gateway: AsaasClient,
    payment: Payment,
    *,
    billing_type: str = "UNDEFINED",
    today: Optional[date] = None,
) -> Payment:
    if billing_type not in CHARGE_BILLING_TYPES:
        raise ValidationError(
            f"billing_type inválido: use {', '.join(CHARGE_BILLING_TYPES)}",
            step="validate",
            detail={"field": "billing_type"},
        )
    if payment.status == STATUS_PAGO:
        raise ValidationError("Pagamento já está pago", step="validate", detail={"payment_id": str(payment.id)})
    if payment.status == STATUS_CANCELADO:
        raise ValidationError("Pagamento cancelado", step="validate", detail={"payment_id": str(payment.id)})
    if payment.asaas_payment_id:
        logger.info("[ASAAS] pagamento %s já tem cobrança %s", payment.id, payment.asaas_payment_id)
        return payment

    res = await db.execute(select(Student).where(Student.id == payment.student_id))
    student = res.scalar_one_or_none()
    if student is None:
        raise NotFound("Aluno não encontrado", step="student", detail={"student_id": str(payment.student_id)})

    customer_id = await ensure_asaas_customer(db, student, gateway)

    try:
        raw = await gateway.create_payment(charge_payload(payment, customer_id, billing_type, today))
    except AsaasError as e:
        raise GatewayError(
            f"Erro ao criar cobrança no Asaas: {e.description}", step="payment", detail=e.data
        ) from e
    try:
        created = AsaasPaymentOut.model_validate(raw)
    except SchemaError as e:
        raise GatewayError(
            "Resposta inválida do Asaas ao criar cobrança", step="payment", detail={"body": raw, "errors": str(e)}
        ) from e

    payment.asaas_payment_id = created.id
    payment.asaas_invoice_url = created.invoiceUrl
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("[ASAAS] cobrança %s criada mas não gravada no pagamento %s", created.id, payment.id)
        raise PersistenceError(
            "Cobrança criada no Asaas mas não gravada", step="payment", detail={"asaas_payment_id": created.id}
        ) from e

    logger.info("[ASAAS] cobrança %s criada para pagamento %s", created.id, payment.id)
    return payment
