# app/services/asaas_webhook.py
"""
Aplica os eventos de cobrança do webhook do Asaas nas tabelas locais.

A matrícula é localizada pelo ``externalReference`` (o ``checkout_token`` gravado
no checkout) ou, na falta dele, pelo id da assinatura. O pagamento é
identificado por ``asaas_payment_id``: reenvio do mesmo evento não duplica linha.

Cobranças avulsas (``app.services.payment_charges``) levam o id do pagamento
local no ``externalReference``; essas baixam o próprio pagamento e nunca ativam
matrícula.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import PersistenceError
from app.gateways.asaas.schemas import AsaasWebhookIn, AsaasWebhookPayment
from app.modules.enrollments.models import Enrollment, STATUS_ACTIVE, STATUS_PENDING
from app.modules.payments.models import (
    Payment,
    STATUS_CANCELADO,
    STATUS_PAGO,
    STATUS_PENDENTE,
    STATUS_VENCIDO,
)

logger = logging.getLogger(__name__)

EVENT_CREATED = "PAYMENT_CREATED"
PAID_EVENTS = {"PAYMENT_RECEIVED", "PAYMENT_CONFIRMED"}

# evento -> status local do pagamento
EVENT_STATUS = {
    EVENT_CREATED: STATUS_PENDENTE,
    "PAYMENT_RECEIVED": STATUS_PAGO,
    "PAYMENT_CONFIRMED": STATUS_PAGO,
    "PAYMENT_OVERDUE": STATUS_VENCIDO,
    "PAYMENT_DELETED": STATUS_CANCELADO,
    "PAYMENT_REFUNDED": STATUS_CANCELADO,
    "PAYMENT_RESTORED": STATUS_PENDENTE,
}

BILLING_METHODS = {"BOLETO": "boleto", "PIX": "pix", "CREDIT_CARD": "cartao", "UNDEFINED": None}


def parse_asaas_date(v: Optional[str]) -> Optional[date]:
    """
    Asaas devolve 'YYYY-MM-DD' em dueDate/paymentDate/confirmedDate.
    Aceita também ISO completo; valor ausente ou ilegível vira None.
    """
    if not v:
        return None
    try:
        if len(v) == 10:
            return datetime.strptime(v, "%Y-%m-%d").date()
        return datetime.fromisoformat(v).date()
    except ValueError:
        return None


def _paid_date(p: AsaasWebhookPayment) -> date:
    return (
        parse_asaas_date(p.clientPaymentDate)
        or parse_asaas_date(p.paymentDate)
        or parse_asaas_date(p.confirmedDate)
        or date.today()
    )


async def find_enrollment(db: AsyncSession, p: AsaasWebhookPayment) -> Optional[Enrollment]:
    if p.externalReference:
        try:
            token = uuid.UUID(p.externalReference)
        except ValueError:
            token = None
        if token is not None:
            res = await db.execute(select(Enrollment).where(Enrollment.checkout_token == token))
            found = res.scalar_one_or_none()
            if found:
                return found
    if p.subscription:
        res = await db.execute(
            select(Enrollment)
            .where(Enrollment.asaas_subscription_id == p.subscription)
            .order_by(Enrollment.created_at.desc())
            .limit(1)
        )
        return res.scalars().first()
    return None


async def find_payment(db: AsyncSession, p: AsaasWebhookPayment) -> Optional[Payment]:
    res = await db.execute(select(Payment).where(Payment.asaas_payment_id == p.id))
    found = res.scalar_one_or_none()
    if found or not p.externalReference:
        return found
    # cobrança avulsa: externalReference = id do pagamento local
    try:
        ref = uuid.UUID(p.externalReference)
    except ValueError:
        return None
    res = await db.execute(select(Payment).where(Payment.id == ref, Payment.asaas_payment_id.is_(None)))
    return res.scalar_one_or_none()


async def handle_webhook(db: AsyncSession, body: AsaasWebhookIn) -> dict:
    """Retorna um resumo do que foi feito; nunca levanta por evento desconhecido."""
    event = body.event.upper()
    if event not in EVENT_STATUS:
        logger.info("[ASAAS][WEBHOOK] evento ignorado: %s", event)
        return {"received": True, "handled": False, "event": event}
    p = body.payment
    if p is None:
        logger.warning("[ASAAS][WEBHOOK] %s sem objeto payment", event)
        return {"received": True, "handled": False, "event": event}

    pay = await find_payment(db, p)
    # matrícula do checkout/assinatura; só ela é ativada por pagamento
    enrollment = await find_enrollment(db, p)
    from_checkout = enrollment is not None
    if enrollment is None and pay is not None and pay.enrollment_id:
        enrollment = await db.get(Enrollment, pay.enrollment_id)

    if pay is None and enrollment is None:
        logger.warning(
            "[ASAAS][WEBHOOK] %s: cobrança %s sem registro local (ref=%s sub=%s)",
            event, p.id, p.externalReference, p.subscription,
        )
        return {"received": True, "handled": False, "event": event, "payment_id": p.id}

    new_status = EVENT_STATUS[event]

    if pay is None:
        amount = p.value if p.value is not None else enrollment.turma.valor_aula
        pay = Payment(
            student_id=enrollment.student_id,
            enrollment_id=enrollment.id,
            amount=Decimal(str(amount)),
            description=p.description,
            due_date=parse_asaas_date(p.dueDate) or date.today(),
            asaas_payment_id=p.id,
        )
        db.add(pay)
    else:
        pay.asaas_payment_id = p.id
        if p.value is not None:
            pay.amount = Decimal(str(p.value))

    # pagamento já liquidado não volta a pendente por reenvio de PAYMENT_CREATED
    if not (event == EVENT_CREATED and pay.status == STATUS_PAGO):
        pay.status = new_status
    pay.asaas_invoice_url = p.invoiceUrl or pay.asaas_invoice_url
    if p.dueDate:
        pay.due_date = parse_asaas_date(p.dueDate) or pay.due_date

    if new_status == STATUS_PAGO:
        pay.paid_date = _paid_date(p)
        pay.payment_method = BILLING_METHODS.get((p.billingType or "").upper()) or pay.payment_method
    elif pay.status != STATUS_PAGO:
        pay.paid_date = None

    if from_checkout and p.subscription and not enrollment.asaas_subscription_id:
        enrollment.asaas_subscription_id = p.subscription

    if from_checkout and event in PAID_EVENTS:
        if enrollment.status == STATUS_PENDING:
            enrollment.activate()
            logger.info("[ASAAS][WEBHOOK] matrícula %s ativada pela cobrança %s", enrollment.id, p.id)
        elif enrollment.status != STATUS_ACTIVE:
            logger.warning(
                "[ASAAS][WEBHOOK] cobrança %s paga para matrícula %s em status %s; não reativada",
                p.id, enrollment.id, enrollment.status,
            )

    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError(
            "Falha ao aplicar evento do Asaas", step="webhook", detail={"event": event, "payment_id": p.id}
        ) from e

    return {
        "received": True,
        "handled": True,
        "event": event,
        "payment_id": p.id,
        "local_payment_id": str(pay.id),
        "enrollment_id": str(enrollment.id) if enrollment else None,
        "payment_status": pay.status,
        "enrollment_status": enrollment.status if enrollment else None,
    }
