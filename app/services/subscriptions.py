# app/services/subscriptions.py
"""
Pausa, cancelamento e reativação da assinatura mensal de uma matrícula.

A assinatura nasce do checkout e o id chega pelo webhook (PAYMENT_CREATED);
sem ``asaas_subscription_id`` não há o que gerenciar.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import GatewayError, PersistenceError, ValidationError
from app.gateways.asaas.client import AsaasClient, AsaasError
from app.modules.enrollments.models import Enrollment, STATUS_CANCELLED

logger = logging.getLogger(__name__)

ACTION_PAUSE = "pause"
ACTION_CANCEL = "cancel"
ACTION_REACTIVATE = "reactivate"

MESSAGES = {
    ACTION_PAUSE: "Assinatura pausada",
    ACTION_CANCEL: "Assinatura cancelada",
    ACTION_REACTIVATE: "Assinatura reativada",
}


async def manage_subscription(db: AsyncSession, gateway: AsaasClient, enrollment: Enrollment, action: str) -> str:
    if action not in MESSAGES:
        raise ValidationError(f"Ação inválida: {action}", step="subscription", detail={"field": "action"})
    sub_id = enrollment.asaas_subscription_id
    if not sub_id:
        raise ValidationError(
            "Matrícula sem assinatura no Asaas", step="subscription", detail={"enrollment_id": str(enrollment.id)}
        )
    if action == ACTION_REACTIVATE and enrollment.status == STATUS_CANCELLED:
        raise ValidationError(
            "Assinatura cancelada não pode ser reativada; faça um novo checkout",
            step="subscription",
            detail={"enrollment_id": str(enrollment.id)},
        )

    try:
        if action == ACTION_PAUSE:
            await gateway.update_subscription(sub_id, {"status": "INACTIVE"})
        elif action == ACTION_CANCEL:
            await gateway.delete_subscription(sub_id)
        else:
            await gateway.update_subscription(sub_id, {"status": "ACTIVE"})
    except AsaasError as e:
        raise GatewayError(
            f"Erro ao atualizar assinatura no Asaas: {e.description}", step="subscription", detail=e.data
        ) from e

    # pausa só suspende as cobranças; a matrícula continua como está
    if action == ACTION_CANCEL:
        enrollment.deactivate(STATUS_CANCELLED)
    elif action == ACTION_REACTIVATE:
        enrollment.activate()

    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError(
            "Falha ao atualizar a matrícula", step="subscription", detail={"subscription_id": sub_id, "error": str(e)}
        ) from e

    logger.info("[ASAAS] assinatura %s: %s (matrícula %s)", sub_id, action, enrollment.id)
    return MESSAGES[action]
