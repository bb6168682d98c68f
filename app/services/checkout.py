# app/services/checkout.py
"""
Orquestração do checkout de matrícula (assinatura mensal no Asaas).

Fluxo linear, sem retry interno:

1. valida os ids (antes de qualquer I/O);
2. carrega aluno e turma (NotFound / InactiveResource);
3. olha a matrícula mais recente do par aluno/turma e, nesta ordem:
   ativa -> "já matriculado"; pendente -> devolve o checkout existente;
   ``create_enrollment=False`` -> só valida;
4. garante o cliente no Asaas (sem ASAAS_API_KEY: GatewayUnavailable), cria o
   checkout e grava a matrícula pendente.

A unicidade de matrícula pendente/ativa por aluno/turma é do banco
(``uq_enrollment_current``); quem perde a corrida recebe a linha de quem ganhou.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import ValidationError as SchemaError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import (
    GatewayError,
    GatewayUnavailable,
    InactiveResource,
    NotFound,
    PersistenceError,
    ValidationError,
)
from app.gateways.asaas.client import AsaasClient, AsaasError
from app.gateways.asaas.schemas import AsaasCheckoutOut
from app.modules.checkout.schemas import CheckoutOut
from app.modules.classes.models import DanceClass
from app.modules.enrollments.models import (
    Enrollment,
    STATUS_ACTIVE,
    STATUS_PENDING,
)
from app.modules.students.models import Student
from app.services.customer_provisioning import ensure_asaas_customer

logger = logging.getLogger(__name__)

BILLING_TYPES = ("CREDIT_CARD", "PIX", "BOLETO")
DEFAULT_DUE_DAY = 10

# multa/juros/desconto padrão da escola
FINE_PERCENT = 2.00
INTEREST_PERCENT = 1.00
DISCOUNT_PERCENT = 5.00
DISCOUNT_DAYS = 5

RESULT_CREATED = "created"
RESULT_PENDING = "pending"
RESULT_ALREADY_ENROLLED = "already_enrolled"
RESULT_VALIDATED = "validated"


def parse_uuid(value: Any, field: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"{field} inválido: informe um UUID", step="validate", detail={"field": field})


def _add_months(d: date, months: int, day: int) -> date:
    m = d.month - 1 + months
    return date(d.year + m // 12, m % 12 + 1, day)


def subscription_dates(today: date, due_day: int = DEFAULT_DUE_DAY) -> tuple[date, date]:
    """Primeiro vencimento (dia ``due_day`` deste mês, ou do próximo se já passou) e fim em 1 ano."""
    start = date(today.year, today.month, due_day)
    if start <= today:
        start = _add_months(today, 1, due_day)
    end = date(start.year + 1, start.month, due_day)
    return start, end


def _money(v: Optional[Decimal]) -> Optional[float]:
    if v is None:
        return None
    return round(float(v), 2)


def build_checkout_payload(
    *,
    customer_id: str,
    class_name: str,
    value: float,
    token: uuid.UUID,
    billing_type: str,
    start: date,
    end: date,
    frontend_url: str,
    wallet_id: Optional[str] = None,
) -> Dict[str, Any]:
    base = frontend_url.rstrip("/")
    description = f"Mensalidade - {class_name}"
    ref = str(token)
    payload: Dict[str, Any] = {
        "billingTypes": [billing_type],
        "chargeTypes": ["RECURRENT"],
        "customer": customer_id,
        "minutesToExpire": 60,
        "items": [
            {
                "name": description,
                "description": f"Assinatura mensal da turma {class_name}",
                "value": value,
                "quantity": 1,
            }
        ],
        "subscription": {
            "cycle": "MONTHLY",
            "nextDueDate": start.isoformat(),
            "endDate": end.isoformat(),
            "value": value,
            "description": description,
            "externalReference": ref,
            "fine": {"value": FINE_PERCENT, "type": "PERCENTAGE"},
            "interest": {"value": INTEREST_PERCENT, "type": "PERCENTAGE"},
            "discount": {"value": DISCOUNT_PERCENT, "dueDateLimitDays": DISCOUNT_DAYS, "type": "PERCENTAGE"},
        },
        "externalReference": ref,
        "callback": {
            "successUrl": f"{base}/checkout/success?token={ref}",
            "cancelUrl": f"{base}/checkout/cancel?token={ref}",
            "expiredUrl": f"{base}/checkout/expired?token={ref}",
            "autoRedirect": True,
        },
    }
    if wallet_id:
        payload["walletId"] = wallet_id
    return payload


def _enrollment_data(enrollment: Enrollment) -> Dict[str, Any]:
    return {
        "id": str(enrollment.id),
        "student_id": str(enrollment.student_id),
        "class_id": str(enrollment.class_id),
        "ativa": enrollment.ativa,
        "status": enrollment.status,
        "data_matricula": enrollment.data_matricula.isoformat() if enrollment.data_matricula else None,
        "asaas_checkout_id": enrollment.asaas_checkout_id,
        "created_at": enrollment.created_at.isoformat() if enrollment.created_at else None,
    }


def _from_existing(enrollment: Enrollment) -> CheckoutOut:
    if enrollment.ativa:
        return CheckoutOut(
            success=False,
            status=RESULT_ALREADY_ENROLLED,
            checkout_url=enrollment.checkout_url,
            enrollment_id=enrollment.id,
            checkout_token=enrollment.checkout_token,
            enrollment_data=_enrollment_data(enrollment),
            message="Aluno já está matriculado nesta turma",
        )
    return CheckoutOut(
        success=True,
        status=RESULT_PENDING,
        checkout_url=enrollment.checkout_url,
        enrollment_id=enrollment.id,
        checkout_token=enrollment.checkout_token,
        enrollment_data=_enrollment_data(enrollment),
        message="Já existe um checkout pendente para esta turma",
    )


async def latest_enrollment(db: AsyncSession, student_id: uuid.UUID, class_id: uuid.UUID) -> Optional[Enrollment]:
    res = await db.execute(
        select(Enrollment)
        .where(Enrollment.student_id == student_id, Enrollment.class_id == class_id)
        .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
        .limit(1)
    )
    return res.scalars().first()


async def current_enrollment(db: AsyncSession, student_id: uuid.UUID, class_id: uuid.UUID) -> Optional[Enrollment]:
    res = await db.execute(
        select(Enrollment)
        .where(
            Enrollment.student_id == student_id,
            Enrollment.class_id == class_id,
            Enrollment.status.in_((STATUS_PENDING, STATUS_ACTIVE)),
        )
        .execution_options(populate_existing=True)
    )
    return res.scalars().first()


async def start_checkout(
    db: AsyncSession,
    gateway: Optional[AsaasClient],
    *,
    student_id: Any,
    class_id: Any,
    create_enrollment: bool = True,
    billing_type: str = "CREDIT_CARD",
    due_day: int = DEFAULT_DUE_DAY,
    today: Optional[date] = None,
) -> CheckoutOut:
    # 1) validação sem I/O
    sid = parse_uuid(student_id, "student_id")
    cid = parse_uuid(class_id, "class_id")
    if billing_type not in BILLING_TYPES:
        raise ValidationError(
            f"billing_type inválido: use {', '.join(BILLING_TYPES)}", step="validate", detail={"field": "billing_type"}
        )
    if not 1 <= int(due_day) <= 28:
        raise ValidationError("due_day deve estar entre 1 e 28", step="validate", detail={"field": "due_day"})
    today = today or date.today()

    # 2) aluno e turma
    student = (await db.execute(select(Student).where(Student.id == sid))).scalar_one_or_none()
    if not student:
        raise NotFound("Aluno não encontrado", step="student", detail={"student_id": str(sid)})
    if not student.ativo:
        raise InactiveResource("Aluno está inativo", step="student", detail={"student_id": str(sid)})

    turma = (await db.execute(select(DanceClass).where(DanceClass.id == cid))).scalar_one_or_none()
    if not turma:
        raise NotFound("Turma não encontrada", step="class", detail={"class_id": str(cid)})
    if not turma.ativa:
        raise InactiveResource("Turma não está ativa", step="class", detail={"class_id": str(cid)})

    class_name = turma.display_name
    value = _money(turma.valor_aula)

    # 3) guardas de idempotência
    existing = await latest_enrollment(db, sid, cid)
    if existing is not None and (existing.ativa or existing.status == STATUS_PENDING):
        logger.info("Checkout reaproveitado: matrícula %s (%s)", existing.id, existing.status)
        return _from_existing(existing)

    if not create_enrollment:
        return CheckoutOut(
            success=True,
            status=RESULT_VALIDATED,
            enrollment_data={
                "student_id": str(sid),
                "class_id": str(cid),
                "class_name": class_name,
                "valor": value,
                "valor_matricula": _money(turma.valor_matricula),
            },
            message="Dados validados; nenhuma matrícula criada",
        )

    # 4) cliente no Asaas
    if gateway is None:
        raise GatewayUnavailable(step="customer", detail={"student_id": str(sid)})
    customer_id = await ensure_asaas_customer(db, student, gateway)

    # 5) checkout recorrente
    token = uuid.uuid4()
    start, end = subscription_dates(today, due_day)
    payload = build_checkout_payload(
        customer_id=customer_id,
        class_name=class_name,
        value=value,
        token=token,
        billing_type=billing_type,
        start=start,
        end=end,
        frontend_url=settings.FRONTEND_URL,
        wallet_id=settings.ASAAS_WALLET_ID,
    )
    try:
        raw = await gateway.create_checkout(payload)
    except AsaasError as e:
        raise GatewayError(
            f"Erro ao criar checkout no Asaas: {e.description}",
            step="checkout",
            detail=e.data,
        ) from e
    try:
        checkout = AsaasCheckoutOut.model_validate(raw)
    except SchemaError as e:
        raise GatewayError(
            "Resposta inválida do Asaas ao criar checkout",
            step="checkout",
            detail={"body": raw, "errors": str(e)},
        ) from e
    logger.info("[ASAAS] checkout %s criado (aluno=%s turma=%s)", checkout.id, sid, cid)

    # 6) matrícula pendente, só depois do gateway responder
    enrollment = Enrollment(
        student_id=sid,
        class_id=cid,
        ativa=False,
        status=STATUS_PENDING,
        data_matricula=today,
        checkout_token=token,
        checkout_url=checkout.url,
        asaas_checkout_id=checkout.id,
    )
    db.add(enrollment)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        winner = await current_enrollment(db, sid, cid)
        if winner is None:
            raise PersistenceError(
                "Falha ao gravar a matrícula",
                step="enrollment",
                detail={"asaas_checkout_id": checkout.id, "error": str(e.orig)},
            ) from e
        # o checkout criado aqui fica órfão no Asaas e expira sozinho
        logger.warning(
            "Corrida de checkout: matrícula %s já existia; checkout %s descartado", winner.id, checkout.id
        )
        return _from_existing(winner)
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError(
            "Falha ao gravar a matrícula",
            step="enrollment",
            detail={"asaas_checkout_id": checkout.id, "error": str(e)},
        ) from e

    await db.refresh(enrollment)
    return CheckoutOut(
        success=True,
        status=RESULT_CREATED,
        checkout_url=enrollment.checkout_url,
        enrollment_id=enrollment.id,
        checkout_token=enrollment.checkout_token,
        enrollment_data=_enrollment_data(enrollment) | {
            "class_name": class_name,
            "valor": value,
            "next_due_date": start.isoformat(),
            "end_date": end.isoformat(),
        },
        message="Checkout criado; conclua o pagamento para ativar a matrícula",
    )
