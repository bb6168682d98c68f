# app/modules/enrollments/router.py
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.dependencies import (
    get_db,
    get_current_user,
    require_staff,
    ensure_self_or_staff,
    get_asaas_client,
    get_optional_asaas_client,
)
from app.core.errors import GatewayUnavailable
from app.gateways.asaas.client import AsaasClient
from app.modules.classes.models import DanceClass
from app.modules.payments.models import Payment, STATUS_PAGO
from app.modules.profiles.models import Profile, STAFF_ROLES
from app.modules.students.crud import get_student_or_404
from app.services.subscriptions import ACTION_CANCEL, manage_subscription
from .models import Enrollment, STATUS_ACTIVE, STATUS_CANCELLED
from .schemas import EnrollmentOut, CashEnrollmentIn, SubscriptionActionIn, SubscriptionActionOut

router = APIRouter()


async def _get_enrollment_or_404(db: AsyncSession, enrollment_id: uuid.UUID) -> Enrollment:
    res = await db.execute(select(Enrollment).where(Enrollment.id == enrollment_id))
    obj = res.scalar_one_or_none()
    if not obj:
        raise HTTPException(status_code=404, detail="Matrícula não encontrada")
    return obj


@router.get("", response_model=list[EnrollmentOut])
async def list_enrollments(
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(get_current_user),
    student_id: Optional[uuid.UUID] = None,
    class_id: Optional[uuid.UUID] = None,
    status_: Optional[str] = Query(None, alias="status"),
):
    stmt = select(Enrollment)
    # aluno só enxerga as próprias matrículas
    if me.role not in STAFF_ROLES:
        student_id = me.id
    if student_id:
        stmt = stmt.where(Enrollment.student_id == student_id)
    if class_id:
        stmt = stmt.where(Enrollment.class_id == class_id)
    if status_:
        stmt = stmt.where(Enrollment.status == status_)
    res = await db.execute(stmt.order_by(Enrollment.created_at.desc()))
    return res.scalars().unique().all()


@router.post("", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
async def create_cash_enrollment(
    payload: CashEnrollmentIn,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(require_staff),
):
    st = await get_student_or_404(db, payload.student_id)
    if not st.ativo:
        raise HTTPException(status_code=400, detail="Aluno está inativo")
    res = await db.execute(select(DanceClass).where(DanceClass.id == payload.class_id))
    turma = res.scalar_one_or_none()
    if not turma:
        raise HTTPException(status_code=404, detail="Turma não encontrada")
    if not turma.ativa:
        raise HTTPException(status_code=400, detail="Turma não está ativa")

    valor = payload.valor_pago_matricula
    if valor is None and turma.valor_matricula is not None:
        valor = float(turma.valor_matricula)
    hoje = payload.data_matricula or date.today()

    obj = Enrollment(
        student_id=st.id,
        class_id=turma.id,
        ativa=True,
        status=STATUS_ACTIVE,
        data_matricula=hoje,
        valor_pago_matricula=Decimal(str(valor)) if valor is not None else None,
    )
    db.add(obj)
    try:
        await db.flush()
        # taxa de matrícula recebida na recepção
        if turma.valor_matricula is not None and valor:
            db.add(Payment(
                student_id=st.id,
                enrollment_id=obj.id,
                amount=Decimal(str(valor)),
                description=f"Matrícula - {turma.display_name}",
                due_date=hoje,
                paid_date=hoje,
                status=STATUS_PAGO,
                payment_method="dinheiro",
            ))
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Aluno já possui matrícula pendente ou ativa nesta turma")
    return await _get_enrollment_or_404(db, obj.id)


@router.post("/{enrollment_id}/toggle", response_model=EnrollmentOut)
async def toggle_enrollment(
    enrollment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(require_staff),
):
    obj = await _get_enrollment_or_404(db, enrollment_id)
    if obj.ativa:
        obj.deactivate()
    else:
        obj.activate()
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Já existe outra matrícula pendente ou ativa nesta turma")
    return await _get_enrollment_or_404(db, enrollment_id)


@router.post("/{enrollment_id}/cancel", response_model=EnrollmentOut)
async def cancel_enrollment(
    enrollment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(get_current_user),
    gateway: Optional[AsaasClient] = Depends(get_optional_asaas_client),
):
    """Cancela a matrícula; com assinatura no Asaas, ela é removida antes (sem cobranças futuras)."""
    obj = await _get_enrollment_or_404(db, enrollment_id)
    ensure_self_or_staff(me, obj.student_id)
    if obj.status == STATUS_CANCELLED:
        return obj
    if obj.asaas_subscription_id:
        if gateway is None:
            raise GatewayUnavailable(step="subscription", detail={"enrollment_id": str(obj.id)})
        await manage_subscription(db, gateway, obj, ACTION_CANCEL)
    else:
        obj.deactivate(STATUS_CANCELLED)
        await db.commit()
    return await _get_enrollment_or_404(db, enrollment_id)


@router.post("/{enrollment_id}/subscription", response_model=SubscriptionActionOut)
async def subscription_action(
    enrollment_id: uuid.UUID,
    payload: SubscriptionActionIn,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(get_current_user),
    gateway: AsaasClient = Depends(get_asaas_client),
):
    obj = await _get_enrollment_or_404(db, enrollment_id)
    ensure_self_or_staff(me, obj.student_id)
    message = await manage_subscription(db, gateway, obj, payload.action)
    obj = await _get_enrollment_or_404(db, enrollment_id)
    return SubscriptionActionOut(
        success=True, action=payload.action, enrollment=EnrollmentOut.model_validate(obj), message=message
    )
