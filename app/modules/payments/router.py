# app/modules/payments/router.py
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.dependencies import get_db, get_current_user, require_staff, ensure_self_or_staff, get_asaas_client
from app.gateways.asaas.client import AsaasClient
from app.modules.enrollments.models import Enrollment
from app.modules.profiles.models import Profile, STAFF_ROLES
from app.modules.students.crud import get_student_or_404
from app.services.payment_charges import charge_payment
from .models import Payment, STATUS_PAGO, STATUS_CANCELADO
from .schemas import PaymentOut, PaymentCreate, PaymentPayIn, PaymentStatusIn, PaymentChargeIn

router = APIRouter()


async def _get_payment_or_404(db: AsyncSession, payment_id: uuid.UUID) -> Payment:
    res = await db.execute(select(Payment).where(Payment.id == payment_id))
    obj = res.scalar_one_or_none()
    if not obj:
        raise HTTPException(status_code=404, detail="Pagamento não encontrado")
    return obj


@router.get("", response_model=list[PaymentOut])
async def list_payments(
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(get_current_user),
    student_id: Optional[uuid.UUID] = None,
    enrollment_id: Optional[uuid.UUID] = None,
    status_: Optional[str] = Query(None, alias="status"),
    due_from: Optional[date] = None,
    due_to: Optional[date] = None,
):
    stmt = select(Payment)
    if me.role not in STAFF_ROLES:
        student_id = me.id
    if student_id:
        stmt = stmt.where(Payment.student_id == student_id)
    if enrollment_id:
        stmt = stmt.where(Payment.enrollment_id == enrollment_id)
    if status_:
        stmt = stmt.where(Payment.status == status_)
    if due_from:
        stmt = stmt.where(Payment.due_date >= due_from)
    if due_to:
        stmt = stmt.where(Payment.due_date <= due_to)
    res = await db.execute(stmt.order_by(Payment.due_date.desc()))
    return res.scalars().all()


@router.post("", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(require_staff),
):
    await get_student_or_404(db, payload.student_id)
    if payload.enrollment_id:
        res = await db.execute(select(Enrollment.student_id).where(Enrollment.id == payload.enrollment_id))
        owner = res.scalar_one_or_none()
        if owner is None:
            raise HTTPException(status_code=404, detail="Matrícula não encontrada")
        if owner != payload.student_id:
            raise HTTPException(status_code=400, detail="Matrícula não pertence ao aluno")

    obj = Payment(
        student_id=payload.student_id,
        enrollment_id=payload.enrollment_id,
        amount=Decimal(str(payload.amount)),
        description=payload.description,
        due_date=payload.due_date,
    )
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return obj


# baixa manual (dinheiro na recepção, pix direto etc.)
@router.post("/{payment_id}/pay", response_model=PaymentOut)
async def pay_payment(
    payment_id: uuid.UUID,
    payload: PaymentPayIn,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(require_staff),
):
    obj = await _get_payment_or_404(db, payment_id)
    if obj.status == STATUS_CANCELADO:
        raise HTTPException(status_code=400, detail="Pagamento cancelado não pode ser baixado")
    obj.status = STATUS_PAGO
    obj.paid_date = payload.paid_date or date.today()
    obj.payment_method = payload.payment_method
    await db.commit()
    await db.refresh(obj)
    return obj


@router.patch("/{payment_id}/status", response_model=PaymentOut)
async def update_payment_status(
    payment_id: uuid.UUID,
    payload: PaymentStatusIn,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(require_staff),
):
    obj = await _get_payment_or_404(db, payment_id)
    obj.status = payload.status
    if payload.status == STATUS_PAGO and obj.paid_date is None:
        obj.paid_date = date.today()
    elif payload.status != STATUS_PAGO:
        obj.paid_date = None
    await db.commit()
    await db.refresh(obj)
    return obj


# cobrança avulsa no Asaas (fatura com pix/boleto/cartão)
@router.post("/{payment_id}/asaas", response_model=PaymentOut)
async def charge_payment_asaas(
    payment_id: uuid.UUID,
    payload: Optional[PaymentChargeIn] = None,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(get_current_user),
    gateway: AsaasClient = Depends(get_asaas_client),
):
    obj = await _get_payment_or_404(db, payment_id)
    ensure_self_or_staff(me, obj.student_id)
    billing_type = payload.billing_type if payload else "UNDEFINED"
    obj = await charge_payment(db, gateway, obj, billing_type=billing_type)
    await db.refresh(obj)
    return obj
