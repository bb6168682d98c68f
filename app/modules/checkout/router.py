from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_current_user, ensure_self_or_staff, get_optional_asaas_client
from app.gateways.asaas.client import AsaasClient
from app.modules.profiles.models import Profile, STAFF_ROLES
from app.services.checkout import start_checkout, parse_uuid
from .schemas import CheckoutIn, CheckoutOut

router = APIRouter()


@router.post("", response_model=CheckoutOut)
async def create_checkout(
    payload: CheckoutIn,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(get_current_user),
    gateway: Optional[AsaasClient] = Depends(get_optional_asaas_client),
):
    """
    Inicia (ou retoma) o checkout da matrícula do aluno na turma.

    200 para sucesso e para rejeições de negócio (já matriculado, turma inativa);
    o resultado está em ``success``/``status``/``message``.
    """
    if me.role not in STAFF_ROLES:
        ensure_self_or_staff(me, parse_uuid(payload.student_id, "student_id"))
    return await start_checkout(
        db,
        gateway,
        student_id=payload.student_id,
        class_id=payload.class_id,
        create_enrollment=payload.create_enrollment,
        billing_type=payload.billing_type,
        due_day=payload.due_day,
    )
