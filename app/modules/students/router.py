import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.dependencies import (
    get_db, get_current_user, require_staff, ensure_self_or_staff,
    get_asaas_client, get_optional_asaas_client,
)
from app.core.security import hash_password
from app.gateways.asaas.client import AsaasClient, AsaasError
from app.modules.profiles.models import Profile, ROLE_STUDENT
from app.services.customer_provisioning import customer_payload, ensure_asaas_customer
from .crud import get_student_or_404
from .models import Student
from .schemas import StudentOut, StudentSignup, StudentUpdate, CustomerOut

logger = logging.getLogger(__name__)

router = APIRouter()

_PROFILE_FIELDS = ("nome_completo", "cpf", "whatsapp")


@router.get("", response_model=list[StudentOut])
async def list_students(
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(require_staff),
    ativo: Optional[bool] = Query(None),
    limit: int = Query(1000, le=100000),
    offset: int = 0,
):
    stmt = select(Student).join(Student.profile)
    if ativo is not None:
        stmt = stmt.where(Student.ativo == ativo)
    stmt = stmt.order_by(Profile.nome_completo.asc()).limit(limit).offset(offset)
    res = await db.execute(stmt)
    return res.scalars().all()


@router.post("", response_model=StudentOut, status_code=201)
async def signup_student(payload: StudentSignup, db: AsyncSession = Depends(get_db)):
    email = payload.email.strip().lower()
    exists = await db.execute(select(Profile.id).where(Profile.email == email))
    if exists.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="E-mail já cadastrado")

    profile = Profile(
        nome_completo=" ".join(payload.nome_completo.split()),
        email=email,
        cpf=payload.cpf,
        whatsapp=payload.whatsapp,
        senha_hash=hash_password(payload.password),
        role=ROLE_STUDENT,
        is_active=True,
    )
    db.add(profile)
    await db.flush()  # ganha profile.id

    st = Student(
        id=profile.id,
        profile=profile,
        cep=payload.cep,
        endereco_completo=payload.endereco_completo,
        data_nascimento=payload.data_nascimento,
        ativo=True,
    )
    db.add(st)
    await db.commit()
    return await get_student_or_404(db, profile.id)


@router.get("/{student_id}", response_model=StudentOut)
async def get_student(
    student_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(get_current_user),
):
    ensure_self_or_staff(me, student_id)
    return await get_student_or_404(db, student_id)


@router.put("/{student_id}", response_model=StudentOut)
async def update_student(
    student_id: uuid.UUID,
    payload: StudentUpdate,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(get_current_user),
    gateway: Optional[AsaasClient] = Depends(get_optional_asaas_client),
):
    ensure_self_or_staff(me, student_id)
    st = await get_student_or_404(db, student_id)

    for k, v in payload.model_dump(exclude_unset=True).items():
        target = st.profile if k in _PROFILE_FIELDS else st
        setattr(target, k, v)

    await db.commit()

    # mantém o cliente do Asaas em dia; falha aqui não desfaz a edição local
    if st.asaas_customer_id and gateway is not None:
        try:
            await gateway.update_customer(st.asaas_customer_id, customer_payload(st))
        except AsaasError as e:
            logger.warning("[ASAAS][PUT] falha ao atualizar cliente %s: %s", st.asaas_customer_id, e.description)

    return await get_student_or_404(db, student_id)


@router.post("/{student_id}/deactivate", response_model=StudentOut)
async def deactivate_student(
    student_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(require_staff),
):
    st = await get_student_or_404(db, student_id)
    st.ativo = False
    await db.commit()
    return await get_student_or_404(db, student_id)


@router.post("/{student_id}/asaas/customer", response_model=CustomerOut)
async def provision_customer(
    student_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(get_current_user),
    gateway: AsaasClient = Depends(get_asaas_client),
):
    ensure_self_or_staff(me, student_id)
    st = await get_student_or_404(db, student_id)
    customer_id = await ensure_asaas_customer(db, st, gateway)
    return CustomerOut(student_id=st.id, asaas_customer_id=customer_id)
