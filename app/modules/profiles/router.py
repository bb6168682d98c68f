from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.dependencies import get_db, require_admin, require_staff
from app.core.security import hash_password
from .models import Profile
from .schemas import ProfileOut, ProfileCreate, RoleUpdate

router = APIRouter()


@router.get("", response_model=List[ProfileOut])
async def list_profiles(
    role: Optional[str] = Query(None, description="admin | funcionario | professor | aluno"),
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(require_staff),
):
    stmt = select(Profile)
    if role:
        stmt = stmt.where(Profile.role == role)
    res = await db.execute(stmt.order_by(Profile.nome_completo.asc()))
    return res.scalars().all()


@router.post("", response_model=ProfileOut, status_code=status.HTTP_201_CREATED)
async def create_profile(
    payload: ProfileCreate,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(require_admin),
):
    email = payload.email.strip().lower()
    exists = await db.execute(select(Profile.id).where(Profile.email == email))
    if exists.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="E-mail já cadastrado")

    p = Profile(
        nome_completo=payload.nome_completo.strip(),
        email=email,
        cpf=payload.cpf,
        whatsapp=payload.whatsapp,
        senha_hash=hash_password(payload.password),
        role=payload.role,
        is_active=True,
    )
    db.add(p)
    await db.commit()
    await db.refresh(p)
    return p


@router.patch("/{profile_id}/role", response_model=ProfileOut)
async def change_role(
    profile_id: uuid.UUID,
    payload: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(require_admin),
):
    res = await db.execute(select(Profile).where(Profile.id == profile_id))
    p = res.scalar_one_or_none()
    if not p:
        raise HTTPException(status_code=404, detail="Perfil não encontrado")
    if p.id == me.id and payload.role != "admin":
        raise HTTPException(status_code=400, detail="Não é possível remover o próprio acesso de admin")
    # o cadastro em students é mantido; só o papel muda
    p.role = payload.role
    await db.commit()
    await db.refresh(p)
    return p
