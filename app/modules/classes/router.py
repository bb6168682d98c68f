# app/modules/classes/router.py
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.core.dependencies import get_db, get_current_user, require_staff
from app.modules.enrollments.models import Enrollment, STATUS_ACTIVE, STATUS_PENDING
from app.modules.profiles.models import Profile, STAFF_ROLES
from .models import DanceClass, SCHEDULE_FIELDS
from .schemas import ClassOut, ClassCreate, ClassUpdate, OccupancyOut

router = APIRouter()  # será incluído com prefix "/classes"


async def _get_class_or_404(db: AsyncSession, class_id: uuid.UUID) -> DanceClass:
    res = await db.execute(select(DanceClass).where(DanceClass.id == class_id))
    obj = res.scalar_one_or_none()
    if not obj:
        raise HTTPException(status_code=404, detail="Turma não encontrada")
    return obj


async def _count_by_status(db: AsyncSession, class_id: uuid.UUID) -> dict[str, int]:
    res = await db.execute(
        select(Enrollment.status, func.count(Enrollment.id))
        .where(Enrollment.class_id == class_id, Enrollment.status.in_((STATUS_ACTIVE, STATUS_PENDING)))
        .group_by(Enrollment.status)
    )
    return {st: int(n) for st, n in res.all()}


# LIST
@router.get("", response_model=list[ClassOut])
async def list_classes(
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(get_current_user),
    ativa: Optional[bool] = Query(None, description="Alunos só enxergam turmas ativas"),
    modalidade: Optional[str] = None,
):
    stmt = select(DanceClass)
    if me.role not in STAFF_ROLES:
        ativa = True
    if ativa is not None:
        stmt = stmt.where(DanceClass.ativa == ativa)
    if modalidade:
        stmt = stmt.where(DanceClass.modalidade == modalidade)
    res = await db.execute(stmt.order_by(DanceClass.modalidade.asc(), DanceClass.horario_inicio.asc()))
    return res.scalars().all()


@router.get("/{class_id}", response_model=ClassOut)
async def get_class(
    class_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(get_current_user),
):
    return await _get_class_or_404(db, class_id)


# CREATE
@router.post("", response_model=ClassOut, status_code=status.HTTP_201_CREATED)
async def create_class(
    payload: ClassCreate,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(require_staff),
):
    obj = DanceClass(**payload.model_dump())
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return obj


# UPDATE
@router.put("/{class_id}", response_model=ClassOut)
async def update_class(
    class_id: uuid.UUID,
    payload: ClassUpdate,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(require_staff),
):
    obj = await _get_class_or_404(db, class_id)
    changes = payload.model_dump(exclude_unset=True)

    schedule_changed = [k for k in SCHEDULE_FIELDS if k in changes and changes[k] != getattr(obj, k)]
    if schedule_changed:
        counts = await _count_by_status(db, class_id)
        if sum(counts.values()):
            raise HTTPException(
                status_code=409,
                detail="Horário não pode ser alterado com alunos matriculados: " + ", ".join(schedule_changed),
            )

    for k, v in changes.items():
        setattr(obj, k, v)

    if obj.horario_fim <= obj.horario_inicio:
        raise HTTPException(status_code=400, detail="horario_fim deve ser depois de horario_inicio")

    await db.commit()
    await db.refresh(obj)
    return obj


# TOGGLE STATUS
@router.post("/{class_id}/toggle", response_model=ClassOut)
async def toggle_class(
    class_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(require_staff),
):
    obj = await _get_class_or_404(db, class_id)
    obj.ativa = not obj.ativa
    await db.commit()
    await db.refresh(obj)
    return obj


@router.get("/{class_id}/occupancy", response_model=OccupancyOut)
async def class_occupancy(
    class_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    me: Profile = Depends(get_current_user),
):
    obj = await _get_class_or_404(db, class_id)
    counts = await _count_by_status(db, class_id)
    ativas = counts.get(STATUS_ACTIVE, 0)
    pendentes = counts.get(STATUS_PENDING, 0)
    vagas = None
    if obj.capacidade is not None:
        vagas = max(obj.capacidade - ativas - pendentes, 0)
    return OccupancyOut(
        class_id=obj.id, capacidade=obj.capacidade, ativas=ativas, pendentes=pendentes, vagas=vagas
    )
