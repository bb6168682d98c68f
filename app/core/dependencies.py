import uuid
from typing import AsyncIterator, Optional

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import AsyncSessionLocal
from app.core.config import settings
from app.core.security import profile_id_from_token
from app.gateways.asaas.client import AsaasClient
from app.modules.profiles.models import Profile, STAFF_ROLES

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")  # só referência

async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    if not token:
        raise HTTPException(status_code=401, detail="Missing token")
    try:
        user_id = profile_id_from_token(token)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token")

    q = await db.execute(select(Profile).where(Profile.id == user_id))
    user = q.scalar_one_or_none()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user

async def require_staff(user: Profile = Depends(get_current_user)) -> Profile:
    if user.role not in STAFF_ROLES:
        raise HTTPException(status_code=403, detail="Sem permissão")
    return user

async def require_admin(user: Profile = Depends(get_current_user)) -> Profile:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin only")
    return user

def ensure_self_or_staff(user: Profile, student_id: uuid.UUID) -> None:
    if user.role in STAFF_ROLES:
        return
    if user.id != student_id:
        raise HTTPException(status_code=403, detail="Sem permissão")

def get_asaas_client() -> AsaasClient:
    if not settings.ASAAS_API_KEY:
        raise HTTPException(
            status_code=503,
            detail="Configuração pendente: ASAAS_API_KEY não configurada",
        )
    return AsaasClient(
        api_key=settings.ASAAS_API_KEY,
        sandbox=settings.asaas_sandbox,
        timeout=settings.ASAAS_TIMEOUT,
    )

def get_optional_asaas_client() -> Optional[AsaasClient]:
    """Para fluxos em que só parte do caminho usa o Asaas (sincronização best-effort, validação do checkout)."""
    if not settings.ASAAS_API_KEY:
        return None
    return get_asaas_client()
