from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.dependencies import require_staff, get_optional_asaas_client
from app.gateways.asaas.client import AsaasClient, AsaasError
from app.modules.profiles.models import Profile
from .schemas import HealthOut

router = APIRouter()


@router.get("/health", response_model=HealthOut)
async def health_check(
    me: Profile = Depends(require_staff),
    gateway: Optional[AsaasClient] = Depends(get_optional_asaas_client),
):
    env = settings.ASAAS_ENVIRONMENT
    if gateway is None:
        return HealthOut(ok=False, environment=env, message="Credenciais não configuradas")
    try:
        await gateway.list_customers(limit=1)
    except AsaasError as e:
        status = f"HTTP {e.status_code}: " if e.status_code else ""
        return HealthOut(ok=False, environment=env, message=f"{status}{e.description}"[:200])
    return HealthOut(ok=True, environment=env, message="Conexão com Asaas OK")
