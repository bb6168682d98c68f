import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.dependencies import get_db
from app.gateways.asaas.schemas import AsaasWebhookIn
from app.services.asaas_webhook import handle_webhook

router = APIRouter()


@router.post("/asaas", status_code=status.HTTP_200_OK)
async def asaas_webhook(
    payload: AsaasWebhookIn,
    db: AsyncSession = Depends(get_db),
    asaas_access_token: Optional[str] = Header(None, alias="asaas-access-token"),
):
    # token configurado no painel do Asaas (Integrações > Webhooks)
    expected = settings.ASAAS_WEBHOOK_TOKEN
    if expected and not hmac.compare_digest(asaas_access_token or "", expected):
        raise HTTPException(status_code=401, detail="Token do webhook inválido")
    return await handle_webhook(db, payload)
