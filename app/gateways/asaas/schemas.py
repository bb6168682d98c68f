# app/gateways/asaas/schemas.py
# Formato esperado das respostas do Asaas; qualquer desvio vira GatewayError no serviço.
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AsaasCustomerOut(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    name: Optional[str] = None
    cpfCnpj: Optional[str] = None


class AsaasCheckoutOut(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    status: Optional[str] = None

    @field_validator("url")
    @classmethod
    def _url_http(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("url do checkout deve ser http(s)")
        return v


class AsaasPaymentOut(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    status: Optional[str] = None
    invoiceUrl: Optional[str] = None
    dueDate: Optional[str] = None


class AsaasWebhookPayment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    customer: Optional[str] = None
    subscription: Optional[str] = None
    value: Optional[float] = None
    dueDate: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None
    externalReference: Optional[str] = None
    billingType: Optional[str] = None
    invoiceUrl: Optional[str] = None
    paymentDate: Optional[str] = None
    clientPaymentDate: Optional[str] = None
    confirmedDate: Optional[str] = None


class AsaasWebhookIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    event: str
    payment: Optional[AsaasWebhookPayment] = None
