from __future__ import annotations

import uuid
from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

PaymentStatus = Literal["pendente", "pago", "vencido", "cancelado"]


class PaymentOut(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    enrollment_id: Optional[uuid.UUID] = None
    amount: float
    description: Optional[str] = None
    due_date: date
    paid_date: Optional[date] = None
    status: str
    payment_method: Optional[str] = None
    asaas_payment_id: Optional[str] = None
    asaas_invoice_url: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class PaymentCreate(BaseModel):
    student_id: uuid.UUID
    enrollment_id: Optional[uuid.UUID] = None
    amount: float = Field(..., gt=0)
    description: Optional[str] = None
    due_date: date


class PaymentPayIn(BaseModel):
    payment_method: str = "dinheiro"
    paid_date: Optional[date] = None


class PaymentStatusIn(BaseModel):
    status: PaymentStatus


class PaymentChargeIn(BaseModel):
    billing_type: Literal["UNDEFINED", "PIX", "BOLETO", "CREDIT_CARD"] = "UNDEFINED"
