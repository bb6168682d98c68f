from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class EnrollmentOut(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    class_id: uuid.UUID
    ativa: bool
    status: str
    data_matricula: date
    checkout_token: Optional[uuid.UUID] = None
    checkout_url: Optional[str] = None
    asaas_checkout_id: Optional[str] = None
    asaas_subscription_id: Optional[str] = None
    valor_pago_matricula: Optional[float] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CashEnrollmentIn(BaseModel):
    """Matrícula paga em dinheiro na recepção: já nasce ativa."""
    student_id: uuid.UUID
    class_id: uuid.UUID
    data_matricula: Optional[date] = None
    valor_pago_matricula: Optional[float] = Field(None, ge=0)


class SubscriptionActionIn(BaseModel):
    action: Literal["pause", "cancel", "reactivate"]


class SubscriptionActionOut(BaseModel):
    success: bool
    action: str
    enrollment: EnrollmentOut
    message: str
