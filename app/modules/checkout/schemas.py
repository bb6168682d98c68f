from __future__ import annotations

import uuid
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class CheckoutIn(BaseModel):
    # ids chegam como texto; a validação de UUID é do serviço (falha antes de qualquer I/O)
    student_id: str
    class_id: str
    create_enrollment: bool = True
    billing_type: Literal["CREDIT_CARD", "PIX", "BOLETO"] = "CREDIT_CARD"
    due_day: int = Field(10, ge=1, le=28)


class CheckoutOut(BaseModel):
    success: bool
    status: str
    checkout_url: Optional[str] = None
    enrollment_id: Optional[uuid.UUID] = None
    checkout_token: Optional[uuid.UUID] = None
    enrollment_data: Dict[str, Any] = Field(default_factory=dict)
    message: str
    error: Optional[str] = None
