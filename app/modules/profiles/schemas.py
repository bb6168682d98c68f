from __future__ import annotations

import uuid
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

Role = Literal["admin", "funcionario", "professor", "aluno"]


class ProfileOut(BaseModel):
    id: uuid.UUID
    nome_completo: str
    email: EmailStr
    cpf: Optional[str] = None
    whatsapp: Optional[str] = None
    role: str
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class ProfileCreate(BaseModel):
    nome_completo: str = Field(..., min_length=2)
    email: EmailStr
    password: str = Field(..., min_length=6)
    cpf: Optional[str] = None
    whatsapp: Optional[str] = None
    # equipe criada pela UI: funcionário ou professor
    role: Literal["funcionario", "professor", "admin"] = "funcionario"


class RoleUpdate(BaseModel):
    role: Role
