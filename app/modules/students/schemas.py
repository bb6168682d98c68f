from __future__ import annotations
import uuid
from datetime import date
from typing import Optional

from pydantic import BaseModel, EmailStr, ConfigDict, Field, field_validator

from app.utils.br import is_valid_cpf, only_digits

class StudentSignup(BaseModel):
    nome_completo: str = Field(..., min_length=2)
    email: EmailStr
    password: str = Field(..., min_length=6)
    cpf: str
    whatsapp: Optional[str] = None
    cep: Optional[str] = None
    endereco_completo: Optional[str] = None
    data_nascimento: Optional[date] = None

    @field_validator("cpf")
    @classmethod
    def _cpf(cls, v: str) -> str:
        if not is_valid_cpf(v):
            raise ValueError("CPF inválido")
        return only_digits(v)

class StudentUpdate(BaseModel):
    nome_completo: Optional[str] = None
    cpf: Optional[str] = None
    whatsapp: Optional[str] = None
    cep: Optional[str] = None
    endereco_completo: Optional[str] = None
    data_nascimento: Optional[date] = None

    # omitido = não altera; null ou vazio não pode (coluna NOT NULL)
    @field_validator("nome_completo")
    @classmethod
    def _nome(cls, v: Optional[str]) -> str:
        nome = " ".join((v or "").split())
        if len(nome) < 2:
            raise ValueError("Nome é obrigatório")
        return nome

    @field_validator("cpf")
    @classmethod
    def _cpf(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not is_valid_cpf(v):
            raise ValueError("CPF inválido")
        return only_digits(v)

class StudentOut(BaseModel):
    id: uuid.UUID
    nome_completo: str
    email: EmailStr
    cpf: Optional[str] = None
    whatsapp: Optional[str] = None
    cep: Optional[str] = None
    endereco_completo: Optional[str] = None
    data_nascimento: Optional[date] = None
    asaas_customer_id: Optional[str] = None
    ativo: bool
    model_config = ConfigDict(from_attributes=True)

class CustomerOut(BaseModel):
    student_id: uuid.UUID
    asaas_customer_id: str
