# app/modules/classes/schemas.py
from __future__ import annotations
import uuid
from datetime import time
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Nivel = Literal["iniciante", "basico", "intermediario", "avancado"]
Tipo = Literal["regular", "intensivo", "workshop"]
DiaSemana = Literal["segunda", "terca", "quarta", "quinta", "sexta", "sabado", "domingo"]


class ClassBase(BaseModel):
    nome: Optional[str] = None
    modalidade: str
    nivel: Nivel = "iniciante"
    tipo: Tipo = "regular"
    dias_semana: List[DiaSemana] = Field(..., min_length=1)
    horario_inicio: time
    horario_fim: time
    capacidade: Optional[int] = Field(None, ge=1)
    valor_aula: float = Field(..., gt=0)
    valor_matricula: Optional[float] = Field(None, ge=0)
    professor_principal_id: Optional[uuid.UUID] = None
    ativa: bool = True

    @model_validator(mode="after")
    def _horario(self):
        if self.horario_fim <= self.horario_inicio:
            raise ValueError("horario_fim deve ser depois de horario_inicio")
        return self


class ClassCreate(ClassBase):
    pass


class ClassUpdate(BaseModel):
    nome: Optional[str] = None
    modalidade: Optional[str] = None
    nivel: Optional[Nivel] = None
    tipo: Optional[Tipo] = None
    dias_semana: Optional[List[DiaSemana]] = None
    horario_inicio: Optional[time] = None
    horario_fim: Optional[time] = None
    capacidade: Optional[int] = Field(None, ge=1)
    valor_aula: Optional[float] = Field(None, gt=0)
    valor_matricula: Optional[float] = Field(None, ge=0)
    professor_principal_id: Optional[uuid.UUID] = None


class ClassOut(ClassBase):
    id: uuid.UUID
    model_config = ConfigDict(from_attributes=True)


class OccupancyOut(BaseModel):
    class_id: uuid.UUID
    capacidade: Optional[int] = None
    ativas: int
    pendentes: int
    vagas: Optional[int] = None
