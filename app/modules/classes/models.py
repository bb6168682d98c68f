# app/modules/classes/models.py
import uuid
from datetime import time
from decimal import Decimal

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Boolean, ForeignKey, Numeric, Time, JSON, Uuid, CheckConstraint
from app.db.base import Base, TimestampMixin

NIVEL_CHOICES = ("iniciante", "basico", "intermediario", "avancado")
TIPO_CHOICES = ("regular", "intensivo", "workshop")
DIAS_SEMANA = ("segunda", "terca", "quarta", "quinta", "sexta", "sabado", "domingo")

# mudar qualquer um destes com alunos matriculados quebra a checagem de conflito de horário
SCHEDULE_FIELDS = ("dias_semana", "horario_inicio", "horario_fim")


class DanceClass(Base, TimestampMixin):
    __tablename__ = "classes"
    __table_args__ = (
        CheckConstraint(f"nivel in {NIVEL_CHOICES}", name="ck_class_nivel_valido"),
        CheckConstraint(f"tipo in {TIPO_CHOICES}", name="ck_class_tipo_valido"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    nome: Mapped[str | None] = mapped_column(String(200), nullable=True)
    modalidade: Mapped[str] = mapped_column(String(100), nullable=False)
    nivel: Mapped[str] = mapped_column(String(20), nullable=False, default="iniciante")
    tipo: Mapped[str] = mapped_column(String(20), nullable=False, default="regular")

    dias_semana: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    horario_inicio: Mapped[time] = mapped_column(Time, nullable=False)
    horario_fim: Mapped[time] = mapped_column(Time, nullable=False)

    capacidade: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # mensalidade
    valor_aula: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    valor_matricula: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    professor_principal_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )

    # desativada, nunca apagada (preserva histórico de matrículas)
    ativa: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def display_name(self) -> str:
        return self.nome or f"{self.modalidade} ({self.nivel})"
