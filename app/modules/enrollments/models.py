# app/modules/enrollments/models.py
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Numeric,
    String,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin
from app.modules.classes.models import DanceClass
from app.modules.students.models import Student

STATUS_PENDING = "pending"
STATUS_ACTIVE = "active"
STATUS_CANCELLED = "cancelled"

STATUS_CHOICES = (STATUS_PENDING, STATUS_ACTIVE, STATUS_CANCELLED)

# no máximo uma matrícula "corrente" (pendente ou ativa) por aluno/turma
_CURRENT = text("status IN ('pending', 'active')")


class Enrollment(Base, TimestampMixin):
    __tablename__ = "enrollments"

    __table_args__ = (
        CheckConstraint(f"status in {STATUS_CHOICES}", name="ck_enrollment_status_valido"),
        # ativa=true <=> status='active'
        CheckConstraint(
            "(ativa AND status = 'active') OR (NOT ativa AND status <> 'active')",
            name="ck_enrollment_ativa_status",
        ),
        Index(
            "uq_enrollment_current",
            "student_id",
            "class_id",
            unique=True,
            postgresql_where=_CURRENT,
            sqlite_where=_CURRENT,
        ),
        Index("ix_enrollment_student_class_created", "student_id", "class_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey(f"{Student.__tablename__}.id", ondelete="CASCADE"), index=True, nullable=False
    )
    class_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey(f"{DanceClass.__tablename__}.id", ondelete="RESTRICT"), index=True, nullable=False
    )

    ativa: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_PENDING)
    data_matricula: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)

    # chave de idempotência da tentativa de checkout
    checkout_token: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, unique=True)
    checkout_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    asaas_checkout_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    asaas_subscription_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    valor_pago_matricula: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    student: Mapped[Student] = relationship(Student, lazy="joined")
    turma: Mapped[DanceClass] = relationship(DanceClass, lazy="joined")

    def activate(self) -> None:
        self.ativa = True
        self.status = STATUS_ACTIVE

    def deactivate(self, status: str = STATUS_CANCELLED) -> None:
        self.ativa = False
        self.status = status
