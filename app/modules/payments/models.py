# app/modules/payments/models.py
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin
from app.modules.enrollments.models import Enrollment
from app.modules.students.models import Student

STATUS_PENDENTE = "pendente"
STATUS_PAGO = "pago"
STATUS_VENCIDO = "vencido"
STATUS_CANCELADO = "cancelado"

STATUS_CHOICES = (STATUS_PENDENTE, STATUS_PAGO, STATUS_VENCIDO, STATUS_CANCELADO)


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"

    __table_args__ = (
        # guarda só valores conhecidos de status
        CheckConstraint(
            f"status in {STATUS_CHOICES}",
            name="ck_payment_status_valido",
        ),
        Index("ix_payment_student_enrollment", "student_id", "enrollment_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey(f"{Student.__tablename__}.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    # null = cobrança avulsa
    enrollment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey(f"{Enrollment.__tablename__}.id", ondelete="SET NULL"),
        nullable=True,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(String(300), nullable=True)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    paid_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    status: Mapped[str] = mapped_column(String(16), default=STATUS_PENDENTE, nullable=False)

    # dinheiro/pix/boleto/cartao/...
    payment_method: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # id da cobrança no Asaas
    asaas_payment_id: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    asaas_invoice_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
