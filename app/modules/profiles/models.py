import uuid

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Boolean, CheckConstraint, Uuid
from app.db.base import Base, TimestampMixin

ROLE_ADMIN = "admin"
ROLE_STAFF = "funcionario"
ROLE_TEACHER = "professor"
ROLE_STUDENT = "aluno"

ROLE_CHOICES = (ROLE_ADMIN, ROLE_STAFF, ROLE_TEACHER, ROLE_STUDENT)
STAFF_ROLES = {ROLE_ADMIN, ROLE_STAFF}


class Profile(Base, TimestampMixin):
    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint(f"role in {ROLE_CHOICES}", name="ck_profile_role_valido"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    nome_completo: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    cpf: Mapped[str | None] = mapped_column(String(14), nullable=True)
    whatsapp: Mapped[str | None] = mapped_column(String(20), nullable=True)
    senha_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_STUDENT)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
