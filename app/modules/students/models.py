import uuid
from datetime import date

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Date, ForeignKey, Boolean, Uuid
from app.db.base import Base, TimestampMixin
from app.modules.profiles.models import Profile

class Student(Base, TimestampMixin):
    __tablename__ = "students"

    # mesmo id do perfil (identidade)
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )

    cep: Mapped[str | None] = mapped_column(String(9), nullable=True)
    endereco_completo: Mapped[str | None] = mapped_column(String(300), nullable=True)
    data_nascimento: Mapped[date | None] = mapped_column(Date, nullable=True)

    # preenchido na primeira tentativa de checkout
    asaas_customer_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # nunca apagamos aluno, só desativamos
    ativo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    profile: Mapped[Profile] = relationship(Profile, lazy="joined")

    @property
    def nome_completo(self) -> str:
        return self.profile.nome_completo

    @property
    def email(self) -> str:
        return self.profile.email

    @property
    def cpf(self) -> str | None:
        return self.profile.cpf

    @property
    def whatsapp(self) -> str | None:
        return self.profile.whatsapp
