# scripts/create_admin.py
import sys, asyncio
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from getpass import getpass
from sqlalchemy import select

from app.db.base import Base
from app.db.session import AsyncSessionLocal, engine
from app.modules.profiles.models import Profile, ROLE_ADMIN
from app.modules.students import models as _students  # noqa: F401
from app.modules.classes import models as _classes  # noqa: F401
from app.modules.enrollments import models as _enrollments  # noqa: F401
from app.modules.payments import models as _payments  # noqa: F401
from app.core.security import hash_password


async def main():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        nome = input("Nome completo: ").strip() or "Administrador"
        email = input("Email: ").strip().lower()
        password = getpass("Senha: ")

        exists = await db.execute(select(Profile).where(Profile.email == email))
        if exists.scalar_one_or_none():
            print("Perfil já existe")
            return

        p = Profile(
            nome_completo=nome,
            email=email,
            senha_hash=hash_password(password),
            role=ROLE_ADMIN,
            is_active=True,
        )
        db.add(p)
        await db.commit()
        await db.refresh(p)
        print(f"Admin criado: {p.id} ({p.email})")

if __name__ == "__main__":
    asyncio.run(main())
