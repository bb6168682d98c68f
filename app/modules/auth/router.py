from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.dependencies import get_db, get_current_user
from app.core.security import verify_password, create_access_token
from app.modules.profiles.models import Profile
from app.modules.profiles.schemas import ProfileOut
from .schemas import LoginRequest, TokenOut

router = APIRouter()

@router.post("/login", response_model=TokenOut)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    email = payload.email.strip().lower()
    q = await db.execute(select(Profile).where(Profile.email == email))
    user = q.scalar_one_or_none()
    if not user or not verify_password(payload.password, user.senha_hash):
        raise HTTPException(status_code=401, detail="Credenciais inválidas")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="Usuário inativo")

    token = create_access_token(user.id, user.role)
    return TokenOut(access_token=token, role=user.role)

@router.get("/me", response_model=ProfileOut)
async def me(user: Profile = Depends(get_current_user)):
    return user
