# app/core/security.py
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

JWT_ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def create_access_token(profile_id: uuid.UUID, role: str, expires_minutes: Optional[int] = None) -> str:
    """JWT com ``sub`` = id do perfil e o papel, assinado com SECRET_KEY."""
    minutes = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    claims: dict[str, Any] = {
        "sub": str(profile_id),
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=JWT_ALGORITHM)


def profile_id_from_token(token: str) -> uuid.UUID:
    """Levanta ValueError para token inválido, expirado ou sem ``sub``."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        raise ValueError(str(e)) from e
    return uuid.UUID(str(payload.get("sub")))
