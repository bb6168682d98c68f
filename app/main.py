# app/main.py
import sys
import asyncio

# Event loop compatível no Windows (safe em outros SOs também)
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from contextlib import asynccontextmanager
import json
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.errors import ServiceError, service_error_handler
from app.core.logging import configure_logging
from app.api.v1.router import api_router
from app.db.session import engine
from app.db.base import Base

# registra todas as tabelas no metadata
from app.modules.profiles import models as _profiles  # noqa: F401
from app.modules.students import models as _students  # noqa: F401
from app.modules.classes import models as _classes  # noqa: F401
from app.modules.enrollments import models as _enrollments  # noqa: F401
from app.modules.payments import models as _payments  # noqa: F401

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def _normalize_origins(value) -> list[str]:
    """Aceita lista, JSON string ou CSV e devolve lista de origens."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(o).strip() for o in value if str(o).strip()]
    if isinstance(value, str):
        try:
            as_json = json.loads(value)
        except ValueError:
            as_json = None
        if isinstance(as_json, (list, tuple)):
            return [str(o).strip() for o in as_json if str(o).strip()]
        # CSV
        return [o.strip() for o in value.split(",") if o.strip()]
    return [str(value).strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # em dev cria as tabelas direto; produção usa o schema já provisionado
    if (settings.ENVIRONMENT or "").lower().strip() == "dev":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tabelas criadas/verificadas (%s)", engine.url.get_backend_name())
    if not settings.ASAAS_API_KEY:
        logger.warning("[ASAAS] ASAAS_API_KEY não configurada: checkout indisponível")
    yield


# --- App ---
app = FastAPI(title="Escola de Dança - Backend", lifespan=lifespan)

app.add_exception_handler(ServiceError, service_error_handler)

# --- CORS (colocado ANTES dos routers) ---
origins = _normalize_origins(getattr(settings, "CORS_ORIGINS", None))
if not origins:
    origins = [
        "http://localhost:8080",
        "http://localhost:5173",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


app.include_router(api_router, prefix=settings.API_V1_PREFIX)
