"""
Shared fixtures: in-memory SQLite database, a fake Asaas API served through
httpx.MockTransport, data factories and an authenticated API client.
"""
import itertools
import json
from collections import Counter
from datetime import time
from decimal import Decimal

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.dependencies import get_asaas_client, get_db, get_optional_asaas_client
from app.core.security import create_access_token, hash_password
from app.db.base import Base
from app.gateways.asaas.client import AsaasClient
from app.main import app
from app.modules.classes.models import DanceClass
from app.modules.profiles.models import Profile, ROLE_ADMIN, ROLE_STUDENT
from app.modules.students.models import Student

VALID_CPF = "52998224725"
PASSWORD = "segredo123"
_PASSWORD_HASH = hash_password(PASSWORD)
_seq = itertools.count(1)


class FakeAsaas:
    """Minimal stand-in for the Asaas v3 API; counts every call by route."""

    def __init__(self):
        self.calls = Counter()
        self.requests = []
        self.customers = []
        self.checkout_responses = []  # fila de (status, body); vazia = sucesso padrão
        self.fail_customer_create = False
        self.fail_customer_lookup = False
        self.subscription_status = 200
        self.payment_status = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/v3")
        parts = path.strip("/").split("/")
        resource, ident = parts[0], (parts[1] if len(parts) > 1 else None)
        method = request.method
        self.calls[(method, path)] += 1
        self.requests.append(request)
        body = json.loads(request.content) if request.content else None

        if resource == "customers" and method == "GET":
            if self.fail_customer_lookup:
                return httpx.Response(500, json={"errors": [{"code": "internal", "description": "falha"}]})
            cpf = request.url.params.get("cpfCnpj")
            found = [c for c in self.customers if cpf is None or c["cpfCnpj"] == cpf]
            return httpx.Response(200, json={"object": "list", "data": found})

        if resource == "customers" and method == "POST":
            if self.fail_customer_create:
                return httpx.Response(
                    400, json={"errors": [{"code": "invalid_cpfCnpj", "description": "CPF já cadastrado"}]}
                )
            customer = {"id": f"cus_{len(self.customers) + 1:06d}", **body}
            self.customers.append(customer)
            return httpx.Response(200, json=customer)

        if resource == "customers" and method == "PUT":
            return httpx.Response(200, json={"id": ident, **body})

        if resource == "checkouts" and method == "POST":
            if self.checkout_responses:
                status, payload = self.checkout_responses.pop(0)
                return httpx.Response(status, json=payload)
            n = self.calls[(method, path)]
            return httpx.Response(
                200, json={"id": f"chk_{n:04d}", "url": f"https://sandbox.asaas.com/checkoutSession/show?id=chk_{n:04d}"}
            )

        if resource == "subscriptions" and method in ("PUT", "DELETE"):
            if self.subscription_status >= 400:
                return httpx.Response(
                    self.subscription_status,
                    json={"errors": [{"code": "not_found", "description": "Assinatura inexistente"}]},
                )
            if method == "DELETE":
                return httpx.Response(200, json={"deleted": True, "id": ident})
            return httpx.Response(200, json={"id": ident, **(body or {})})

        if resource == "payments" and method == "POST":
            if self.payment_status >= 400:
                return httpx.Response(
                    self.payment_status,
                    json={"errors": [{"code": "invalid_dueDate", "description": "Data de vencimento inválida"}]},
                )
            pay_id = f"pay_{self.calls[(method, path)]:06d}"
            return httpx.Response(
                200,
                json={**body, "id": pay_id, "status": "PENDING", "invoiceUrl": f"https://sandbox.asaas.com/i/{pay_id}"},
            )

        return httpx.Response(404, json={"errors": [{"code": "not_found", "description": path}]})

    def client(self) -> AsaasClient:
        return AsaasClient(api_key="$aact_test", sandbox=True, transport=httpx.MockTransport(self.handler))

    def count(self, method: str, path: str) -> int:
        return self.calls[(method, path)]

    def last_json(self, method: str, path: str):
        for req in reversed(self.requests):
            if req.method == method and req.url.path == f"/v3{path}":
                return json.loads(req.content)
        return None


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def asaas():
    return FakeAsaas()


@pytest.fixture
def gateway(asaas):
    return asaas.client()


async def make_profile(db, *, role=ROLE_STUDENT, **overrides) -> Profile:
    n = next(_seq)
    data = {
        "nome_completo": "Maria Silva",
        "email": f"pessoa{n}@example.com",
        "cpf": VALID_CPF,
        "whatsapp": "(11) 98765-4321",
        "senha_hash": _PASSWORD_HASH,
        "role": role,
        "is_active": True,
    }
    data.update(overrides)
    p = Profile(**data)
    db.add(p)
    await db.flush()
    return p


async def make_student(db, *, ativo=True, asaas_customer_id=None, **profile_overrides) -> Student:
    profile = await make_profile(db, **profile_overrides)
    st = Student(
        id=profile.id,
        profile=profile,
        cep="01310-100",
        endereco_completo="Av. Paulista, 1000",
        ativo=ativo,
        asaas_customer_id=asaas_customer_id,
    )
    db.add(st)
    await db.commit()
    return st


async def make_class(db, **overrides) -> DanceClass:
    data = {
        "nome": "Ballet Infantil",
        "modalidade": "ballet",
        "nivel": "iniciante",
        "tipo": "regular",
        "dias_semana": ["segunda", "quarta"],
        "horario_inicio": time(18, 0),
        "horario_fim": time(19, 0),
        "capacidade": 20,
        "valor_aula": Decimal("150.00"),
        "valor_matricula": Decimal("50.00"),
        "ativa": True,
    }
    data.update(overrides)
    obj = DanceClass(**data)
    db.add(obj)
    await db.commit()
    return obj


@pytest.fixture
def factories():
    class _F:
        profile = staticmethod(make_profile)
        student = staticmethod(make_student)
        dance_class = staticmethod(make_class)

    return _F


def auth_headers(profile: Profile) -> dict:
    token = create_access_token(profile.id, profile.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def api(session_factory, asaas):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_asaas_client] = asaas.client
    app.dependency_overrides[get_optional_asaas_client] = asaas.client
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def admin(db):
    p = await make_profile(db, role=ROLE_ADMIN, nome_completo="Admin Escola", cpf=None)
    await db.commit()
    return p


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def headers_for():
    return auth_headers
