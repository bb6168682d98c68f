# app/core/errors.py
"""
Erros de domínio dos serviços de matrícula/checkout.

Todos são terminais para a requisição atual (nenhum retry interno). O handler
registrado em ``app.main`` converte para o mesmo formato de resposta do
checkout: ``success=false`` + ``error`` (código) + ``message`` legível.
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class ServiceError(Exception):
    code = "service_error"
    status_code = 500
    default_message = "Erro inesperado"

    def __init__(self, message: Optional[str] = None, *, step: Optional[str] = None, detail: Any = None):
        self.message = message or self.default_message
        self.step = step
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "checkout_url": None,
            "enrollment_id": None,
            "checkout_token": None,
            "enrollment_data": {},
            "message": self.message,
            "error": self.code,
            "step": self.step,
            "detail": self.detail,
        }


class ValidationError(ServiceError):
    code = "validation_error"
    status_code = 400
    default_message = "Dados inválidos"


class NotFound(ServiceError):
    code = "not_found"
    status_code = 404
    default_message = "Registro não encontrado"


class InactiveResource(ServiceError):
    # rejeição de negócio: 200 com success=false
    code = "inactive_resource"
    status_code = 200
    default_message = "Registro inativo"


class GatewayError(ServiceError):
    code = "gateway_error"
    status_code = 500
    default_message = "Erro no gateway de pagamento"


class GatewayUnavailable(ServiceError):
    # ASAAS_API_KEY ausente: nada foi enviado ao gateway
    code = "gateway_unavailable"
    status_code = 503
    default_message = "Configuração pendente: ASAAS_API_KEY não configurada"


class PersistenceError(ServiceError):
    code = "persistence_error"
    status_code = 500
    default_message = "Falha ao gravar no banco de dados"


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
