# app/services/customer_provisioning.py
"""
Provisionamento do cliente (customer) do aluno no Asaas.

Idempotente pelo CPF: antes de criar, procura um cliente com o mesmo CPF; se a
criação falhar (p.ex. cliente já existente), procura de novo antes de desistir.
O id obtido é gravado em ``students.asaas_customer_id``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from email_validator import EmailNotValidError, validate_email
from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import GatewayError, PersistenceError, ValidationError
from app.gateways.asaas.client import AsaasClient, AsaasError
from app.gateways.asaas.schemas import AsaasCustomerOut
from app.modules.students.models import Student
from app.utils.br import (
    is_valid_cpf,
    is_valid_phone,
    normalize_cep,
    normalize_cpf_cnpj,
    normalize_mobile_phone,
)

logger = logging.getLogger(__name__)


def validate_student_for_asaas(student: Student) -> List[Dict[str, str]]:
    """Retorna a lista de problemas (campo + mensagem); vazia = pode criar o cliente."""
    errors: List[Dict[str, str]] = []

    nome = (student.nome_completo or "").strip()
    if len(nome) < 2:
        errors.append({"field": "nome_completo", "message": "Nome muito curto"})
    elif len(nome.split()) < 2:
        errors.append({"field": "nome_completo", "message": "Nome e sobrenome são obrigatórios"})

    try:
        validate_email((student.email or "").strip(), check_deliverability=False)
    except EmailNotValidError:
        errors.append({"field": "email", "message": "Formato de email inválido"})

    if not student.cpf:
        errors.append({"field": "cpf", "message": "CPF é obrigatório"})
    elif not is_valid_cpf(student.cpf):
        errors.append({"field": "cpf", "message": "CPF inválido"})

    if not student.whatsapp:
        errors.append({"field": "whatsapp", "message": "Telefone é obrigatório"})
    elif not is_valid_phone(student.whatsapp):
        errors.append({"field": "whatsapp", "message": "Telefone deve ter 10 ou 11 dígitos"})

    if student.cep and not normalize_cep(student.cep):
        errors.append({"field": "cep", "message": "CEP deve ter 8 dígitos"})

    return errors


def customer_payload(student: Student) -> Dict[str, Any]:
    phone = normalize_mobile_phone(student.whatsapp)
    return {
        "name": " ".join((student.nome_completo or "").split()),
        "email": (student.email or "").strip().lower(),
        "cpfCnpj": normalize_cpf_cnpj(student.cpf),
        "phone": phone,
        "mobilePhone": phone,
        "address": student.endereco_completo,
        "postalCode": normalize_cep(student.cep),
        "externalReference": str(student.id),
        "notificationDisabled": False,
    }


def _customer_id(raw: Dict[str, Any], step: str) -> str:
    try:
        return AsaasCustomerOut.model_validate(raw).id
    except SchemaError as e:
        raise GatewayError(
            "Resposta inválida do Asaas ao obter cliente",
            step=step,
            detail={"body": raw, "errors": str(e)},
        ) from e


async def ensure_asaas_customer(db: AsyncSession, student: Student, gateway: AsaasClient) -> str:
    if student.asaas_customer_id:
        return student.asaas_customer_id

    problems = validate_student_for_asaas(student)
    if problems:
        raise ValidationError(
            "Dados do aluno incompletos para cobrança: "
            + ", ".join(p["message"] for p in problems),
            step="customer",
            detail={"fields": problems},
        )

    payload = customer_payload(student)
    cpf = payload["cpfCnpj"]

    try:
        existing = await gateway.find_customer_by_cpf(cpf)
    except AsaasError as e:
        raise GatewayError(
            f"Erro ao consultar cliente no Asaas: {e.description}",
            step="customer",
            detail=e.data,
        ) from e

    if existing:
        customer_id = _customer_id(existing, "customer")
        logger.info("[ASAAS] cliente existente %s reutilizado para aluno %s", customer_id, student.id)
    else:
        try:
            created = await gateway.create_customer(payload)
            customer_id = _customer_id(created, "customer")
            logger.info("[ASAAS] cliente %s criado para aluno %s", customer_id, student.id)
        except AsaasError as e:
            # o cliente pode ter sido criado por outra tentativa; procura de novo pelo CPF
            logger.warning("[ASAAS] criação de cliente falhou (%s), procurando por CPF", e.description)
            try:
                again = await gateway.find_customer_by_cpf(cpf)
            except AsaasError as e2:
                logger.warning("[ASAAS] nova busca por CPF falhou: %s", e2.description)
                again = None
            if not again:
                raise GatewayError(
                    f"Erro ao criar cliente no Asaas: {e.description}",
                    step="customer",
                    detail=e.data,
                ) from e
            customer_id = _customer_id(again, "customer")

    student.asaas_customer_id = customer_id
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError(
            "Falha ao salvar o cliente Asaas no cadastro do aluno",
            step="customer",
            detail={"asaas_customer_id": customer_id, "error": str(e)},
        ) from e
    return customer_id
