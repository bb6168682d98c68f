# app/gateways/asaas/client.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

SANDBOX_URL = "https://api-sandbox.asaas.com/v3"
PRODUCTION_URL = "https://api.asaas.com/v3"


class AsaasError(RuntimeError):
    def __init__(self, code: str, data: Any, status_code: Optional[int] = None):
        super().__init__(code)
        self.code = code
        self.data = data
        self.status_code = status_code

    @property
    def description(self) -> str:
        return describe_error(self.data)


def describe_error(data: Any) -> str:
    """Extrai a mensagem legível do corpo de erro do Asaas ({"errors": [{"code", "description"}]})."""
    if not data:
        return "erro desconhecido"
    if isinstance(data, str):
        return data
    if not isinstance(data, dict):
        return str(data)
    errors = data.get("errors")
    if isinstance(errors, list) and errors:
        parts = []
        for err in errors:
            if isinstance(err, dict):
                parts.append(str(err.get("description") or err.get("message") or err.get("code") or err))
            else:
                parts.append(str(err))
        return ", ".join(parts)
    if isinstance(errors, dict) and errors:
        return ", ".join(str(v) for v in errors.values())
    for k in ("message", "error"):
        if data.get(k):
            return str(data[k])
    return str(data)


class AsaasClient:
    def __init__(
        self,
        api_key: str,
        sandbox: bool = True,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = SANDBOX_URL if sandbox else PRODUCTION_URL
        self._timeout = timeout
        self._transport = transport
        self._headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "access_token": self.api_key,
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        code: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            try:
                r = await client.request(method, path, json=json, params=params)
            except httpx.TimeoutException as e:
                raise AsaasError(code, {"error": f"timeout: {e}"}) from e
            except httpx.HTTPError as e:
                raise AsaasError(code, {"error": str(e)}) from e

        if r.status_code >= 400:
            # Tenta devolver o JSON de erro do Asaas
            try:
                data = r.json()
            except ValueError:
                data = {"error": r.text}
            if not isinstance(data, dict):
                data = {"error": data}
            data["_status_code"] = r.status_code
            logger.warning("[ASAAS] %s %s falhou (%s): %s", method, path, r.status_code, describe_error(data))
            raise AsaasError(code, data, status_code=r.status_code)

        if not r.content:
            return {}
        try:
            body = r.json()
        except ValueError as e:
            raise AsaasError(code, {"error": "resposta não é JSON", "text": r.text[:500]}, r.status_code) from e
        if not isinstance(body, dict):
            raise AsaasError(code, {"error": "resposta inesperada", "body": body}, r.status_code)
        return body

    # ---------- Customers ----------
    async def list_customers(self, *, limit: int = 1) -> Dict[str, Any]:
        return await self._request("GET", "/customers", params={"limit": limit}, code="list_customers_failed")

    async def find_customer_by_cpf(self, cpf_cnpj: str) -> Optional[Dict[str, Any]]:
        data = await self._request(
            "GET", "/customers", params={"cpfCnpj": cpf_cnpj}, code="find_customer_failed"
        )
        items = data.get("data") or data.get("items") or []
        return items[0] if items else None

    async def create_customer(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = {k: v for k, v in payload.items() if v not in (None, "", [])}
        return await self._request("POST", "/customers", json=body, code="create_customer_failed")

    async def update_customer(self, customer_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = {k: v for k, v in payload.items() if v not in (None, "", [])}
        if not body:
            return {"skipped": True}
        return await self._request("PUT", f"/customers/{customer_id}", json=body, code="update_customer_failed")

    # ---------- Checkout ----------
    async def create_checkout(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/checkouts", json=payload, code="create_checkout_failed")

    # ---------- Subscriptions ----------
    async def update_subscription(self, subscription_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "PUT", f"/subscriptions/{subscription_id}", json=payload, code="update_subscription_failed"
        )

    async def delete_subscription(self, subscription_id: str) -> Dict[str, Any]:
        return await self._request(
            "DELETE", f"/subscriptions/{subscription_id}", code="delete_subscription_failed"
        )

    # ---------- Payments (cobrança avulsa) ----------
    async def create_payment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = {k: v for k, v in payload.items() if v not in (None, "", [])}
        return await self._request("POST", "/payments", json=body, code="create_payment_failed")
