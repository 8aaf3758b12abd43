"""
Mercado Pago REST client.

Only the two calls the shop needs:
- create a Checkout Pro preference (POST /checkout/preferences)
- look up a payment by id (GET /v1/payments/{id})

Credentials come from MP_ACCESS_TOKEN (see core.config.PaymentConfig).
"""
from __future__ import annotations

import asyncio
from typing import Any

import aiohttp

from stampshop.core.constants import HTTP_TIMEOUT_SECONDS
from stampshop.core.exceptions import PaymentGatewayException
from stampshop.domain.payment import PreferenceResult
from stampshop.logging_config import logger

DEFAULT_API_URL = "https://api.mercadopago.com"


class MercadoPagoClient:
    """Thin async wrapper over the Mercado Pago REST API."""

    def __init__(
        self,
        access_token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        session: aiohttp.ClientSession | None = None,
    ):
        self._access_token = access_token
        self._api_url = api_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    def _headers(self, idempotency_key: str | None = None) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Content-Type": "application/json",
        }
        if idempotency_key:
            headers["X-Idempotency-Key"] = idempotency_key
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        session = await self._get_session()
        url = f"{self._api_url}{path}"
        try:
            async with session.request(
                method, url, json=payload, headers=self._headers(idempotency_key)
            ) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    logger.error(f"Mercado Pago {method} {path} failed: {resp.status} {body[:300]}")
                    raise PaymentGatewayException(
                        f"Mercado Pago respondió {resp.status}", status=resp.status
                    )
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error(f"Mercado Pago {method} {path} unreachable: {exc}")
            raise PaymentGatewayException(f"No se pudo contactar a Mercado Pago: {exc}") from exc

    async def create_preference(
        self, body: dict[str, Any], idempotency_key: str | None = None
    ) -> PreferenceResult:
        data = await self._request("POST", "/checkout/preferences", body, idempotency_key)
        preference_id = data.get("id")
        redirect_url = data.get("init_point")
        if not preference_id or not redirect_url:
            raise PaymentGatewayException("Respuesta de preferencia incompleta")
        logger.info(f"Preference created: {preference_id} ref={body.get('external_reference')}")
        return PreferenceResult(preference_id=str(preference_id), redirect_url=redirect_url)

    async def get_payment(self, payment_id: str | int) -> dict[str, Any]:
        return await self._request("GET", f"/v1/payments/{payment_id}")
