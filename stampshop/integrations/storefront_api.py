"""HTTP client for the storefront API (used by the checkout flow and scripts)."""
from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from typing import Any

import aiohttp

from stampshop.core.constants import HTTP_TIMEOUT_SECONDS
from stampshop.core.exceptions import TransportException
from stampshop.domain.payment import PreferenceRequest, PreferenceResult
from stampshop.domain.product import Product
from stampshop.logging_config import logger


class StorefrontApiClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        session: aiohttp.ClientSession | None = None,
    ):
        self._base_url = base_url.rstrip("/")
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

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        session = await self._get_session()
        url = f"{self._base_url}{path}"
        try:
            async with session.request(method, url, **kwargs) as resp:
                if resp.status < 200 or resp.status >= 300:
                    body = await resp.text()
                    raise TransportException(
                        f"{method} {path} -> {resp.status}: {body[:200]}", status=resp.status
                    )
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning(f"Storefront API {method} {path} failed: {exc}")
            raise TransportException(f"{method} {path} failed: {exc}") from exc

    async def fetch_products(self) -> list[Product]:
        data = await self._request("GET", "/products")
        if not isinstance(data, list):
            raise TransportException("Product list response is not an array")
        return [Product.model_validate(item) for item in data]

    async def create_preference(self, request: PreferenceRequest) -> PreferenceResult:
        data = await self._request("POST", "/create-preference", json=request.to_metadata())
        preference_id = data.get("preferenceId") if isinstance(data, dict) else None
        redirect_url = data.get("init_point") if isinstance(data, dict) else None
        if not preference_id or not redirect_url:
            raise TransportException("Preference response is missing preferenceId/init_point")
        return PreferenceResult(preference_id=str(preference_id), redirect_url=redirect_url)

    async def get_order(self, reference: str) -> dict[str, Any] | None:
        try:
            return await self._request("GET", f"/order/{reference}")
        except TransportException as exc:
            if exc.status == 404:
                return None
            raise

    async def request_budget(
        self,
        product: Mapping[str, Any],
        customization: Mapping[str, Any],
        quantity: int,
        buyer: Mapping[str, Any],
        logo: tuple[str, bytes] | None = None,
    ) -> dict[str, Any]:
        form = aiohttp.FormData()
        form.add_field("product", json.dumps(dict(product), default=str))
        form.add_field("customization", json.dumps(dict(customization), default=str))
        form.add_field("quantity", str(quantity))
        form.add_field("buyer", json.dumps(dict(buyer)))
        if logo:
            filename, content = logo
            form.add_field("logoFile", content, filename=filename)
        return await self._request("POST", "/request-budget", data=form)
