"""Server side of checkout: turns a preference request into a Mercado Pago preference."""
from __future__ import annotations

from typing import Any

from stampshop.core.constants import CURRENCY_ID
from stampshop.domain.payment import PreferenceRequest, PreferenceResult
from stampshop.integrations.mercadopago import MercadoPagoClient
from stampshop.logging_config import logger
from stampshop.services.order_service import OrderService


class PaymentService:
    def __init__(
        self,
        client: MercadoPagoClient,
        storefront_url: str,
        notification_url: str,
        currency_id: str = CURRENCY_ID,
    ):
        self.client = client
        self.storefront_url = storefront_url.rstrip("/")
        self.notification_url = notification_url
        self.currency_id = currency_id

    def build_preference_body(self, request: PreferenceRequest, reference: str) -> dict[str, Any]:
        return {
            "items": request.preference_items(self.currency_id),
            "payer": {"email": request.buyer.email, "name": request.buyer.name},
            "metadata": request.to_metadata(),
            "notification_url": self.notification_url,
            "external_reference": reference,
            "back_urls": {
                "success": f"{self.storefront_url}/success",
                "failure": f"{self.storefront_url}/failure",
                "pending": f"{self.storefront_url}/pending",
            },
            "auto_return": "approved",
        }

    async def create_preference(self, request: PreferenceRequest) -> PreferenceResult:
        reference = OrderService.new_reference()
        body = self.build_preference_body(request, reference)
        logger.info(f"Creating preference {reference}: {len(request.cart)} item(s), total={request.final_total}")
        return await self.client.create_preference(body, idempotency_key=reference)
