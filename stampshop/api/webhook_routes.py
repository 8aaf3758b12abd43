"""Payment provider webhook route."""
from __future__ import annotations

import json
from typing import Any

from aiohttp import web

from stampshop.logging_config import logger
from stampshop.services.webhook_relay import PaymentWebhookRelay


def payload_from_query(query) -> dict[str, Any] | None:
    """Mercado Pago's IPN form: ``?type=payment&data.id=123`` (or topic/id)."""
    event_type = query.get("type") or query.get("topic")
    payment_id = query.get("data.id") or query.get("id")
    if not event_type:
        return None
    return {"type": event_type, "data": {"id": payment_id}}


def build_webhook_handlers(relay: PaymentWebhookRelay):
    async def api_webhook(request: web.Request) -> web.Response:
        """POST /api/webhook - Acknowledge a payment callback and notify the merchant."""
        raw = await request.text()
        if raw.strip():
            try:
                payload = json.loads(raw)
            except ValueError as e:
                logger.error(f"Webhook JSON parse error: {e!r}")
                return web.Response(status=500, text="Error processing webhook")
        else:
            payload = payload_from_query(request.query)

        try:
            outcome = await relay.handle(payload)
            if outcome.relevant:
                logger.info(f"Webhook processed: payment={outcome.payment_id} notified={outcome.notified}")
        except Exception as e:
            logger.error(f"Webhook unexpected error: {e!r}", exc_info=True)
        return web.Response(status=200, text="OK")

    return api_webhook
