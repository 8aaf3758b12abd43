"""
Payment webhook relay.

Turns a provider callback into merchant notifications. The relay never
fails the callback: every downstream error is logged and the outcome is
still acknowledged, so the provider does not keep retrying.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from stampshop.core.constants import ORDER_STATUS_CONFIRMED
from stampshop.integrations.telegram_notifier import Notifier
from stampshop.logging_config import logger
from stampshop.services.notification_builder import NotificationBuilder
from stampshop.services.order_service import OrderService

PAYMENT_EVENT = "payment"
APPROVED = "approved"


class PaymentLookup(Protocol):
    async def get_payment(self, payment_id: str | int) -> dict[str, Any]:
        ...


@dataclass(frozen=True)
class WebhookOutcome:
    acknowledged: bool = True
    payment_id: str | None = None
    notified: bool = False
    order_reference: str | None = None

    @property
    def relevant(self) -> bool:
        return self.payment_id is not None


def extract_payment_id(payload: Any) -> str | None:
    """Payment id of a ``payment`` event, or None for anything else."""
    if not isinstance(payload, Mapping):
        return None
    if payload.get("type") != PAYMENT_EVENT:
        return None
    data = payload.get("data")
    if not isinstance(data, Mapping):
        return None
    payment_id = data.get("id")
    if payment_id in (None, ""):
        return None
    return str(payment_id)


class PaymentWebhookRelay:
    def __init__(
        self,
        notifier: Notifier,
        recipient: int | str,
        payment_client: PaymentLookup | None = None,
        orders: OrderService | None = None,
        builder: NotificationBuilder | None = None,
    ):
        self.notifier = notifier
        self.recipient = recipient
        self.payment_client = payment_client
        self.orders = orders
        self.builder = builder or NotificationBuilder()

    async def handle(self, payload: Any) -> WebhookOutcome:
        payment_id = extract_payment_id(payload)
        if payment_id is None:
            logger.info(f"Webhook ignored: {json.dumps(payload, default=str)[:300]}")
            return WebhookOutcome()

        logger.info(f"Payment notification received: {payment_id}")
        notified = await self._notify(self.builder.build_payment_notice(payload))

        reference = None
        if self.payment_client is not None:
            reference = await self._archive_approved(payment_id)
        return WebhookOutcome(payment_id=payment_id, notified=notified, order_reference=reference)

    async def _notify(self, text: str) -> bool:
        try:
            await self.notifier.send_text(self.recipient, text)
            return True
        except Exception as exc:
            logger.error(f"Merchant notification failed: {exc}")
            return False

    async def _archive_approved(self, payment_id: str) -> str | None:
        try:
            payment = await self.payment_client.get_payment(payment_id)
        except Exception as exc:
            logger.error(f"Payment {payment_id} lookup failed: {exc}")
            return None

        metadata = payment.get("metadata")
        if payment.get("status") != APPROVED or not metadata:
            logger.info(f"Payment {payment_id} status={payment.get('status')}; nothing to archive")
            return None

        reference = payment.get("external_reference") or OrderService.new_reference()
        order = {
            **metadata,
            "externalReference": reference,
            "status": ORDER_STATUS_CONFIRMED,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }
        if self.orders is not None:
            try:
                self.orders.save(order)
            except Exception as exc:
                logger.error(f"Order {reference} could not be archived: {exc}")
        await self._notify(self.builder.build_order_confirmation(order))
        return reference
