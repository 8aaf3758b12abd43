"""
Notification Builder - plain-text messages sent to the merchant.

Three messages exist:
- payment notice (raw provider callback)
- order confirmation (archived order summary)
- budget request (quote for a logo kit)
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from stampshop.core.constants import DELIVERY_SHIPPING, PICKUP_ADDRESS
from stampshop.domain.customization import LOGO_KEYS, is_hex_color


def format_price(value: Any) -> str:
    try:
        return f"AR$ {float(value):,.2f}"
    except (TypeError, ValueError):
        return "AR$ 0.00"


def customization_label(key: str) -> str:
    """``line1`` -> ``Línea 1``; ``comentarios`` -> ``Comentarios``."""
    if key.startswith("line"):
        return key.replace("line", "Línea ", 1)
    if key == "comentarios":
        return "Comentarios"
    return key


def customization_lines(customization: Mapping[str, Any] | None) -> list[str]:
    """One ``Label: value`` row per filled field, logo data excluded."""
    if not customization:
        return []
    rows = []
    for key, value in customization.items():
        if not value or key in LOGO_KEYS:
            continue
        if value is True:
            value = "Sí"
        elif is_hex_color(value):
            value = str(value).strip().upper()
        rows.append(f"{customization_label(key)}: {value}")
    return rows


class NotificationBuilder:
    """Builds merchant-facing texts from payloads and order records."""

    def __init__(self, storefront_url: str = ""):
        self.storefront_url = storefront_url.rstrip("/")

    def build_payment_notice(self, payload: Mapping[str, Any]) -> str:
        body = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
        return f"💰 Pago confirmado\n\n{body}"

    def build_order_confirmation(self, order: Mapping[str, Any]) -> str:
        reference = order.get("externalReference", "")
        buyer = order.get("buyer") or {}
        lines = [f"✅ Pedido confirmado #{reference}", ""]
        lines.append(f"👤 {buyer.get('name') or 'Cliente'}")
        if buyer.get("email"):
            lines.append(f"✉️ {buyer['email']}")
        if buyer.get("phone"):
            lines.append(f"📱 {buyer['phone']}")
        lines.append("")

        for item in order.get("cart") or []:
            title = item.get("name") or item.get("title") or "Producto"
            qty = item.get("qty") or item.get("quantity") or 1
            price = item.get("price") or item.get("unit_price") or 0
            lines.append(f"• {title} (x{qty}) {format_price(price)}")
            details = customization_lines(item.get("customization"))
            if details:
                lines.extend(f"    {row}" for row in details)
            else:
                lines.append("    Sin personalización")

        lines.append("")
        address = order.get("address") or {}
        delivery = order.get("deliveryMethod") or order.get("delivery_method")
        if delivery == DELIVERY_SHIPPING and address:
            postal_code = address.get("postal_code") or address.get("postalCode") or ""
            lines.append(f"📦 Envío: {address.get('street', '')}, {address.get('city', '')}, CP {postal_code}")
        else:
            lines.append(f"🏪 Retiro en el local ({PICKUP_ADDRESS})")
        lines.append(f"Total: {format_price(order.get('total'))}")
        if self.storefront_url and reference:
            lines.append(f"Estado: {self.storefront_url}/order/{reference}")
        return "\n".join(lines)

    def build_budget_request(
        self,
        product: Mapping[str, Any],
        customization: Mapping[str, Any] | None,
        quantity: int,
        buyer: Mapping[str, Any],
    ) -> str:
        lines = [
            f"⚠️ Solicitud de presupuesto: {product.get('name', '')}",
            "",
            f"Nombre: {buyer.get('name', '')}",
            f"Email: {buyer.get('email', '')}",
            f"Teléfono: {buyer.get('phone', '')}",
            "",
            f"Producto: {product.get('name', '')} (ID {product.get('id', '-')})",
            f"Cantidad solicitada: {quantity}",
            "",
            "Detalles de personalización:",
        ]
        details = customization_lines(customization)
        lines.extend(details or ["Sin detalles."])
        return "\n".join(lines)
