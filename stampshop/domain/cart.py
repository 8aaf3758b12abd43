"""Cart line entity and its stored representation."""
from __future__ import annotations

import json
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from stampshop.core.exceptions import CartPersistenceException
from stampshop.domain.fingerprint import customization_fingerprint


def new_line_id() -> str:
    return uuid.uuid4().hex


def _to_price(value: Any) -> float:
    try:
        price = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return max(price, 0.0)


def _to_quantity(value: Any) -> int:
    try:
        quantity = int(value or 1)
    except (TypeError, ValueError):
        return 1
    return max(quantity, 1)


@dataclass
class CartLine:
    """Single purchasable configuration in the cart."""

    product_id: Any
    name: str = ""
    unit_price: float = 0.0
    quantity: int = 1
    customization: dict[str, Any] = field(default_factory=dict)
    image: str | None = None
    category: list[str] = field(default_factory=list)
    line_id: str = field(default_factory=new_line_id)

    @property
    def fingerprint(self) -> str:
        return customization_fingerprint(self.customization)

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity

    def matches(self, product_id: Any, fingerprint: str) -> bool:
        return str(self.product_id) == str(product_id) and self.fingerprint == fingerprint

    def to_dict(self) -> dict[str, Any]:
        return {
            "line_id": self.line_id,
            "product_id": self.product_id,
            "name": self.name,
            "unit_price": float(self.unit_price),
            "quantity": int(self.quantity),
            "customization": dict(self.customization),
            "image": self.image,
            "category": list(self.category),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CartLine:
        """Build a line from the stored shape or the legacy browser shape."""
        customization = data.get("customization") or {}
        if not isinstance(customization, Mapping):
            customization = {}
        category = data.get("category") or []
        if isinstance(category, str):
            category = [category]
        return cls(
            product_id=data.get("product_id", data.get("id")),
            name=str(data.get("name") or data.get("title") or ""),
            unit_price=_to_price(data.get("unit_price", data.get("price"))),
            quantity=_to_quantity(data.get("quantity", data.get("qty"))),
            customization=dict(customization),
            image=data.get("image"),
            category=[str(c) for c in category],
            line_id=str(data.get("line_id") or data.get("cartItemId") or new_line_id()),
        )


def serialize_cart(lines: list[CartLine]) -> str:
    return json.dumps([line.to_dict() for line in lines], ensure_ascii=False, default=str)


def deserialize_cart(raw: str | bytes | None) -> list[CartLine]:
    """Parse a stored cart. Absent data is an empty cart; anything unreadable raises."""
    if not raw:
        return []
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise CartPersistenceException(f"Stored cart is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise CartPersistenceException("Stored cart is not a list")
    lines = []
    for item in payload:
        if not isinstance(item, Mapping):
            raise CartPersistenceException("Stored cart line is not an object")
        lines.append(CartLine.from_dict(item))
    return lines


def merge_duplicate_lines(lines: list[CartLine]) -> list[CartLine]:
    """Fold lines with the same product and fingerprint into the first one."""
    merged: list[CartLine] = []
    for line in lines:
        existing = next((m for m in merged if m.matches(line.product_id, line.fingerprint)), None)
        if existing:
            existing.quantity += line.quantity
        else:
            merged.append(line)
    return merged
