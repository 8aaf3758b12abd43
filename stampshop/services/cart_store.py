"""Shopping cart state for one storefront session."""
from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from stampshop.core.constants import CART_STORAGE_KEY
from stampshop.domain.cart import CartLine, deserialize_cart, merge_duplicate_lines, serialize_cart
from stampshop.domain.product import Product
from stampshop.integrations.cart_persistence import CartPersistence
from stampshop.logging_config import logger

CartListener = Callable[["CartStore"], None]


def _product_fields(product: Product | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(product, Product):
        return {
            "id": product.id,
            "name": product.name,
            "price": product.price,
            "image": product.image,
            "category": list(product.category),
        }
    return dict(product)


class CartStore:
    """Ordered cart lines plus the cart panel flag.

    Lines for the same product whose customizations share a fingerprint are
    merged, so the cart never holds two indistinguishable lines. Every change
    to the lines is written to ``persistence`` before the method returns.
    """

    def __init__(self, persistence: CartPersistence, storage_key: str = CART_STORAGE_KEY):
        self._persistence = persistence
        self._storage_key = storage_key
        self._listeners: list[CartListener] = []
        self.is_open = False
        self._lines: list[CartLine] = self._rehydrate()

    def _rehydrate(self) -> list[CartLine]:
        try:
            return merge_duplicate_lines(deserialize_cart(self._persistence.load(self._storage_key)))
        except Exception as exc:
            logger.warning("Stored cart %s unreadable, starting empty: %s", self._storage_key, exc)
            return []

    def _commit(self) -> None:
        try:
            self._persistence.save(self._storage_key, serialize_cart(self._lines))
        except Exception as exc:
            logger.error("Failed to persist cart %s: %s", self._storage_key, exc)
        for listener in list(self._listeners):
            listener(self)

    def _find(self, line_id: str) -> CartLine | None:
        return next((line for line in self._lines if line.line_id == line_id), None)

    def subscribe(self, listener: CartListener) -> None:
        """Call ``listener`` after every change to the cart contents."""
        self._listeners.append(listener)

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    @property
    def count(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def total(self) -> float:
        return sum(line.unit_price * line.quantity for line in self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def add(
        self,
        product: Product | Mapping[str, Any],
        quantity: int = 1,
        customization: Mapping[str, Any] | None = None,
    ) -> None:
        """Merge into a matching line or append a new one, then open the panel."""
        data = _product_fields(product)
        if customization is not None:
            data["customization"] = dict(customization)
        data["quantity"] = quantity
        data.pop("line_id", None)
        data.pop("cartItemId", None)
        incoming = CartLine.from_dict(data)

        existing = next(
            (line for line in self._lines if line.matches(incoming.product_id, incoming.fingerprint)),
            None,
        )
        if existing:
            existing.quantity += incoming.quantity
        else:
            self._lines.append(incoming)
        self._commit()
        self.open()

    def remove(self, line_id: str) -> None:
        before = len(self._lines)
        self._lines = [line for line in self._lines if line.line_id != line_id]
        if len(self._lines) != before:
            self._commit()

    def update_quantity(self, line_id: str, quantity: int) -> None:
        if quantity < 1:
            self.remove(line_id)
            return
        line = self._find(line_id)
        if line is None:
            return
        line.quantity = int(quantity)
        self._commit()

    def replace(self, line_id: str, data: Mapping[str, Any]) -> None:
        """Overwrite a line after its customization was edited, then open the panel."""
        line = self._find(line_id)
        if line is None:
            return

        fields = _product_fields(data)
        merged = {**line.to_dict(), **fields}
        merged["line_id"] = line.line_id
        merged.pop("cartItemId", None)
        for legacy, current in (("id", "product_id"), ("price", "unit_price"), ("qty", "quantity")):
            if legacy in fields and current not in fields:
                merged[current] = fields[legacy]
        updated = CartLine.from_dict(merged)

        # the edit may collide with another line; keep the edited one
        fingerprint = updated.fingerprint
        for other in [o for o in self._lines if o.line_id != line_id]:
            if other.matches(updated.product_id, fingerprint):
                updated.quantity += other.quantity
                self._lines.remove(other)

        self._lines[self._lines.index(line)] = updated
        self._commit()
        self.open()

    def clear(self) -> None:
        self._lines = []
        self._commit()
