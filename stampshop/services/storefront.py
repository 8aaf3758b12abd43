"""One shopper's session: cart plus checkout, wired together."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from stampshop.core.config import Settings
from stampshop.core.constants import CART_STORAGE_KEY
from stampshop.domain.customization import apply_defaults, validate_customization
from stampshop.domain.product import Product
from stampshop.integrations.cart_persistence import CartPersistence, RedisCartPersistence
from stampshop.integrations.storefront_api import StorefrontApiClient
from stampshop.services.cart_store import CartStore
from stampshop.services.checkout import CheckoutAttempt, CheckoutFlow, PreferenceGateway


class StorefrontSession:
    """Any change to the cart contents resets the checkout to idle."""

    def __init__(
        self,
        persistence: CartPersistence,
        gateway: PreferenceGateway,
        storage_key: str = CART_STORAGE_KEY,
        auto_submit: bool = False,
    ):
        self.cart = CartStore(persistence, storage_key)
        self.checkout = CheckoutFlow(self.cart, gateway, auto_submit=auto_submit)
        self.cart.subscribe(lambda _cart: self.checkout.reset())

    @classmethod
    def from_settings(
        cls, settings: Settings, storage_key: str = CART_STORAGE_KEY, auto_submit: bool = False
    ) -> StorefrontSession:
        """Redis-backed cart checking out through the storefront HTTP API."""
        return cls(
            RedisCartPersistence(settings.redis_url),
            StorefrontApiClient(settings.storefront_api_url),
            storage_key=storage_key,
            auto_submit=auto_submit,
        )

    async def close(self) -> None:
        close = getattr(self.checkout.gateway, "close", None)
        if close is not None:
            await close()

    def add_customized(
        self,
        product: Product,
        customization: Mapping[str, Any] | None = None,
        quantity: int = 1,
    ) -> dict[str, str]:
        """Fill the product kind's defaults, validate and add to the cart.

        Returns the validation errors; the cart is left untouched when there are any.
        """
        filled = apply_defaults(product, customization)
        errors = validate_customization(product, filled)
        if not errors:
            self.cart.add(product, quantity, filled)
        return errors

    async def start_payment(self) -> CheckoutAttempt | None:
        self.cart.close()
        return await self.checkout.submit()

    def complete_payment(self) -> None:
        """Buyer came back from an approved payment."""
        self.cart.clear()
