"""Checkout request and payment preference models."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from stampshop.core.constants import CURRENCY_ID, DEFAULT_CITY, DELIVERY_SHIPPING, SHIPPING_COST


class CheckoutItem(BaseModel):
    """One cart line as sent to checkout (accepts the storefront's camel/legacy keys)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product_id: Union[int, str, None] = Field(None, validation_alias=AliasChoices("product_id", "id"))
    title: str = Field("", validation_alias=AliasChoices("title", "name"))
    unit_price: float = Field(0, ge=0, validation_alias=AliasChoices("unit_price", "price"))
    quantity: int = Field(1, ge=1, validation_alias=AliasChoices("quantity", "qty"))
    customization: dict[str, Any] = Field(default_factory=dict)


class Buyer(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""


class Address(BaseModel):
    street: str = ""
    city: str = DEFAULT_CITY
    postal_code: str = Field("", validation_alias=AliasChoices("postal_code", "postalCode"))


class PreferenceRequest(BaseModel):
    """Body of ``POST /api/create-preference``."""

    model_config = ConfigDict(populate_by_name=True)

    cart: list[CheckoutItem] = Field(default_factory=list)
    buyer: Buyer = Field(default_factory=Buyer)
    delivery_method: Literal["pickup", "shipping"] = Field("pickup", alias="deliveryMethod")
    address: Optional[Address] = None
    total: Optional[float] = Field(None, ge=0)

    @property
    def items_total(self) -> float:
        return sum(item.unit_price * item.quantity for item in self.cart)

    @property
    def final_total(self) -> float:
        if self.total is not None:
            return self.total
        if self.delivery_method == DELIVERY_SHIPPING:
            return self.items_total + SHIPPING_COST
        return self.items_total

    def preference_items(self, currency_id: str = CURRENCY_ID) -> list[dict[str, Any]]:
        return [
            {
                "title": item.title,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "currency_id": currency_id,
            }
            for item in self.cart
        ]

    def to_metadata(self) -> dict[str, Any]:
        """Order snapshot stored on the provider side and read back by the webhook."""
        return {
            "buyer": self.buyer.model_dump(),
            "cart": [
                {
                    "id": item.product_id,
                    "name": item.title,
                    "price": item.unit_price,
                    "qty": item.quantity,
                    "customization": item.customization,
                }
                for item in self.cart
            ],
            "total": self.final_total,
            "deliveryMethod": self.delivery_method,
            "address": self.address.model_dump() if self.address else None,
        }


@dataclass(frozen=True)
class PreferenceResult:
    """What checkout needs back from the provider."""

    preference_id: str
    redirect_url: str

    def to_dict(self) -> dict[str, str]:
        return {"preferenceId": self.preference_id, "init_point": self.redirect_url}
