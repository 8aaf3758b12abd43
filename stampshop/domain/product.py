"""Catalog product entity and product kinds."""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProductColor(BaseModel):
    """Named ink or body color offered for a product."""

    name: str
    hex: str


class Product(BaseModel):
    """Read-only catalog record."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Union[int, str] = Field(..., description="Catalog product ID")
    name: str = Field(..., min_length=1, description="Product title")
    price: float = Field(0, ge=0, description="Unit price in ARS")
    image: Optional[str] = Field(None, description="Main image path")
    images: list[str] = Field(default_factory=list, description="Gallery images")
    category: list[str] = Field(default_factory=list, description="Category labels")
    description: Optional[str] = Field(None, description="Short description")
    colors: list[ProductColor] = Field(default_factory=list, description="Selectable colors")
    max_lines: Optional[int] = Field(None, alias="maxLines", ge=1, description="Text lines on the stamp")

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v: Any) -> list[str]:
        """Accept a single category string or a list of them."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return [str(item) for item in v if item]

    @property
    def categories(self) -> set[str]:
        return {c.strip().lower() for c in self.category}

    @property
    def kind(self) -> ProductKind:
        return ProductKind.for_product(self)

    def color_name(self, value: str) -> str:
        """Return the color name for a hex value, or the value itself."""
        wanted = str(value).strip().lower()
        for color in self.colors:
            if color.hex.lower() == wanted:
                return color.name
        return str(value)


class ProductKind(str, Enum):
    """Customization family a product belongs to."""

    PLAIN = "plain"
    LOGO_KIT = "logo_kit"
    SCHOOL = "school"
    INK = "ink"
    FLAVOR_KIT = "flavor_kit"

    @classmethod
    def for_product(cls, product: Product) -> ProductKind:
        categories = product.categories
        if "kits" in categories:
            if "empanada" in product.name.lower():
                return cls.FLAVOR_KIT
            return cls.LOGO_KIT
        if "escolar" in categories:
            return cls.SCHOOL
        if "tintas" in categories:
            return cls.INK
        return cls.PLAIN

    @property
    def requires_quote(self) -> bool:
        """Logo kits are priced by the merchant after a budget request."""
        return self is ProductKind.LOGO_KIT
