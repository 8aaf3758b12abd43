"""Read-only product catalog backed by products.json."""
from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from stampshop.domain.product import Product, ProductKind
from stampshop.logging_config import logger


class ProductCatalog:
    def __init__(self, products: Iterable[Product] = ()):
        self._products: list[Product] = list(products)
        self._by_id: dict[str, Product] = {str(p.id): p for p in self._products}

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> ProductCatalog:
        """Build a catalog, skipping records that are not valid products."""
        products = []
        for index, record in enumerate(records):
            try:
                products.append(Product.model_validate(record))
            except ValidationError as exc:
                logger.warning(f"Skipping invalid product #{index}: {exc.error_count()} error(s)")
        return cls(products)

    @classmethod
    def from_file(cls, path: str | Path) -> ProductCatalog:
        """Load the catalog file; an unreadable file yields an empty catalog."""
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error(f"Could not read product catalog {path}: {exc}")
            return cls()
        if not isinstance(raw, list):
            logger.error(f"Product catalog {path} is not a JSON array")
            return cls()
        catalog = cls.from_records(raw)
        logger.info(f"Loaded {len(catalog)} products from {path}")
        return catalog

    def __len__(self) -> int:
        return len(self._products)

    def all(self) -> list[Product]:
        return list(self._products)

    def get(self, product_id: Any) -> Product | None:
        return self._by_id.get(str(product_id))

    def by_ids(self, product_ids: Iterable[Any]) -> list[Product]:
        """Products in the order of ``product_ids``; unknown ids are skipped."""
        return [p for p in (self.get(pid) for pid in product_ids) if p is not None]

    def by_kind(self, kind: ProductKind) -> list[Product]:
        return [p for p in self._products if p.kind is kind]

    def to_json(self) -> list[dict[str, Any]]:
        return [p.model_dump(mode="json", by_alias=True, exclude_none=True) for p in self._products]
