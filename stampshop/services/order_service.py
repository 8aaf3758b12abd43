"""Archive of confirmed orders, one JSON file per external reference."""
from __future__ import annotations

import json
import os
import re
import tempfile
import time
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from stampshop.core.constants import ORDER_REFERENCE_PREFIX
from stampshop.core.exceptions import OrderNotFoundException, ValidationException
from stampshop.logging_config import logger

REFERENCE_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def is_valid_reference(reference: Any) -> bool:
    return isinstance(reference, str) and bool(REFERENCE_RE.match(reference))


class OrderService:
    def __init__(self, orders_dir: str | os.PathLike[str]):
        self.orders_dir = Path(orders_dir)

    @staticmethod
    def new_reference() -> str:
        return f"{ORDER_REFERENCE_PREFIX}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"

    def _path(self, reference: str) -> Path:
        return self.orders_dir / f"{reference}.json"

    def save(self, order: Mapping[str, Any]) -> Path:
        reference = order.get("externalReference")
        if not is_valid_reference(reference):
            raise ValidationException({"externalReference": "Referencia inválida"})

        self.orders_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(reference)
        fd, tmp_name = tempfile.mkstemp(dir=self.orders_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(dict(order), fh, ensure_ascii=False, indent=2, default=str)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info(f"Order {reference} archived")
        return path

    def get(self, reference: str) -> dict[str, Any] | None:
        """Archived order, or None for unknown or malformed references."""
        if not is_valid_reference(reference):
            return None
        path = self._path(reference)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error(f"Order {reference} unreadable: {exc}")
            return None

    def require(self, reference: str) -> dict[str, Any]:
        order = self.get(reference)
        if order is None:
            raise OrderNotFoundException(reference)
        return order
