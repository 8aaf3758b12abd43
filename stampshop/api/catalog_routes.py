"""Catalog routes."""
from __future__ import annotations

from aiohttp import web

from stampshop.api.utils import json_error, json_response
from stampshop.logging_config import logger
from stampshop.services.catalog import ProductCatalog


def build_catalog_handlers(catalog: ProductCatalog, cors_origin: str):
    async def api_products(request: web.Request) -> web.Response:
        """GET /api/products - Full product list."""
        try:
            return json_response(catalog.to_json(), cors_origin)
        except Exception as e:
            logger.error(f"API products error: {e}")
            return json_error("No se pudieron cargar los productos", cors_origin)

    return api_products
