"""Order status route."""
from __future__ import annotations

from aiohttp import web

from stampshop.api.utils import json_error, json_response
from stampshop.services.order_service import OrderService


def build_order_handlers(orders: OrderService, cors_origin: str):
    async def api_order_status(request: web.Request) -> web.Response:
        """GET /api/order/{order_id} - Archived order by external reference."""
        order = orders.get(request.match_info["order_id"])
        if order is None:
            return json_error("Pedido no encontrado", cors_origin, status=404)
        return json_response(order, cors_origin)

    return api_order_status
