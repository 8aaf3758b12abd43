"""Checkout routes: payment preference creation."""
from __future__ import annotations

from aiohttp import web
from pydantic import ValidationError

from stampshop.api.utils import json_error, json_response
from stampshop.core.exceptions import TransportException
from stampshop.domain.payment import PreferenceRequest
from stampshop.logging_config import logger
from stampshop.services.checkout import PreferenceGateway


def build_checkout_handlers(payments: PreferenceGateway, cors_origin: str):
    async def api_create_preference(request: web.Request) -> web.Response:
        """POST /api/create-preference - Create a Mercado Pago preference for the cart."""
        try:
            data = await request.json()
        except ValueError:
            return json_error("Cuerpo JSON inválido", cors_origin, status=400)

        try:
            preference_request = PreferenceRequest.model_validate(data)
        except ValidationError as e:
            return json_error(
                "Datos de compra inválidos",
                cors_origin,
                status=400,
                details=e.errors(include_url=False, include_context=False, include_input=False),
            )
        if not preference_request.cart:
            return json_error("El carrito está vacío", cors_origin, status=400)

        try:
            result = await payments.create_preference(preference_request)
        except TransportException as e:
            logger.error(f"Create preference failed: {e.message}")
            return json_error("Error al crear la preferencia", cors_origin, details=e.message)
        except Exception as e:
            logger.error(f"Create preference unexpected error: {e}", exc_info=True)
            return json_error("Error al crear la preferencia", cors_origin, details=str(e))

        return json_response(result.to_dict(), cors_origin)

    return api_create_preference
