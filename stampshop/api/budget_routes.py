"""Budget (quote) request route."""
from __future__ import annotations

import json
from typing import Any

from aiohttp import web

from stampshop.api.utils import json_error, json_response
from stampshop.core.exceptions import TransportException, ValidationException
from stampshop.logging_config import logger
from stampshop.services.budget_service import BudgetRequest, BudgetService, LogoUpload

REQUIRED_FIELDS = ("product", "quantity", "buyer")


def _json_field(form, name: str) -> Any:
    value = form.get(name)
    if value in (None, ""):
        return {}
    return json.loads(value)


def build_budget_handlers(budget: BudgetService, cors_origin: str):
    async def api_request_budget(request: web.Request) -> web.Response:
        """POST /api/request-budget - multipart form with an optional ``logoFile``."""
        try:
            form = await request.post()
        except ValueError as e:
            return json_error(f"Formulario inválido: {e}", cors_origin, status=400)

        missing = [name for name in REQUIRED_FIELDS if not form.get(name)]
        if missing:
            return json_error(
                "Faltan datos en la solicitud", cors_origin, status=400, fields=missing
            )

        try:
            product = _json_field(form, "product")
            customization = _json_field(form, "customization")
            buyer = _json_field(form, "buyer")
        except ValueError:
            return json_error("Datos mal formados", cors_origin, status=400)
        if not all(isinstance(v, dict) for v in (product, customization, buyer)):
            return json_error("Datos mal formados", cors_origin, status=400)

        logo = None
        upload = form.get("logoFile")
        if isinstance(upload, web.FileField):
            logo = LogoUpload(filename=upload.filename or "logo", content=upload.file.read())

        try:
            quantity = int(form.get("quantity"))
        except (TypeError, ValueError):
            quantity = 0

        budget_request = BudgetRequest(
            product=product,
            quantity=quantity,
            buyer=buyer,
            customization=customization,
            logo=logo,
        )
        try:
            await budget.request_budget(budget_request)
        except ValidationException as e:
            return json_response(
                {"success": False, "error": e.message, "errors": e.errors}, cors_origin, status=400
            )
        except TransportException as e:
            logger.error(f"Budget request failed: {e.message}")
            return json_response(
                {"success": False, "error": "Error al procesar la solicitud."}, cors_origin, status=500
            )

        return json_response({"success": True, "message": "Solicitud recibida."}, cors_origin)

    return api_request_budget
