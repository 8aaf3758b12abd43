"""Quote (budget) requests for products priced by the merchant."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from stampshop.core.exceptions import NotificationException, TransportException, ValidationException
from stampshop.domain.customization import validate_customization
from stampshop.domain.product import Product
from stampshop.integrations.telegram_notifier import TelegramNotifier
from stampshop.logging_config import logger
from stampshop.services.checkout import EMAIL_RE
from stampshop.services.notification_builder import NotificationBuilder


@dataclass
class LogoUpload:
    filename: str
    content: bytes


@dataclass
class BudgetRequest:
    product: dict[str, Any]
    quantity: int
    buyer: dict[str, Any]
    customization: dict[str, Any] = field(default_factory=dict)
    logo: LogoUpload | None = None


def validate_budget_request(request: BudgetRequest) -> dict[str, str]:
    errors: dict[str, str] = {}
    buyer = request.buyer or {}
    if not str(buyer.get("name") or "").strip():
        errors["name"] = "El nombre es obligatorio"
    email = str(buyer.get("email") or "").strip()
    if not email:
        errors["email"] = "El email es obligatorio"
    elif not EMAIL_RE.search(email):
        errors["email"] = "Email inválido"
    if not str(buyer.get("phone") or "").strip():
        errors["phone"] = "El teléfono es obligatorio"

    try:
        quantity = int(request.quantity)
    except (TypeError, ValueError):
        quantity = 0
    if quantity < 1:
        errors["quantity"] = "La cantidad debe ser al menos 1"

    try:
        product = Product.model_validate(request.product)
    except ValidationError:
        errors["product"] = "Producto inválido"
    else:
        customization = dict(request.customization or {})
        has_upload = bool(request.logo and request.logo.content)
        if has_upload and not customization.get("fileName"):
            customization["fileName"] = request.logo.filename or "logo"
        errors.update(validate_customization(product, customization))
        if product.kind.requires_quote and not has_upload:
            errors["logo"] = "Por favor, sube un logo antes de cotizar."
    return errors


class BudgetService:
    def __init__(
        self,
        notifier: TelegramNotifier,
        recipient: int | str,
        builder: NotificationBuilder | None = None,
    ):
        self.notifier = notifier
        self.recipient = recipient
        self.builder = builder or NotificationBuilder()

    async def request_budget(self, request: BudgetRequest) -> None:
        """Validate and forward a quote request to the merchant.

        Raises:
            ValidationException: buyer, quantity, product or logo is invalid.
            TransportException: the merchant could not be notified.
        """
        errors = validate_budget_request(request)
        if errors:
            raise ValidationException(errors)

        text = self.builder.build_budget_request(
            request.product, request.customization, int(request.quantity), request.buyer
        )
        try:
            await self.notifier.send_text(self.recipient, text)
            if request.logo and request.logo.content:
                await self.notifier.send_document(
                    self.recipient,
                    request.logo.filename or "logo",
                    request.logo.content,
                    caption=f"Logo: {request.product.get('name', '')}",
                )
        except NotificationException:
            raise
        except Exception as exc:
            logger.error(f"Budget request notification failed: {exc}")
            raise TransportException(f"No se pudo enviar la solicitud: {exc}") from exc
        logger.info(f"Budget request sent for product {request.product.get('id')}")
