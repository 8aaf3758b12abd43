"""aiohttp application for the storefront API."""
from __future__ import annotations

from dataclasses import dataclass

from aiogram import Bot
from aiohttp import web

from stampshop import __version__
from stampshop.api.budget_routes import build_budget_handlers
from stampshop.api.catalog_routes import build_catalog_handlers
from stampshop.api.checkout_routes import build_checkout_handlers
from stampshop.api.order_routes import build_order_handlers
from stampshop.api.utils import build_cors_preflight
from stampshop.api.webhook_routes import build_webhook_handlers
from stampshop.core.config import Settings
from stampshop.integrations.mercadopago import MercadoPagoClient
from stampshop.integrations.telegram_notifier import TelegramNotifier
from stampshop.logging_config import logger
from stampshop.services.budget_service import BudgetService
from stampshop.services.catalog import ProductCatalog
from stampshop.services.checkout import PreferenceGateway
from stampshop.services.notification_builder import NotificationBuilder
from stampshop.services.order_service import OrderService
from stampshop.services.payment_service import PaymentService
from stampshop.services.webhook_relay import PaymentWebhookRelay

# Logo uploads go through multipart
CLIENT_MAX_SIZE = 10 * 1024 * 1024


@dataclass
class AppServices:
    catalog: ProductCatalog
    payments: PreferenceGateway
    relay: PaymentWebhookRelay
    orders: OrderService
    budget: BudgetService
    notifier: TelegramNotifier
    mp_client: MercadoPagoClient | None = None


def build_services(settings: Settings, bot: Bot | None = None) -> AppServices:
    """Wire the production collaborators from settings."""
    mp_client = MercadoPagoClient(settings.payment.access_token, settings.payment.api_url)
    notifier = TelegramNotifier(bot)
    orders = OrderService(settings.orders_dir)
    builder = NotificationBuilder(settings.cors_origin)
    recipient = settings.messaging.merchant_chat_id
    if not settings.messaging.enabled:
        logger.warning("Merchant messaging not configured; notifications are only logged")

    return AppServices(
        catalog=ProductCatalog.from_file(settings.products_path),
        payments=PaymentService(
            mp_client,
            storefront_url=settings.cors_origin,
            notification_url=settings.webhook_url,
            currency_id=settings.payment.currency,
        ),
        relay=PaymentWebhookRelay(
            notifier, recipient, payment_client=mp_client, orders=orders, builder=builder
        ),
        orders=orders,
        budget=BudgetService(notifier, recipient, builder=builder),
        notifier=notifier,
        mp_client=mp_client,
    )


def create_app(settings: Settings, services: AppServices | None = None) -> web.Application:
    """Create aiohttp web application with the storefront API routes."""
    services = services or build_services(settings)
    cors_origin = settings.cors_origin
    app = web.Application(client_max_size=CLIENT_MAX_SIZE)
    app["settings"] = settings
    app["services"] = services

    async def health_check(request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "version": __version__})

    async def close_clients(app: web.Application) -> None:
        if services.mp_client is not None:
            await services.mp_client.close()
        await services.notifier.close()

    app.router.add_get("/health", health_check)
    app.router.add_get("/api/products", build_catalog_handlers(services.catalog, cors_origin))
    app.router.add_post(
        "/api/create-preference", build_checkout_handlers(services.payments, cors_origin)
    )
    app.router.add_post("/api/webhook", build_webhook_handlers(services.relay))
    app.router.add_post("/api/request-budget", build_budget_handlers(services.budget, cors_origin))
    app.router.add_get("/api/order/{order_id}", build_order_handlers(services.orders, cors_origin))
    app.router.add_route("OPTIONS", "/api/{tail:.*}", build_cors_preflight(cors_origin))

    app.on_cleanup.append(close_clients)
    logger.info(f"Storefront API ready ({len(services.catalog)} products, CORS origin {cors_origin})")
    return app
