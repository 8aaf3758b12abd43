"""Shared pytest fixtures for the storefront tests."""
from __future__ import annotations

import os
from dataclasses import dataclass, field

import pytest

from stampshop.core.config import MessagingConfig, PaymentConfig, Settings
from stampshop.core.exceptions import NotificationException, PaymentGatewayException
from stampshop.domain.payment import PreferenceRequest, PreferenceResult

SAMPLE_PRODUCTS = [
    {"id": 1, "name": "Sello Automático", "price": 3500, "category": ["automáticos"], "maxLines": 4},
    {"id": 5, "name": "Kit Logo", "price": 0, "category": ["kits"]},
    {"id": 6, "name": "Tinta", "price": 1500, "category": "tintas"},
    {"id": 7, "name": "Sello Escolar", "price": 4500, "category": ["escolar"]},
    {"id": 8, "name": "Kit Empanadas", "price": 9800, "category": ["kits"]},
]


@pytest.fixture(scope="session", autouse=True)
def _test_env_vars() -> None:
    """Provide minimal env vars required for settings in tests."""
    if not os.getenv("MP_ACCESS_TOKEN"):
        os.environ["MP_ACCESS_TOKEN"] = "TEST-TOKEN"
    os.environ.setdefault("ENVIRONMENT", "test")


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        payment=PaymentConfig(access_token="TEST-TOKEN", api_url="https://mp.test", currency="ARS"),
        messaging=MessagingConfig(bot_token="", merchant_chat_id=1),
        cors_origin="https://shop.test",
        public_backend_url="https://api.shop.test",
        port=8080,
        redis_url=None,
        products_path=str(tmp_path / "products.json"),
        orders_dir=str(tmp_path / "orders"),
        storefront_api_url="https://api.shop.test/api",
        environment="test",
    )


@dataclass
class DummyNotifier:
    fail: bool = False
    texts: list[tuple[object, str]] = field(default_factory=list)
    documents: list[tuple[object, str, bytes]] = field(default_factory=list)

    async def send_text(self, recipient, text: str) -> None:
        if self.fail:
            raise NotificationException("telegram down")
        self.texts.append((recipient, text))

    async def send_document(self, recipient, filename: str, content: bytes, caption=None) -> None:
        if self.fail:
            raise NotificationException("telegram down")
        self.documents.append((recipient, filename, content))

    async def close(self) -> None:
        return None


@dataclass
class DummyGateway:
    fail: bool = False
    requests: list[PreferenceRequest] = field(default_factory=list)

    async def create_preference(self, request: PreferenceRequest) -> PreferenceResult:
        self.requests.append(request)
        if self.fail:
            raise PaymentGatewayException("gateway down", status=502)
        n = len(self.requests)
        return PreferenceResult(preference_id=f"pref-{n}", redirect_url=f"https://mp.test/init/{n}")


@pytest.fixture()
def notifier() -> DummyNotifier:
    return DummyNotifier()


@pytest.fixture()
def gateway() -> DummyGateway:
    return DummyGateway()


@pytest.fixture()
async def aiohttp_client():
    """Minimal aiohttp_client fixture to avoid pytest-aiohttp dependency."""
    clients: list[object] = []

    async def _make_client(app):
        from aiohttp.test_utils import TestClient, TestServer

        server = TestServer(app)
        client = TestClient(server)
        await client.start_server()
        clients.append(client)
        return client

    try:
        yield _make_client
    finally:
        for client in clients:
            await client.close()


@pytest.fixture()
def app(settings, notifier, gateway):
    """Storefront API app wired with dummy collaborators."""
    from stampshop.api.server import AppServices, create_app
    from stampshop.services.budget_service import BudgetService
    from stampshop.services.catalog import ProductCatalog
    from stampshop.services.order_service import OrderService
    from stampshop.services.webhook_relay import PaymentWebhookRelay

    orders = OrderService(settings.orders_dir)
    services = AppServices(
        catalog=ProductCatalog.from_records(SAMPLE_PRODUCTS),
        payments=gateway,
        relay=PaymentWebhookRelay(notifier, settings.messaging.merchant_chat_id, orders=orders),
        orders=orders,
        budget=BudgetService(notifier, settings.messaging.merchant_chat_id),
        notifier=notifier,
    )
    return create_app(settings, services)
