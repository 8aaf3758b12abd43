"""Environment-driven configuration objects for the storefront."""
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from stampshop.core.exceptions import ConfigurationException


def _str_to_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ConfigurationException(f"Expected an integer, got {value!r}") from exc


@dataclass(slots=True)
class PaymentConfig:
    access_token: str
    api_url: str
    currency: str


@dataclass(slots=True)
class MessagingConfig:
    bot_token: str
    merchant_chat_id: int

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.merchant_chat_id)


@dataclass(slots=True)
class Settings:
    payment: PaymentConfig
    messaging: MessagingConfig
    cors_origin: str
    public_backend_url: str
    port: int
    redis_url: str | None
    products_path: str
    orders_dir: str
    storefront_api_url: str
    environment: str

    @property
    def webhook_url(self) -> str:
        return f"{self.public_backend_url.rstrip('/')}/api/webhook"

    @property
    def is_dev(self) -> bool:
        return self.environment in ("development", "dev", "local", "test")


def load_settings() -> Settings:
    """Load environment variables once and expose typed settings."""
    load_dotenv()

    access_token = os.getenv("MP_ACCESS_TOKEN", "").strip()
    if not access_token:
        raise ConfigurationException("MP_ACCESS_TOKEN environment variable is not set")

    port = _str_to_int(os.getenv("PORT"), 8080)

    # ngrok in local development, Render in production
    public_backend_url = (
        os.getenv("PUBLIC_BACKEND_URL")
        or os.getenv("RENDER_EXTERNAL_URL")
        or f"http://localhost:{port}"
    )

    payment = PaymentConfig(
        access_token=access_token,
        api_url=os.getenv("MP_API_URL", "https://api.mercadopago.com"),
        currency=os.getenv("CURRENCY", "ARS"),
    )
    messaging = MessagingConfig(
        bot_token=os.getenv("TELEGRAM_BOT_TOKEN", "").strip(),
        merchant_chat_id=_str_to_int(os.getenv("MERCHANT_CHAT_ID"), 0),
    )

    return Settings(
        payment=payment,
        messaging=messaging,
        cors_origin=os.getenv("CORS_ORIGIN", "http://localhost:5173"),
        public_backend_url=public_backend_url,
        port=port,
        redis_url=os.getenv("REDIS_URL") or None,
        products_path=os.getenv("PRODUCTS_PATH", "products.json"),
        orders_dir=os.getenv("ORDERS_DIR", "orders"),
        storefront_api_url=os.getenv("STOREFRONT_API_URL", "http://localhost:8080/api"),
        environment=os.getenv("ENVIRONMENT", "production").strip().lower(),
    )
