"""Entry point: ``python -m stampshop.main`` or the ``stampshop`` script."""
from __future__ import annotations

from aiogram import Bot
from aiohttp import web

from stampshop.api.server import build_services, create_app
from stampshop.core.config import load_settings
from stampshop.core.sentry_integration import init_sentry
from stampshop.logging_config import setup_logging


def main() -> None:
    logger = setup_logging()
    settings = load_settings()
    init_sentry(environment=settings.environment)

    bot = Bot(token=settings.messaging.bot_token) if settings.messaging.bot_token else None
    app = create_app(settings, build_services(settings, bot))

    logger.info(f"🌐 Storefront API starting on port {settings.port}")
    web.run_app(app, host="0.0.0.0", port=settings.port, print=None)


if __name__ == "__main__":
    main()
