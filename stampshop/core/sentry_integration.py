"""Sentry integration for error tracking and monitoring."""
from __future__ import annotations

import logging
import os

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)


def init_sentry(
    environment: str = "production",
    enable_logging: bool = True,
    sample_rate: float = 1.0,
    traces_sample_rate: float = 0.1,
) -> bool:
    """Initialize Sentry error tracking.

    Args:
        environment: Environment name (production, staging, development)
        enable_logging: Capture ERROR logs as events and INFO logs as breadcrumbs
        sample_rate: Error sampling rate (1.0 = 100%)
        traces_sample_rate: Performance tracing rate (0.1 = 10%)

    Returns:
        True if Sentry was initialized successfully
    """
    sentry_dsn = os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        logger.info("SENTRY_DSN not set - error tracking disabled")
        return False

    integrations = []
    if enable_logging:
        integrations.append(LoggingIntegration(level=logging.INFO, event_level=logging.ERROR))

    try:
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=environment,
            integrations=integrations,
            sample_rate=sample_rate,
            traces_sample_rate=traces_sample_rate,
            send_default_pii=False,
        )
    except Exception as e:
        logger.warning(f"Sentry initialization failed: {e}")
        return False

    logger.info(f"Sentry initialized (environment={environment})")
    return True
