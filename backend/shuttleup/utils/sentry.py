import logging
import os

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from ..exceptions import DomainException

logger = logging.getLogger(__name__)


def _sample_rate(env_var: str) -> float:
    raw_value = (os.getenv(env_var) or "").strip()
    if not raw_value:
        return 0.0

    try:
        value = float(raw_value)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", env_var, raw_value)
        return 0.0

    if not 0.0 <= value <= 1.0:
        logger.warning("Ignoring %s=%r: must be between 0 and 1", env_var, raw_value)
        return 0.0

    return value


def drop_client_errors(event, hint):
    """Rejected finalize attempts and bad input are expected; keep them out of Sentry."""

    exc_info = hint.get("exc_info") if hint else None
    if exc_info and isinstance(exc_info[1], DomainException):
        if exc_info[1].status_code < 500:
            return None
    return event


def init_sentry() -> bool:
    """Initialise Sentry when ``SENTRY_DSN`` is set; return whether it is active."""

    dsn = (os.getenv("SENTRY_DSN") or "").strip()
    if not dsn:
        logger.info("SENTRY_DSN not provided; error reporting disabled.")
        return False

    environment = (os.getenv("SENTRY_ENVIRONMENT") or "").strip() or None
    sentry_sdk.init(
        dsn=dsn,
        integrations=[
            FastApiIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        environment=environment,
        release=(os.getenv("SENTRY_RELEASE") or "").strip() or None,
        traces_sample_rate=_sample_rate("SENTRY_TRACES_SAMPLE_RATE"),
        profiles_sample_rate=_sample_rate("SENTRY_PROFILES_SAMPLE_RATE"),
        before_send=drop_client_errors,
        send_default_pii=False,
    )
    logger.info("Sentry enabled (environment=%s)", environment or "default")
    return True
