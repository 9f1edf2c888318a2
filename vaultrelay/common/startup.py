"""Startup-time helpers for safe config logging."""

from vaultrelay.common.config import RelaySettings
from vaultrelay.common.logging import logger


def _safe_value(name: str, value) -> str:
    """Return a loggable value with redaction for secret-like setting names."""

    if value is None or value == "":
        return "<unset>"
    if any(secret in name.upper() for secret in ["SECRET", "PASSWORD"]):
        return "<redacted>"
    if name == "paypal_client_id":
        return f"{value[:20]}..."
    return str(value)


def log_startup_config(settings: RelaySettings, keys: list[str]) -> None:
    """Log selected settings plus the resolved PayPal endpoint."""

    config = {"service": settings.service_name, "api_base": settings.api_base}
    for key in keys:
        config[key] = _safe_value(key, getattr(settings, key, None))
    logger.info("startup_config=%s", config)
    if not settings.paypal_client_id:
        logger.warning("PAYPAL_CLIENT_ID is not set; /api/config will fail until it is configured")
