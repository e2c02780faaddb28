"""Startup-time helpers for safe config logging."""

from payproxy.common.config import ProxySettings
from payproxy.common.logging import logger


SECRET_MARKERS = ("KEY", "SECRET", "PASSWORD", "TOKEN")


def mask_secret(value: str | None) -> str:
    """Return a partially redacted form of a secret, never the full value."""

    if not value:
        return "<unset>"
    if len(value) < 8:
        return "<redacted>"
    return f"{value[:2]}***{value[-2:]}"


def _safe_value(name: str, value) -> str:
    if value is None:
        return "<unset>"
    if any(marker in name.upper() for marker in SECRET_MARKERS):
        return mask_secret(str(value))
    return str(value)


def startup_config(settings: ProxySettings) -> dict[str, str]:
    """Effective configuration with secret-like keys masked."""

    return {name: _safe_value(name, value) for name, value in settings.model_dump().items()}


def log_startup_config(settings: ProxySettings) -> None:
    """Log the effective config for quick troubleshooting."""

    logger.info("startup_config=%s", startup_config(settings))
