"""Environment-driven settings for the payment proxy.

The entrypoint builds one `ProxySettings` at startup and hands it to
`create_app`; request handling never reads the environment directly. See
`.env.example` for the supported variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProxySettings(BaseSettings):
    """Typed, immutable view of runtime configuration."""

    service_name: str = "payment-proxy"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    api_key: str = Field(min_length=1, repr=False)
    razorpay_key_id: str = Field(min_length=1)
    razorpay_key_secret: str = Field(min_length=1, repr=False)
    razorpay_api_url: str = "https://api.razorpay.com/v1"
    allowed_origins: str = ""
    upstream_timeout_seconds: float | None = None
    enforce_payment_capture: bool = True
    otel_exporter_otlp_endpoint: str | None = None
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    @property
    def cors_origins(self) -> list[str]:
        """Comma-separated `ALLOWED_ORIGINS`, or `*` when none are configured."""

        origins = [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]
        return origins or ["*"]


def load_settings() -> ProxySettings:
    """Build settings once per process; raises `ValidationError` when incomplete."""

    return ProxySettings()
