"""Environment-driven settings for the relay process.

Values come from environment variables (or a local `.env`). A settings object
is built once at startup and handed to each service explicitly.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


SANDBOX_API_BASE = "https://api-m.sandbox.paypal.com"
LIVE_API_BASE = "https://api-m.paypal.com"


class RelaySettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "vault-relay"
    log_level: str = "INFO"
    port: int = 3000

    paypal_client_id: str = ""
    paypal_client_secret: str = ""
    paypal_mode: str = "sandbox"
    paypal_api_base: str | None = None
    http_timeout_seconds: float = 30.0

    access_token_cache_enabled: bool = False
    access_token_refresh_margin_seconds: int = 60

    order_currency: str = "JPY"
    order_amount: str = "100"
    order_description: str = "PayPal Vault test item"
    brand_name: str = "PayPal Vault Demo"
    locale: str = "ja-JP"

    allowed_origins: str = "*"
    static_dir: str = "public"

    tracing_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def api_base(self) -> str:
        """PayPal REST base URL for the configured mode."""

        if self.paypal_api_base:
            return self.paypal_api_base.rstrip("/")
        return SANDBOX_API_BASE if self.paypal_mode == "sandbox" else LIVE_API_BASE

    @property
    def cors_origins(self) -> list[str]:
        if self.allowed_origins.strip() == "*":
            return ["*"]
        return [s.strip() for s in self.allowed_origins.split(",") if s.strip()]
