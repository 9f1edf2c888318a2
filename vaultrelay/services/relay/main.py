"""Browser-facing HTTP surface of the vault relay.

Pure dispatch: parameters are pulled from the request, handed to the token,
vault or order service, and the PayPal resource is returned as JSON. Every
`RelayError` becomes a `{error, details?}` envelope.
"""

from pathlib import Path
from time import perf_counter
from uuid import uuid4

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from vaultrelay.common.config import RelaySettings
from vaultrelay.common.errors import ConfigError, RelayError, ValidationError
from vaultrelay.common.logging import configure_logging, customer_id_ctx, logger, request_id_ctx
from vaultrelay.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from vaultrelay.common.paypal_http import PayPalHttp
from vaultrelay.common.startup import log_startup_config
from vaultrelay.common.tracing import instrument_app, setup_tracing
from vaultrelay.common.variants import order_from, payer_from
from vaultrelay.services.orders.service import OrderService
from vaultrelay.services.relay.schemas import OrderRequest, PaymentTokenRequest, SetupTokenRequest
from vaultrelay.services.token.cache import AccessTokenCache
from vaultrelay.services.token.service import TokenService
from vaultrelay.services.vault.service import VaultService


def _origin(request: Request) -> str:
    """Scheme and host of the current request, used for return/cancel URLs."""

    return str(request.base_url).rstrip("/")


def create_app(settings: RelaySettings, transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """Wire services from an explicit settings object and build the app."""

    http = PayPalHttp(settings, transport=transport)
    cache = None
    if settings.access_token_cache_enabled:
        cache = AccessTokenCache(settings.access_token_refresh_margin_seconds)
    tokens = TokenService(http, cache)
    vault = VaultService(settings, tokens)
    orders = OrderService(settings, tokens)

    app = FastAPI(title="PayPal Vault Relay")
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if settings.tracing_enabled:
        instrument_app(app)

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Set request context and record request count and latency."""

        request_token = request_id_ctx.set(request.headers.get("x-request-id") or str(uuid4()))
        customer_token = customer_id_ctx.set("")
        start = perf_counter()
        route = request.url.path
        method = request.method
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            return response
        finally:
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(
                service=settings.service_name,
                route=route,
                method=method,
            ).observe(elapsed)
            http_requests_total.labels(
                service=settings.service_name,
                route=route,
                method=method,
                status_code=str(status_code),
            ).inc()
            request_id_ctx.reset(request_token)
            customer_id_ctx.reset(customer_token)

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        logger.error(
            "request failed path=%s status=%s error=%s details=%s",
            request.url.path,
            exc.status_code,
            exc.message,
            exc.details,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return await relay_error_handler(
            request, ValidationError("invalid request body", details=jsonable_encoder(exc.errors()))
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled error path=%s error=%s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": "internal server error"})

    @app.get("/health")
    def health():
        """Liveness probe that also reports whether credentials are set."""

        return {
            "status": "OK",
            "mode": settings.paypal_mode,
            "clientIdConfigured": bool(settings.paypal_client_id),
            "clientSecretConfigured": bool(settings.paypal_client_secret),
        }

    @app.get("/api/config")
    def client_config():
        """Public configuration the browser SDK needs."""

        if not settings.paypal_client_id:
            raise ConfigError("PayPal client ID is not configured")
        return {"clientId": settings.paypal_client_id, "mode": settings.paypal_mode}

    @app.get("/api/generate-client-token")
    async def generate_client_token(customer_id: str | None = None):
        """Mint a user id token, bound to `customer_id` for returning payers."""

        if customer_id:
            customer_id_ctx.set(customer_id)
        id_token = await tokens.generate_user_id_token(payer_from(customer_id))
        return {"id_token": id_token}

    @app.post("/api/setup-tokens")
    async def create_setup_token(request: Request, req: SetupTokenRequest | None = None):
        req = req or SetupTokenRequest()
        if req.customer_id:
            customer_id_ctx.set(req.customer_id)
        return await vault.create_setup_token(payer_from(req.customer_id), _origin(request))

    @app.post("/api/payment-tokens")
    async def create_payment_token(req: PaymentTokenRequest | None = None):
        req = req or PaymentTokenRequest()
        return await vault.exchange_setup_token(req.setup_token_id)

    @app.get("/api/payment-tokens/{customer_id}")
    async def list_payment_tokens(customer_id: str):
        customer_id_ctx.set(customer_id)
        return await vault.list_payment_tokens(customer_id)

    @app.post("/api/orders")
    async def create_order(request: Request, req: OrderRequest | None = None):
        """Create an order from a vaulted token or the PayPal redirect flow."""

        req = req or OrderRequest()
        if req.customer_id:
            customer_id_ctx.set(req.customer_id)
        return await orders.create_order(order_from(req.customer_id, req.vault_id), _origin(request))

    @app.post("/api/orders/{order_id}/capture")
    async def capture_order(order_id: str):
        return await orders.capture_order(order_id)

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        # Mounted last so API routes keep priority over `/`.
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


def build_default_app() -> FastAPI:
    """Process entrypoint: load settings, configure logging/tracing, build app."""

    settings = RelaySettings()
    configure_logging(settings.service_name, settings.log_level)
    if settings.tracing_enabled:
        setup_tracing(settings)
    log_startup_config(
        settings,
        [
            "paypal_mode",
            "paypal_client_id",
            "paypal_client_secret",
            "port",
            "access_token_cache_enabled",
            "http_timeout_seconds",
        ],
    )
    return create_app(settings)


def main() -> None:
    """Run the relay with uvicorn on the configured port."""

    settings = RelaySettings()
    uvicorn.run(
        "vaultrelay.services.relay.main:build_default_app",
        factory=True,
        host="0.0.0.0",
        port=settings.port,
    )


if __name__ == "__main__":
    main()
