"""Async HTTP transport for the PayPal REST API.

Wraps httpx with the relay's conventions: base URL chosen by mode, basic or
bearer authorization, `PayPal-Request-Id` headers, explicit timeouts, upstream
metrics, and translation of failures into `UpstreamError`.
"""

import base64
from time import perf_counter, time
from typing import Any
from uuid import uuid4

import httpx

from vaultrelay.common.config import RelaySettings
from vaultrelay.common.errors import ConfigError, UpstreamError
from vaultrelay.common.logging import logger
from vaultrelay.common.metrics import upstream_latency_seconds, upstream_requests_total


def request_id(prefix: str) -> str:
    """Timestamp-based `PayPal-Request-Id` value, e.g. `ORDER-1700000000000-1a2b3c4d`."""

    return f"{prefix}-{int(time() * 1000)}-{uuid4().hex[:8]}"


def _error_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"


class PayPalHttp:
    """Thin async client over PayPal endpoints used by the relay services.

    A new `httpx.AsyncClient` is opened per call; `transport` lets tests swap
    in an `httpx.MockTransport`.
    """

    def __init__(self, settings: RelaySettings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self.base_url = settings.api_base
        self.transport = transport

    def basic_auth(self) -> str:
        """Base64 `client_id:client_secret` header value."""

        if not self.settings.paypal_client_id or not self.settings.paypal_client_secret:
            raise ConfigError("PayPal client credentials are not configured")
        raw = f"{self.settings.paypal_client_id}:{self.settings.paypal_client_secret}"
        return f"Basic {base64.b64encode(raw.encode()).decode()}"

    async def request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        authorization: str,
        json: dict | None = None,
        data: dict | None = None,
        params: dict | None = None,
        request_id_prefix: str | None = None,
        error_cls: type[UpstreamError] = UpstreamError,
        error_message: str = "PayPal request failed",
    ) -> dict:
        """Send one request and return the decoded JSON body.

        A non-2xx answer, a non-JSON success body or a transport failure raises
        `error_cls` with the upstream body (or transport message) as details.
        """

        headers = {"Authorization": authorization}
        if data is None:
            headers["Content-Type"] = "application/json"
        if request_id_prefix:
            headers["PayPal-Request-Id"] = request_id(request_id_prefix)

        start = perf_counter()
        status_code = "transport_error"
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.http_timeout_seconds,
                transport=self.transport,
            ) as client:
                resp = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers=headers,
                    json=json,
                    data=data,
                    params=params,
                )
            status_code = str(resp.status_code)
        except httpx.HTTPError as exc:
            logger.error("paypal transport error operation=%s error=%s", operation, exc)
            raise error_cls(error_message, details=str(exc)) from exc
        finally:
            upstream_latency_seconds.labels(operation=operation).observe(max(0.0, perf_counter() - start))
            upstream_requests_total.labels(operation=operation, status_code=status_code).inc()

        if resp.status_code >= 400:
            body = _error_body(resp)
            logger.error(
                "paypal rejected request operation=%s status=%s body=%s",
                operation,
                resp.status_code,
                body,
            )
            raise error_cls(error_message, details=body, upstream_status=resp.status_code)
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            logger.error(
                "paypal returned a non-JSON body operation=%s status=%s content_type=%s",
                operation,
                resp.status_code,
                resp.headers.get("content-type"),
            )
            raise error_cls(error_message, details=resp.text, upstream_status=resp.status_code) from exc
