"""Access-token and user identity-token minting against PayPal OAuth."""

from vaultrelay.common.errors import AuthError, UpstreamError
from vaultrelay.common.logging import logger
from vaultrelay.common.paypal_http import PayPalHttp
from vaultrelay.common.variants import NewPayer, Payer, ReturningPayer
from vaultrelay.services.token.cache import AccessTokenCache

OAUTH_TOKEN_PATH = "/v1/oauth2/token"


class TokenService:
    """Exchanges the relay's client credentials for PayPal tokens."""

    def __init__(self, http: PayPalHttp, cache: AccessTokenCache | None = None) -> None:
        self.http = http
        self.cache = cache

    async def _fetch_access_token(self) -> tuple[str, float]:
        body = await self.http.request(
            "oauth_access_token",
            "POST",
            OAUTH_TOKEN_PATH,
            authorization=self.http.basic_auth(),
            data={"grant_type": "client_credentials"},
            error_cls=AuthError,
            error_message="PayPal authentication failed",
        )
        token = body.get("access_token")
        if not token:
            raise AuthError("PayPal authentication failed", details=body)
        return token, float(body.get("expires_in") or 0)

    async def get_access_token(self) -> str:
        """Return a bearer token for server-to-server calls."""

        if self.cache is None:
            token, _ = await self._fetch_access_token()
            return token
        return await self.cache.get_or_fetch(self._fetch_access_token)

    def invalidate(self) -> None:
        """Drop the cached access token so the next call re-authenticates."""

        if self.cache is not None:
            self.cache.clear()

    async def bearer_request(self, operation: str, method: str, path: str, **kwargs) -> dict:
        """Call PayPal with a bearer token.

        A 401 means PayPal no longer accepts the token; the cached copy is
        dropped before the error propagates. No retry is attempted.
        """

        access_token = await self.get_access_token()
        try:
            return await self.http.request(
                operation, method, path, authorization=f"Bearer {access_token}", **kwargs
            )
        except UpstreamError as exc:
            if exc.upstream_status == 401:
                logger.warning("access token rejected operation=%s; clearing cached token", operation)
                self.invalidate()
            raise

    async def generate_user_id_token(self, payer: Payer) -> str:
        """Mint an identity token for the client SDK.

        A returning payer gets a token bound to its customer id through
        `target_customer_id`; a new payer gets an anonymous one.
        """

        form = {"grant_type": "client_credentials", "response_type": "id_token"}
        if isinstance(payer, ReturningPayer):
            form["target_customer_id"] = payer.customer_id
            logger.info("minting user id token for returning payer customer_id=%s", payer.customer_id)
        elif isinstance(payer, NewPayer):
            logger.info("minting user id token for new payer")

        body = await self.http.request(
            "oauth_id_token",
            "POST",
            OAUTH_TOKEN_PATH,
            authorization=self.http.basic_auth(),
            data=form,
            error_cls=AuthError,
            error_message="User ID token generation failed",
        )
        id_token = body.get("id_token")
        if not id_token:
            raise AuthError("User ID token generation failed", details=body)
        return id_token
