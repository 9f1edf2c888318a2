"""PayPal vault flow: setup tokens, payment-method tokens, token listing."""

from vaultrelay.common.config import RelaySettings
from vaultrelay.common.errors import ValidationError
from vaultrelay.common.logging import logger
from vaultrelay.common.variants import Payer, ReturningPayer
from vaultrelay.services.token.service import TokenService

SETUP_TOKENS_PATH = "/v3/vault/setup-tokens"
PAYMENT_TOKENS_PATH = "/v3/vault/payment-tokens"


def build_setup_token_payload(settings: RelaySettings, payer: Payer, origin: str) -> dict:
    """Setup-token request for merchant-initiated, consumer-type vaulting."""

    origin = origin.rstrip("/")
    payload: dict = {
        "payment_source": {
            "paypal": {
                "usage_type": "MERCHANT",
                "customer_type": "CONSUMER",
                "experience_context": {
                    "brand_name": settings.brand_name,
                    "locale": settings.locale,
                    "shipping_preference": "NO_SHIPPING",
                    "return_url": f"{origin}/success",
                    "cancel_url": f"{origin}/cancel",
                },
            }
        }
    }
    if isinstance(payer, ReturningPayer):
        payload["customer"] = {"id": payer.customer_id}
    return payload


class VaultService:
    """Creates and exchanges vault tokens on behalf of the browser."""

    def __init__(self, settings: RelaySettings, tokens: TokenService) -> None:
        self.settings = settings
        self.tokens = tokens

    async def create_setup_token(self, payer: Payer, origin: str) -> dict:
        """Create an unapproved setup token, linked to the customer when known."""

        payload = build_setup_token_payload(self.settings, payer, origin)
        resource = await self.tokens.bearer_request(
            "vault_create_setup_token",
            "POST",
            SETUP_TOKENS_PATH,
            json=payload,
            request_id_prefix="SETUP",
            error_message="Setup token creation failed",
        )
        logger.info("setup token created id=%s status=%s", resource.get("id"), resource.get("status"))
        return resource

    async def exchange_setup_token(self, setup_token_id: str | None) -> dict:
        """Exchange an approved setup token for a durable payment-method token."""

        if not setup_token_id:
            raise ValidationError("setupTokenId is required")
        resource = await self.tokens.bearer_request(
            "vault_create_payment_token",
            "POST",
            PAYMENT_TOKENS_PATH,
            json={"payment_source": {"token": {"id": setup_token_id, "type": "SETUP_TOKEN"}}},
            request_id_prefix="PAYMENT-TOKEN",
            error_message="Payment token creation failed",
        )
        logger.info(
            "payment token created id=%s customer_id=%s",
            resource.get("id"),
            (resource.get("customer") or {}).get("id"),
        )
        return resource

    async def list_payment_tokens(self, customer_id: str) -> dict:
        """List every payment-method token vaulted for one customer."""

        if not customer_id:
            raise ValidationError("customerId is required")
        resource = await self.tokens.bearer_request(
            "vault_list_payment_tokens",
            "GET",
            PAYMENT_TOKENS_PATH,
            params={"customer_id": customer_id},
            error_message="Payment token lookup failed",
        )
        logger.info(
            "payment tokens fetched customer_id=%s count=%s",
            customer_id,
            len(resource.get("payment_tokens") or []),
        )
        return resource
