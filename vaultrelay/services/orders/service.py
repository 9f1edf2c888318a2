"""Checkout order creation and capture.

Two order shapes exist: a direct PayPal redirect flow that vaults the
instrument on success, and a charge against an already vaulted
payment-method token that PayPal captures at creation time.
"""

from vaultrelay.common.config import RelaySettings
from vaultrelay.common.logging import logger
from vaultrelay.common.state_machine import capture_phase, captures_of, order_phase, validate_transition
from vaultrelay.common.variants import CheckoutOrder, DirectOrder, ReturningPayer, VaultedOrder
from vaultrelay.services.token.service import TokenService

ORDERS_PATH = "/v2/checkout/orders"


def _purchase_unit(settings: RelaySettings, description: str) -> dict:
    return {
        "amount": {"currency_code": settings.order_currency, "value": settings.order_amount},
        "description": description,
    }


def build_order_payload(settings: RelaySettings, order: CheckoutOrder, origin: str) -> dict:
    """Translate an order variant into the PayPal create-order body."""

    if isinstance(order, VaultedOrder):
        return {
            "intent": "CAPTURE",
            "purchase_units": [_purchase_unit(settings, f"{settings.order_description} (saved)")],
            "payment_source": {"token": {"id": order.vault_id, "type": "PAYMENT_METHOD_TOKEN"}},
        }

    origin = origin.rstrip("/")
    vault = {"store_in_vault": "ON_SUCCESS", "usage_type": "MERCHANT", "customer_type": "CONSUMER"}
    if isinstance(order.payer, ReturningPayer):
        # Same vault customer record accumulates the new instrument.
        vault["customer_id"] = order.payer.customer_id
    return {
        "intent": "CAPTURE",
        "purchase_units": [_purchase_unit(settings, settings.order_description)],
        "payment_source": {
            "paypal": {
                "experience_context": {
                    "payment_method_preference": "IMMEDIATE_PAYMENT_REQUIRED",
                    "brand_name": settings.brand_name,
                    "locale": settings.locale,
                    "landing_page": "LOGIN",
                    "shipping_preference": "NO_SHIPPING",
                    "user_action": "PAY_NOW",
                    "return_url": f"{origin}/success",
                    "cancel_url": f"{origin}/cancel",
                },
                "attributes": {"vault": vault},
            }
        },
    }


class OrderService:
    """Creates and captures PayPal checkout orders."""

    def __init__(self, settings: RelaySettings, tokens: TokenService) -> None:
        self.settings = settings
        self.tokens = tokens

    async def create_order(self, order: CheckoutOrder, origin: str) -> dict:
        """Create an order; vaulted orders come back already captured."""

        payload = build_order_payload(self.settings, order, origin)
        if isinstance(order, VaultedOrder):
            logger.info("creating order with saved payment method vault_id=%s", order.vault_id)
        elif isinstance(order, DirectOrder):
            logger.info("creating order with vault-on-success payer=%s", order.payer.kind)

        resource = await self.tokens.bearer_request(
            "orders_create",
            "POST",
            ORDERS_PATH,
            json=payload,
            request_id_prefix="ORDER",
            error_message="Order creation failed",
        )

        phase = order_phase(resource)
        expected = "AUTO_CAPTURED" if isinstance(order, VaultedOrder) else "PENDING_CAPTURE"
        if phase != expected:
            logger.warning(
                "unexpected order phase id=%s kind=%s expected=%s phase=%s",
                resource.get("id"),
                order.kind,
                expected,
                phase,
            )
        logger.info("order created id=%s status=%s phase=%s", resource.get("id"), resource.get("status"), phase)
        if phase == "AUTO_CAPTURED":
            capture = captures_of(resource)[0]
            logger.info("order auto-captured capture_id=%s capture_status=%s", capture.get("id"), capture.get("status"))
        return resource

    async def capture_order(self, order_id: str) -> dict:
        """Capture an approved order (direct flow only)."""

        resource = await self.tokens.bearer_request(
            "orders_capture",
            "POST",
            f"{ORDERS_PATH}/{order_id}/capture",
            request_id_prefix="CAPTURE",
            error_message="Order capture failed",
        )
        try:
            validate_transition("PENDING_CAPTURE", capture_phase(resource))
        except ValueError as exc:
            logger.warning("capture did not complete order_id=%s status=%s: %s", order_id, resource.get("status"), exc)
        vault = (((resource.get("payment_source") or {}).get("paypal") or {}).get("attributes") or {}).get("vault") or {}
        logger.info(
            "order captured id=%s status=%s vault_status=%s",
            resource.get("id"),
            resource.get("status"),
            vault.get("status"),
        )
        return resource
