"""Request bodies accepted from the checkout page (camelCase on the wire)."""

from pydantic import BaseModel, ConfigDict, Field


class SetupTokenRequest(BaseModel):
    """Payload accepted by `POST /api/setup-tokens`."""

    model_config = ConfigDict(populate_by_name=True)

    customer_id: str | None = Field(default=None, alias="customerId")


class PaymentTokenRequest(BaseModel):
    """Payload accepted by `POST /api/payment-tokens`.

    `setupTokenId` is optional here so a missing id reaches the vault service
    and is answered with the relay's own 400 envelope.
    """

    model_config = ConfigDict(populate_by_name=True)

    setup_token_id: str | None = Field(default=None, alias="setupTokenId")


class OrderRequest(BaseModel):
    """Payload accepted by `POST /api/orders`."""

    model_config = ConfigDict(populate_by_name=True)

    customer_id: str | None = Field(default=None, alias="customerId")
    vault_id: str | None = Field(default=None, alias="vaultId")
