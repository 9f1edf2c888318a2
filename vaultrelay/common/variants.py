"""Tagged variants for the two branching decisions of the checkout flow.

A payer is either brand new or returning (bound to a PayPal customer id). An
order is either paid directly through the PayPal approval flow or charged to
a previously vaulted payment-method token.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class NewPayer(BaseModel):
    """Shopper with no known PayPal customer record."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["new"] = "new"


class ReturningPayer(BaseModel):
    """Shopper already known to the PayPal vault."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["returning"] = "returning"
    customer_id: str = Field(min_length=1)


Payer = NewPayer | ReturningPayer


class DirectOrder(BaseModel):
    """Order paid through the PayPal redirect flow, vaulting on success."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["direct"] = "direct"
    payer: Payer = Field(default_factory=NewPayer)


class VaultedOrder(BaseModel):
    """Order charged to an existing payment-method token (auto-captured)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["vaulted"] = "vaulted"
    vault_id: str = Field(min_length=1)
    customer_id: str | None = None


CheckoutOrder = DirectOrder | VaultedOrder


def payer_from(customer_id: str | None) -> Payer:
    """Build the payer variant from an optional customer id (empty means new)."""

    if customer_id:
        return ReturningPayer(customer_id=customer_id)
    return NewPayer()


def order_from(customer_id: str | None, vault_id: str | None) -> CheckoutOrder:
    """Build the order variant; a vault id always wins over the redirect flow."""

    if vault_id:
        return VaultedOrder(vault_id=vault_id, customer_id=customer_id or None)
    return DirectOrder(payer=payer_from(customer_id))
