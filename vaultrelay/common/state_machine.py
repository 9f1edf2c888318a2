"""Checkout order phases as seen by the relay.

PayPal owns the real order state; these phases only classify the resources
the relay passes through so transitions can be checked and logged.
"""

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "CREATED": {"AUTO_CAPTURED", "PENDING_CAPTURE"},
    "PENDING_CAPTURE": {"CAPTURED"},
    "AUTO_CAPTURED": set(),
    "CAPTURED": set(),
}


def validate_transition(current: str, new: str) -> None:
    """Raise when a transition is not allowed by the state machine."""

    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValueError(f"Invalid transition: {current} -> {new}")


def captures_of(order: dict) -> list[dict]:
    """Return capture records nested in the first purchase unit, if any."""

    units = order.get("purchase_units") or []
    if not units:
        return []
    return (units[0].get("payments") or {}).get("captures") or []


def order_phase(order: dict) -> str:
    """Classify a freshly created order resource.

    Orders charged to a vaulted token come back already captured; everything
    else waits for the shopper's approval and an explicit capture call.
    """

    if captures_of(order):
        return "AUTO_CAPTURED"
    return "PENDING_CAPTURE"


def capture_phase(capture: dict) -> str:
    """Phase reached after an explicit capture call."""

    if capture.get("status") == "COMPLETED":
        return "CAPTURED"
    return "PENDING_CAPTURE"
