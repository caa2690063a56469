"""Parsing of inbound Paystack webhook envelopes.

The JSON body is parsed once, here, into one of three shapes:

- ``OrderCharge``: a storefront checkout (``metadata.cart`` + ``metadata.storeId``)
- ``ActivationCharge``: a plan purchase (``metadata.userId``)
- ``OtherEvent``: any event we acknowledge but do not act on

Anything that claims to be a ``charge.success`` but lacks the fields needed to
act on it raises ``MalformedEvent``.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from settlement.errors import MalformedEvent

CHARGE_SUCCESS = "charge.success"

PLAN_INTERVALS = ("monthly", "yearly")


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class OrderCharge:
    reference: str
    amount_minor: int
    currency: str
    store_id: str
    cart: Tuple[CartLine, ...]
    customer: Dict[str, Any] = field(default_factory=dict)
    shipping_address: Optional[Dict[str, Any]] = None
    event_type: str = CHARGE_SUCCESS

    @property
    def amount_captured(self) -> float:
        return self.amount_minor / 100.0

    @property
    def customer_email(self) -> Optional[str]:
        return (self.customer or {}).get("email")


@dataclass(frozen=True)
class ActivationCharge:
    reference: str
    amount_minor: int
    currency: str
    user_id: str
    plan_interval: str = "monthly"
    plan_tier: Optional[str] = None
    customer: Dict[str, Any] = field(default_factory=dict)
    event_type: str = CHARGE_SUCCESS

    @property
    def amount_captured(self) -> float:
        return self.amount_minor / 100.0

    @property
    def customer_email(self) -> Optional[str]:
        return (self.customer or {}).get("email")


@dataclass(frozen=True)
class OtherEvent:
    event_type: str
    reference: Optional[str] = None


WebhookEvent = Union[OrderCharge, ActivationCharge, OtherEvent]


def _str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return ""


def _positive_int(value: Any, name: str, *, minimum: int) -> int:
    if isinstance(value, bool):
        raise MalformedEvent(f"{name} must be an integer")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int):
        raise MalformedEvent(f"{name} must be an integer")
    if value < minimum:
        raise MalformedEvent(f"{name} must be >= {minimum}")
    return value


def _metadata(data: Dict[str, Any]) -> Dict[str, Any]:
    meta = data.get("metadata")
    if isinstance(meta, str) and meta.strip():
        # Paystack forwards metadata verbatim; some clients send it pre-serialised.
        try:
            meta = json.loads(meta)
        except ValueError:
            raise MalformedEvent("metadata is not valid JSON")
    if not meta:
        raise MalformedEvent("charge has no metadata")
    if not isinstance(meta, dict):
        raise MalformedEvent("metadata must be an object")
    return meta


def _cart(raw: Any) -> Tuple[CartLine, ...]:
    if not isinstance(raw, list) or not raw:
        raise MalformedEvent("cart must be a non-empty list")
    lines = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise MalformedEvent(f"cart[{i}] must be an object")
        pid = _str(item.get("id"))
        if not pid:
            raise MalformedEvent(f"cart[{i}] has no product id")
        qty = _positive_int(item.get("quantity"), f"cart[{i}].quantity", minimum=1)
        lines.append(CartLine(product_id=pid, quantity=qty))
    return tuple(lines)


def parse_event(payload: Any, default_currency: str = "USD") -> WebhookEvent:
    if not isinstance(payload, dict):
        raise MalformedEvent("envelope must be a JSON object")

    event_type = _str(payload.get("event"))
    if not event_type:
        raise MalformedEvent("envelope has no event type")

    data = payload.get("data")
    if event_type != CHARGE_SUCCESS:
        reference = _str(data.get("reference")) if isinstance(data, dict) else ""
        return OtherEvent(event_type=event_type, reference=reference or None)

    if not isinstance(data, dict):
        raise MalformedEvent("charge has no data object")

    reference = _str(data.get("reference"))
    if not reference:
        raise MalformedEvent("charge has no reference")
    amount = _positive_int(data.get("amount"), "amount", minimum=0)
    currency = _str(data.get("currency")).upper() or default_currency
    customer = data.get("customer") if isinstance(data.get("customer"), dict) else {}

    meta = _metadata(data)

    if meta.get("cart"):
        store_id = _str(meta.get("storeId"))
        if not store_id:
            raise MalformedEvent("cart charge has no storeId")
        shipping = meta.get("shippingAddress")
        return OrderCharge(
            reference=reference,
            amount_minor=amount,
            currency=currency,
            store_id=store_id,
            cart=_cart(meta.get("cart")),
            customer=customer,
            shipping_address=shipping if isinstance(shipping, dict) else None,
        )

    user_id = _str(meta.get("userId"))
    if user_id:
        interval = (_str(meta.get("plan")) or "monthly").lower()
        if interval not in PLAN_INTERVALS:
            raise MalformedEvent(f"unknown billing interval: {interval}")
        tier = _str(meta.get("planTier")).upper() or None
        return ActivationCharge(
            reference=reference,
            amount_minor=amount,
            currency=currency,
            user_id=user_id,
            plan_interval=interval,
            plan_tier=tier,
            customer=customer,
        )

    raise MalformedEvent("metadata has neither cart nor userId")
