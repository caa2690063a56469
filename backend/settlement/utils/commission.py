"""Commission split for marketplace orders.

Money stays in float currency units here. Rounding to cents belongs to
presentation (``to_dict``), never to the split, so many small payouts do not
accumulate rounding drift.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from settlement.models.payout import (
    PAYOUT_STATUS_PENDING,
    PAYOUT_TYPE_SALE_COMMISSION,
    PAYOUT_TYPE_STORE_PROFIT,
)
from settlement.models.revenue import REVENUE_TYPE_TRANSACTION
from settlement.utils.postings import PayoutDraft, RevenueDraft


# Platform commission on vendor-managed sales, taken from the wholesale cost
RATES = {
    "premium_vendor": 0.03,
    "standard_vendor": 0.09,
}


def vendor_commission_rate(plan_tier: Optional[str], premium_tier: str = "BRAND") -> float:
    """Exact tier match only; unknown or missing tiers pay the standard rate."""
    if plan_tier is not None and plan_tier == premium_tier:
        return RATES["premium_vendor"]
    return RATES["standard_vendor"]


def compute_commission(amount: float, rate: float) -> float:
    a = float(amount or 0.0)
    r = float(rate or 0.0)
    if a < 0:
        a = 0.0
    if r < 0:
        r = 0.0
    return a * r


@dataclass(frozen=True)
class PricedLine:
    """A cart line with prices and vendor read from the catalog at settlement time."""

    product_id: str
    quantity: int
    wholesale_price: float
    retail_price: float
    vendor_id: Optional[str]
    managed: bool
    vendor_tier: Optional[str] = None
    product_name: str = ""


@dataclass(frozen=True)
class LineSplit:
    product_id: str
    quantity: int
    wholesale_total: float
    vendor_id: Optional[str] = None
    commission_rate: float = 0.0
    platform_fee: float = 0.0
    vendor_payout: float = 0.0

    @property
    def is_split(self) -> bool:
        return self.commission_rate > 0


@dataclass
class SplitResult:
    amount_captured: float
    total_wholesale_cost: float
    store_profit: float
    lines: List[LineSplit] = field(default_factory=list)
    payouts: List[PayoutDraft] = field(default_factory=list)
    revenues: List[RevenueDraft] = field(default_factory=list)

    @property
    def vendor_payout_total(self) -> float:
        return sum(l.vendor_payout for l in self.lines)

    @property
    def platform_fee_total(self) -> float:
        return sum(l.platform_fee for l in self.lines)


def compute_split(
    lines: Sequence[PricedLine],
    amount_captured: float,
    *,
    reference: str,
    store_owner_id: str,
    platform_vendor_id: str = "admin",
    premium_tier: str = "BRAND",
    audit: Optional[Dict[str, str]] = None,
) -> SplitResult:
    total_wholesale = 0.0
    line_splits: List[LineSplit] = []
    payouts: List[PayoutDraft] = []
    revenues: List[RevenueDraft] = []
    audit = dict(audit or {})

    for i, line in enumerate(lines):
        qty = int(line.quantity)
        wholesale = float(line.wholesale_price or 0.0)
        total_wholesale += wholesale * qty

        if not line.managed or not line.vendor_id or line.vendor_id == platform_vendor_id:
            # Private inventory, or stock the platform supplies itself
            line_splits.append(LineSplit(product_id=line.product_id, quantity=qty, wholesale_total=wholesale * qty, vendor_id=line.vendor_id))
            continue

        rate = vendor_commission_rate(line.vendor_tier, premium_tier)
        unit_fee = compute_commission(wholesale, rate)
        platform_fee = unit_fee * qty
        vendor_payout = (wholesale - unit_fee) * qty

        line_splits.append(LineSplit(
            product_id=line.product_id,
            quantity=qty,
            wholesale_total=wholesale * qty,
            vendor_id=line.vendor_id,
            commission_rate=rate,
            platform_fee=platform_fee,
            vendor_payout=vendor_payout,
        ))

        if vendor_payout > 0:
            payouts.append(PayoutDraft(
                user_id=line.vendor_id,
                amount=vendor_payout,
                type=PAYOUT_TYPE_SALE_COMMISSION,
                status=PAYOUT_STATUS_PENDING,
                idempotency_key=f"{PAYOUT_TYPE_SALE_COMMISSION}:{reference}:{i}:{line.product_id}",
                meta={**audit, "product_id": line.product_id, "product_name": line.product_name, "quantity": qty},
            ))
        if platform_fee > 0:
            revenues.append(RevenueDraft(
                amount=platform_fee,
                type=REVENUE_TYPE_TRANSACTION,
                idempotency_key=f"{REVENUE_TYPE_TRANSACTION}:{reference}:{i}:{line.product_id}",
                meta={"product_id": line.product_id, "vendor_id": line.vendor_id, "rate": rate, "quantity": qty},
            ))

    # Profit is taken once per order, against what the processor actually captured
    store_profit = float(amount_captured) - total_wholesale
    if store_profit > 0:
        payouts.append(PayoutDraft(
            user_id=store_owner_id,
            amount=store_profit,
            type=PAYOUT_TYPE_STORE_PROFIT,
            status=PAYOUT_STATUS_PENDING,
            idempotency_key=f"{PAYOUT_TYPE_STORE_PROFIT}:{reference}",
            meta={**audit, "lines": len(line_splits), "total_wholesale_cost": total_wholesale},
        ))

    return SplitResult(
        amount_captured=float(amount_captured),
        total_wholesale_cost=total_wholesale,
        store_profit=store_profit,
        lines=line_splits,
        payouts=payouts,
        revenues=revenues,
    )
