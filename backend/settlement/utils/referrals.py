from __future__ import annotations

from datetime import datetime, timedelta
from typing import Mapping, Optional

from settlement.config import YEARLY_MULTIPLIER
from settlement.models.payout import PAYOUT_STATUS_PENDING_MATURITY, PAYOUT_TYPE_REFERRAL_REWARD
from settlement.utils.postings import PayoutDraft

MATURITY_HOLD_DAYS = 14

# (minimum active referrals, rate), highest first
REFERRAL_TIERS = (
    (51, 0.20),
    (21, 0.15),
    (0, 0.10),
)


def referral_commission_rate(active_referral_count: int) -> float:
    """Rate earned on a new activation, from the count *before* it is added."""
    count = int(active_referral_count or 0)
    for floor, rate in REFERRAL_TIERS:
        if count >= floor:
            return rate
    return REFERRAL_TIERS[-1][1]


def plan_charge(plan_tier: Optional[str], plan_interval: str, prices: Mapping[str, float]) -> float:
    base = float(prices.get((plan_tier or "").upper(), 0.0) or 0.0)
    if plan_interval == "yearly":
        return base * YEARLY_MULTIPLIER
    return base


def compute_referral_reward(
    *,
    plan_tier: Optional[str],
    plan_interval: str,
    active_referral_count: int,
    prices: Mapping[str, float],
) -> float:
    return plan_charge(plan_tier, plan_interval, prices) * referral_commission_rate(active_referral_count)


def referral_reward_draft(
    *,
    referrer_id: str,
    referred_user_id: str,
    amount: float,
    reference: str,
    now: datetime,
    hold_days: int = MATURITY_HOLD_DAYS,
    meta: Optional[dict] = None,
) -> PayoutDraft:
    # One reward per referred user, whichever charge activates them
    return PayoutDraft(
        user_id=referrer_id,
        amount=amount,
        type=PAYOUT_TYPE_REFERRAL_REWARD,
        status=PAYOUT_STATUS_PENDING_MATURITY,
        idempotency_key=f"{PAYOUT_TYPE_REFERRAL_REWARD}:{referred_user_id}",
        meta={**(meta or {}), "reference": reference},
        referred_user_id=referred_user_id,
        matures_at=now + timedelta(days=int(hold_days)),
    )
