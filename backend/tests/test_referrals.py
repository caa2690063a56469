from datetime import datetime, timedelta

import pytest

from settlement.config import PLAN_PRICES
from settlement.utils.referrals import (
    compute_referral_reward,
    plan_charge,
    referral_commission_rate,
    referral_reward_draft,
)


@pytest.mark.parametrize("count,rate", [
    (0, 0.10),
    (20, 0.10),
    (21, 0.15),
    (50, 0.15),
    (51, 0.20),
    (500, 0.20),
])
def test_tier_boundaries(count, rate):
    assert referral_commission_rate(count) == rate


def test_plan_charge_yearly_is_ten_months():
    assert plan_charge("MERCHANT", "monthly", PLAN_PRICES) == pytest.approx(19.99)
    assert plan_charge("MERCHANT", "yearly", PLAN_PRICES) == pytest.approx(199.9)
    assert plan_charge("UNKNOWN", "monthly", PLAN_PRICES) == 0.0


def test_reward_at_twenty_referrals():
    reward = compute_referral_reward(plan_tier="MERCHANT", plan_interval="monthly", active_referral_count=20, prices=PLAN_PRICES)
    assert reward == pytest.approx(1.999)


def test_reward_at_fifty_one_yearly():
    reward = compute_referral_reward(plan_tier="SCALER", plan_interval="yearly", active_referral_count=51, prices=PLAN_PRICES)
    assert reward == pytest.approx(290 * 0.20)


def test_reward_draft_is_held():
    now = datetime(2026, 1, 1, 12, 0, 0)
    d = referral_reward_draft(referrer_id="r", referred_user_id="u", amount=0.01, reference="ref", now=now)
    assert d.status == "pending_maturity"
    assert d.type == "referral_reward"
    assert d.matures_at == now + timedelta(days=14)
    assert d.referred_user_id == "u"
