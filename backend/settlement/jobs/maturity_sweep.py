from __future__ import annotations

from collections import defaultdict
from datetime import datetime

from flask import current_app
from sqlalchemy import func

from settlement.extensions import db
from settlement.models import PayoutPending, User
from settlement.models.payout import PAYOUT_STATUS_PENDING, PAYOUT_STATUS_PENDING_MATURITY
from settlement.utils import notify


def release_matured_rewards(*, now: datetime | None = None, limit: int = 500, user_id: str | None = None, force: bool = False) -> dict:
    """Promote held referral rewards whose hold has elapsed to ``pending``.

    ``force`` skips the maturity check for one user (operator-accelerated
    settlement for trusted partners). Emails go out after the commit.
    """
    now = now or datetime.utcnow()
    if force and not user_id:
        raise ValueError("force release needs a user_id")

    q = PayoutPending.query.filter_by(status=PAYOUT_STATUS_PENDING_MATURITY)
    if user_id:
        q = q.filter_by(user_id=user_id)
    if not force:
        q = q.filter(PayoutPending.matures_at <= now)
    rows = q.order_by(PayoutPending.id.asc()).limit(int(limit)).all()

    totals: dict[str, float] = defaultdict(float)
    currencies: dict[str, str] = {}
    for p in rows:
        p.status = PAYOUT_STATUS_PENDING
        p.matured_at = now
        totals[p.user_id] += float(p.amount or 0.0)
        currencies[p.user_id] = p.currency or "USD"

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    if rows:
        current_app.logger.info("released %d matured rewards for %d users", len(rows), len(totals))

    notified = 0
    for uid, amount in totals.items():
        u = User.query.filter_by(id=uid).first()
        if not u or not u.email:
            continue
        res = notify.funds_available(u.email, u.name or "", notify.format_money(amount, currencies.get(uid, "USD")))
        if res.ok:
            notified += 1

    return {"released": len(rows), "notified": notified, "at": now.isoformat()}


def _sum(user_id: str, status: str) -> float:
    total = db.session.query(func.coalesce(func.sum(PayoutPending.amount), 0.0)).filter(
        PayoutPending.user_id == user_id,
        PayoutPending.status == status,
    ).scalar()
    return float(total or 0.0)


def wallet_summary(user_id: str) -> dict:
    available = _sum(user_id, PAYOUT_STATUS_PENDING)
    maturing = _sum(user_id, PAYOUT_STATUS_PENDING_MATURITY)
    next_at = db.session.query(func.min(PayoutPending.matures_at)).filter(
        PayoutPending.user_id == user_id,
        PayoutPending.status == PAYOUT_STATUS_PENDING_MATURITY,
    ).scalar()
    minimum = float(current_app.config.get("MIN_WITHDRAWAL_AMOUNT", 50.0))
    return {
        "user_id": user_id,
        "available": round(available, 2),
        "maturing": round(maturing, 2),
        "next_maturity_at": next_at.isoformat() if next_at else None,
        "min_withdrawal": minimum,
        "can_withdraw": available >= minimum,
    }
