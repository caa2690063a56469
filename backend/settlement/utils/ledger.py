"""Ledger writer: applies a settlement as one all-or-nothing transaction.

Every read that influences an amount (product prices, vendor tiers, referral
counters) happens inside the same ``LedgerTransaction`` as the writes. The
order / activation existence check lives there too, so two deliveries of the
same reference race on the database and the loser sees a no-op.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from settlement.errors import EntityNotFound
from settlement.extensions import db
from settlement.models import Order, PayoutPending, Product, RevenueLogEntry, Store, User
from settlement.models.payout import PAYOUT_TYPE_REFERRAL_REWARD
from settlement.models.revenue import REVENUE_TYPE_SUBSCRIPTION
from settlement.utils.commission import PricedLine, SplitResult, compute_split
from settlement.utils.events import ActivationCharge, OrderCharge
from settlement.utils.postings import PayoutDraft, RevenueDraft
from settlement.utils.referrals import (
    compute_referral_reward,
    referral_commission_rate,
    referral_reward_draft,
)


class LedgerTransaction:
    """Explicit transaction boundary over the SQLAlchemy session.

    The session begins on the first statement; leaving the block commits,
    an exception rolls everything back and propagates.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def __enter__(self) -> "LedgerTransaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.session.rollback()
            return False
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return False

    def get(self, model, ident, *, lock: bool = False):
        q = self.session.query(model).filter(model.id == ident)
        if lock:
            # FOR UPDATE on Postgres; SQLite serialises writers anyway
            q = q.with_for_update()
        return q.first()

    def add(self, obj) -> None:
        self.session.add(obj)


@dataclass
class LedgerResult:
    reference: str
    duplicate: bool = False
    order_id: Optional[str] = None
    payouts: List[Dict] = field(default_factory=list)
    revenue_total: float = 0.0
    split: Optional[SplitResult] = None
    # Plain values for post-commit notifications
    notify: Dict[str, object] = field(default_factory=dict)


def order_id_for_reference(reference: str) -> str:
    return f"SOMA-{reference.strip()}"


def _post_payouts(tx: LedgerTransaction, drafts: List[PayoutDraft], *, reference: str, currency: str, order_id: Optional[str], now: datetime) -> List[Dict]:
    posted = []
    for d in drafts:
        if d.amount <= 0:
            continue
        tx.add(PayoutPending(
            user_id=d.user_id,
            amount=float(d.amount),
            currency=currency,
            status=d.status,
            type=d.type,
            order_id=order_id,
            payment_reference=reference,
            referred_user_id=d.referred_user_id,
            idempotency_key=d.idempotency_key[:200],
            meta=json.dumps(d.meta or {}, default=str),
            created_at=now,
            matures_at=d.matures_at,
        ))
        posted.append({"user_id": d.user_id, "type": d.type, "status": d.status, "amount": float(d.amount)})
    return posted


def _post_revenue(tx: LedgerTransaction, drafts: List[RevenueDraft], *, reference: str, currency: str, now: datetime) -> float:
    total = 0.0
    for d in drafts:
        tx.add(RevenueLogEntry(
            amount=float(d.amount),
            currency=currency,
            type=d.type,
            reference=reference,
            idempotency_key=d.idempotency_key[:200],
            meta=json.dumps(d.meta or {}, default=str),
            created_at=now,
        ))
        total += float(d.amount)
    return total


def _price_cart(tx: LedgerTransaction, event: OrderCharge, platform_vendor_id: str) -> List[PricedLine]:
    vendor_tiers: Dict[str, Optional[str]] = {}
    priced = []
    for line in event.cart:
        product = tx.get(Product, line.product_id)
        if product is None:
            raise EntityNotFound("product", line.product_id)

        managed = bool(product.is_managed_by_soma)
        vendor_id = product.vendor_id
        tier = None
        if managed and vendor_id and vendor_id != platform_vendor_id:
            if vendor_id not in vendor_tiers:
                vendor = tx.get(User, vendor_id)
                if vendor is None:
                    raise EntityNotFound("vendor", vendor_id)
                vendor_tiers[vendor_id] = vendor.plan_tier
            tier = vendor_tiers[vendor_id]

        priced.append(PricedLine(
            product_id=product.id,
            quantity=line.quantity,
            wholesale_price=float(product.wholesale_price or 0.0),
            retail_price=float(product.suggested_retail_price or 0.0),
            vendor_id=vendor_id,
            managed=managed,
            vendor_tier=tier,
            product_name=product.name or "",
        ))
    return priced


def _shipping_locality(address: Optional[dict]) -> str:
    if not address:
        return ""
    return str(address.get("city") or address.get("state") or address.get("country") or "")


def _has_referral_reward(tx: LedgerTransaction, referred_user_id: str) -> bool:
    return tx.session.query(PayoutPending.id).filter_by(
        type=PAYOUT_TYPE_REFERRAL_REWARD, referred_user_id=referred_user_id,
    ).first() is not None


def settle_order(event: OrderCharge) -> LedgerResult:
    """Create the order and post its commission split, exactly once per reference."""
    cfg = current_app.config
    order_id = order_id_for_reference(event.reference)
    platform_vendor_id = cfg.get("PLATFORM_VENDOR_ID", "admin")

    try:
        with LedgerTransaction() as tx:
            if tx.get(Order, order_id) is not None:
                return LedgerResult(reference=event.reference, duplicate=True, order_id=order_id)

            store = tx.get(Store, event.store_id)
            if store is None:
                raise EntityNotFound("store", event.store_id)

            priced = _price_cart(tx, event, platform_vendor_id)
            split = compute_split(
                priced,
                event.amount_captured,
                reference=event.reference,
                store_owner_id=store.owner_id,
                platform_vendor_id=platform_vendor_id,
                premium_tier=cfg.get("PREMIUM_VENDOR_TIER", "BRAND"),
                audit={"order_id": order_id, "shipping_locality": _shipping_locality(event.shipping_address)},
            )

            now = datetime.utcnow()
            tx.add(Order(
                id=order_id,
                store_id=store.id,
                status="Pending",
                items=json.dumps([
                    {
                        "product_id": p.product_id,
                        "name": p.product_name,
                        "quantity": p.quantity,
                        "retail_price": p.retail_price,
                        "wholesale_price": p.wholesale_price,
                    }
                    for p in priced
                ]),
                customer_email=event.customer_email,
                customer=json.dumps(event.customer or {}, default=str),
                shipping_address=json.dumps(event.shipping_address, default=str) if event.shipping_address else None,
                payment_reference=event.reference,
                total=event.amount_captured,
                currency=event.currency,
                created_at=now,
            ))

            payouts = _post_payouts(tx, split.payouts, reference=event.reference, currency=event.currency, order_id=order_id, now=now)
            revenue_total = _post_revenue(tx, split.revenues, reference=event.reference, currency=event.currency, now=now)

            result = LedgerResult(
                reference=event.reference,
                order_id=order_id,
                payouts=payouts,
                revenue_total=revenue_total,
                split=split,
                notify={"customer_email": event.customer_email, "store_name": store.name or "", "order_id": order_id},
            )
    except IntegrityError:
        # A concurrent delivery committed first
        if Order.query.filter_by(id=order_id).first() is not None:
            current_app.logger.info("settlement %s lost a commit race; treating as duplicate", event.reference)
            return LedgerResult(reference=event.reference, duplicate=True, order_id=order_id)
        raise

    current_app.logger.info(
        "settled order %s: %d payouts, platform fees %.4f, store profit %.4f",
        order_id, len(result.payouts), revenue_total, split.store_profit,
    )
    return result


def activate_subscription(event: ActivationCharge) -> LedgerResult:
    """Grant plan access and accrue the referrer's reward in one transaction."""
    cfg = current_app.config
    prices = cfg.get("PLAN_PRICES") or {}

    try:
        with LedgerTransaction() as tx:
            user = tx.get(User, event.user_id, lock=True)
            if user is None:
                raise EntityNotFound("user", event.user_id)
            if user.has_access:
                return LedgerResult(reference=event.reference, duplicate=True)

            now = datetime.utcnow()
            returning = user.activated_at is not None or _has_referral_reward(tx, user.id)
            tier = event.plan_tier or user.plan_tier
            user.has_access = True
            user.activated_at = now
            user.plan_tier = tier
            user.plan_interval = event.plan_interval

            revenue_total = _post_revenue(tx, [RevenueDraft(
                amount=event.amount_captured,
                type=REVENUE_TYPE_SUBSCRIPTION,
                idempotency_key=f"{REVENUE_TYPE_SUBSCRIPTION}:{event.reference}",
                meta={"user_id": user.id, "plan_tier": tier, "plan_interval": event.plan_interval},
            )], reference=event.reference, currency=event.currency, now=now)

            payouts: List[Dict] = []
            notify: Dict[str, object] = {}
            referrer_id = user.referred_by
            if returning:
                current_app.logger.info("user %s re-activated after a lapse; referral already counted", user.id)
            elif referrer_id and referrer_id != user.id:
                referrer = tx.get(User, referrer_id, lock=True)
                if referrer is None:
                    current_app.logger.warning("referrer %s of user %s does not exist; no reward", referrer_id, user.id)
                elif not referrer.has_access:
                    current_app.logger.info("referrer %s has no access; no reward for %s", referrer_id, user.id)
                else:
                    count_before = int(referrer.active_referral_count or 0)
                    reward = compute_referral_reward(
                        plan_tier=tier,
                        plan_interval=event.plan_interval,
                        active_referral_count=count_before,
                        prices=prices,
                    )
                    if reward > 0:
                        draft = referral_reward_draft(
                            referrer_id=referrer.id,
                            referred_user_id=user.id,
                            amount=reward,
                            reference=event.reference,
                            now=now,
                            hold_days=int(cfg.get("REFERRAL_MATURITY_DAYS", 14)),
                            meta={"plan_tier": tier, "plan_interval": event.plan_interval, "rate": referral_commission_rate(count_before)},
                        )
                        payouts = _post_payouts(tx, [draft], reference=event.reference, currency=event.currency, order_id=None, now=now)
                        payouts[0]["matures_at"] = draft.matures_at
                        notify = {
                            "referrer_email": referrer.email,
                            "referrer_name": referrer.name or "",
                            "protege_name": user.name or user.id,
                            "reward": reward,
                            "currency": event.currency,
                        }
                    else:
                        current_app.logger.warning("referral reward for %s computed as %s; skipped", user.id, reward)
                    referrer.active_referral_count = count_before + 1
                    referrer.total_referral_earnings = float(referrer.total_referral_earnings or 0.0) + max(reward, 0.0)

            result = LedgerResult(
                reference=event.reference,
                payouts=payouts,
                revenue_total=revenue_total,
                notify=notify,
            )
    except IntegrityError:
        user = User.query.filter_by(id=event.user_id).first()
        if user is not None and user.has_access:
            current_app.logger.info("activation %s lost a commit race; treating as duplicate", event.reference)
            return LedgerResult(reference=event.reference, duplicate=True)
        raise

    current_app.logger.info("activated user %s (%d referral payouts)", event.user_id, len(result.payouts))
    return result
