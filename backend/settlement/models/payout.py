import json
from datetime import datetime

from settlement.extensions import db


PAYOUT_STATUS_PENDING = "pending"
PAYOUT_STATUS_PENDING_MATURITY = "pending_maturity"

PAYOUT_TYPE_SALE_COMMISSION = "sale_commission"
PAYOUT_TYPE_REFERRAL_REWARD = "referral_reward"
PAYOUT_TYPE_STORE_PROFIT = "store_profit"


class PayoutPending(db.Model):
    __tablename__ = "payouts_pending"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)  # recipient

    amount = db.Column(db.Float, nullable=False, default=0.0)
    currency = db.Column(db.String(8), nullable=False, default="USD")

    status = db.Column(db.String(24), nullable=False, default=PAYOUT_STATUS_PENDING, index=True)
    # pending | pending_maturity (-> pending after the hold elapses)
    type = db.Column(db.String(32), nullable=False)  # sale_commission | referral_reward | store_profit

    order_id = db.Column(db.String(160), nullable=True, index=True)
    payment_reference = db.Column(db.String(128), nullable=False, index=True)
    referred_user_id = db.Column(db.String(64), nullable=True)

    idempotency_key = db.Column(db.String(200), nullable=False, unique=True)

    meta = db.Column(db.Text, nullable=True)  # JSON, audit only

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    matures_at = db.Column(db.DateTime, nullable=True)
    matured_at = db.Column(db.DateTime, nullable=True)

    def meta_dict(self):
        raw = (self.meta or "").strip()
        if not raw:
            return {}
        try:
            d = json.loads(raw)
            return d if isinstance(d, dict) else {}
        except Exception:
            return {}

    def to_dict(self):
        return {
            "id": int(self.id),
            "user_id": self.user_id,
            "amount": round(float(self.amount or 0.0), 2),
            "currency": self.currency,
            "status": self.status,
            "type": self.type,
            "order_id": self.order_id,
            "payment_reference": self.payment_reference,
            "referred_user_id": self.referred_user_id,
            "meta": self.meta_dict(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "matures_at": self.matures_at.isoformat() if self.matures_at else None,
            "matured_at": self.matured_at.isoformat() if self.matured_at else None,
        }
