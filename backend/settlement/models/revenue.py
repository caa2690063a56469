from datetime import datetime

from settlement.extensions import db


REVENUE_TYPE_TRANSACTION = "TRANSACTION"
REVENUE_TYPE_SUBSCRIPTION = "SUBSCRIPTION"


class RevenueLogEntry(db.Model):
    """Append-only platform revenue record."""

    __tablename__ = "revenue_log"

    id = db.Column(db.Integer, primary_key=True)

    amount = db.Column(db.Float, nullable=False, default=0.0)
    currency = db.Column(db.String(8), nullable=False, default="USD")
    type = db.Column(db.String(16), nullable=False)  # TRANSACTION | SUBSCRIPTION

    reference = db.Column(db.String(128), nullable=False, index=True)
    idempotency_key = db.Column(db.String(200), nullable=False, unique=True)
    meta = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "amount": round(float(self.amount or 0.0), 2),
            "currency": self.currency,
            "type": self.type,
            "reference": self.reference,
            "meta": self.meta or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
