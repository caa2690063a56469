import json
from datetime import datetime

from settlement.extensions import db


class Order(db.Model):
    __tablename__ = "orders"

    # Derived from the payment reference, see settlement.utils.ledger.order_id_for_reference
    id = db.Column(db.String(160), primary_key=True)

    store_id = db.Column(db.String(64), db.ForeignKey("stores.id"), nullable=False, index=True)

    status = db.Column(db.String(32), nullable=False, default="Pending")
    # Pending -> Fulfilled | Cancelled

    items = db.Column(db.Text, nullable=False, default="[]")  # JSON line items
    customer_email = db.Column(db.String(255), nullable=True)
    customer = db.Column(db.Text, nullable=True)  # JSON
    shipping_address = db.Column(db.Text, nullable=True)  # JSON

    payment_reference = db.Column(db.String(128), nullable=False, unique=True, index=True)
    total = db.Column(db.Float, nullable=False, default=0.0)
    currency = db.Column(db.String(8), nullable=False, default="USD")

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def items_list(self):
        try:
            d = json.loads(self.items or "[]")
            return d if isinstance(d, list) else []
        except Exception:
            return []

    def to_dict(self) -> dict:
        def _load(raw):
            try:
                return json.loads(raw) if raw else None
            except Exception:
                return None

        return {
            "id": self.id,
            "store_id": self.store_id,
            "status": self.status,
            "items": self.items_list(),
            "customer_email": self.customer_email or "",
            "customer": _load(self.customer),
            "shipping_address": _load(self.shipping_address),
            "payment_reference": self.payment_reference,
            "total": round(float(self.total or 0.0), 2),
            "currency": self.currency,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
