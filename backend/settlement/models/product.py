from datetime import datetime

from settlement.extensions import db


class Product(db.Model):
    """A catalog item.

    Master-catalog items are supplied by a vendor and fulfilled through the
    platform (``is_managed_by_soma``). Private-inventory items belong to a
    single store and carry ``store_id``.
    """

    __tablename__ = "products"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(200), nullable=False, default="")

    wholesale_price = db.Column(db.Float, nullable=False, default=0.0)
    suggested_retail_price = db.Column(db.Float, nullable=False, default=0.0)

    vendor_id = db.Column(db.String(64), nullable=True, index=True)
    is_managed_by_soma = db.Column(db.Boolean, nullable=False, default=False)
    store_id = db.Column(db.String(64), db.ForeignKey("stores.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name or "",
            "wholesale_price": float(self.wholesale_price or 0.0),
            "suggested_retail_price": float(self.suggested_retail_price or 0.0),
            "vendor_id": self.vendor_id,
            "is_managed_by_soma": bool(self.is_managed_by_soma),
            "store_id": self.store_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
