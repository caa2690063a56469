from datetime import datetime

from settlement.extensions import db


class Store(db.Model):
    __tablename__ = "stores"

    id = db.Column(db.String(64), primary_key=True)
    owner_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=False, index=True)
    name = db.Column(db.String(160), nullable=False, default="")

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
