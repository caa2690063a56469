from datetime import datetime

from settlement.extensions import db


class SystemAlert(db.Model):
    __tablename__ = "system_alerts"

    id = db.Column(db.Integer, primary_key=True)

    kind = db.Column(db.String(64), nullable=False)  # settlement_failed | activation_failed
    reference = db.Column(db.String(128), nullable=True, index=True)
    message = db.Column(db.Text, nullable=False, default="")
    meta = db.Column(db.Text, nullable=True)

    resolved = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "kind": self.kind,
            "reference": self.reference or "",
            "message": self.message or "",
            "meta": self.meta or "",
            "resolved": bool(self.resolved),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
