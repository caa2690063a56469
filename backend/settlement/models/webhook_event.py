from datetime import datetime

from settlement.extensions import db


class WebhookLogEntry(db.Model):
    __tablename__ = "webhook_logs"

    id = db.Column(db.Integer, primary_key=True)
    provider = db.Column(db.String(32), nullable=False, default="paystack")
    event_type = db.Column(db.String(64), nullable=False, default="")
    reference = db.Column(db.String(128), nullable=True, index=True)

    payload = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False)  # success | failed
    error = db.Column(db.Text, nullable=True)
    note = db.Column(db.String(64), nullable=True)  # settled | activated | duplicate | ignored

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "provider": self.provider,
            "event_type": self.event_type,
            "reference": self.reference or "",
            "status": self.status,
            "error": self.error or "",
            "note": self.note or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
