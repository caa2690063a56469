from datetime import datetime

from settlement.extensions import db


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(64), primary_key=True)

    name = db.Column(db.String(120), nullable=False, default="")
    email = db.Column(db.String(255), index=True, nullable=True)

    role = db.Column(db.String(32), nullable=False, default="merchant")

    # Subscription plan (SCALER | MERCHANT | ENTERPRISE | SELLER | BRAND | AMBASSADOR | ADMIN)
    plan_tier = db.Column(db.String(32), nullable=True)
    plan_interval = db.Column(db.String(16), nullable=True)  # monthly | yearly

    has_access = db.Column(db.Boolean, nullable=False, default=False)
    activated_at = db.Column(db.DateTime, nullable=True)

    # Referral program
    referred_by = db.Column(db.String(64), nullable=True, index=True)
    active_referral_count = db.Column(db.Integer, nullable=False, default=0)
    total_referral_earnings = db.Column(db.Float, nullable=False, default=0.0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name or "",
            "email": self.email or "",
            "role": self.role or "merchant",
            "plan_tier": self.plan_tier or "",
            "plan_interval": self.plan_interval or "",
            "has_access": bool(self.has_access),
            "activated_at": self.activated_at.isoformat() if self.activated_at else None,
            "referred_by": self.referred_by,
            "active_referral_count": int(self.active_referral_count or 0),
            "total_referral_earnings": round(float(self.total_referral_earnings or 0.0), 2),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
