import os


def _normalize_database_url(url: str) -> str:
    # Render/Heroku sometimes provide postgres:// which SQLAlchemy expects as postgresql://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


# Base monthly price per plan tier (USD). Yearly billing is charged as 10 months.
PLAN_PRICES = {
    "SCALER": 29.00,
    "MERCHANT": 19.99,
    "ENTERPRISE": 33.33,
    "BRAND": 21.00,
    "SELLER": 0.0,
}

YEARLY_MULTIPLIER = 10


class Config:
    # Base directory of the backend (one level above this `settlement` package)
    BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    INSTANCE_DIR = os.path.join(BACKEND_DIR, "instance")

    SETTLEMENT_ENV = (os.getenv("SETTLEMENT_ENV", "dev") or "dev").strip().lower()
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")

    _default_sqlite_path = os.path.join(INSTANCE_DIR, "settlement.db").replace("\\", "/")
    _db_url = os.getenv("SQLALCHEMY_DATABASE_URI") or os.getenv("DATABASE_URL") or f"sqlite:///{_default_sqlite_path}"
    SQLALCHEMY_DATABASE_URI = _normalize_database_url(_db_url)
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Create missing tables on first request (dev only; otherwise run `flask db upgrade`)
    AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "1" if SETTLEMENT_ENV == "dev" else "0").strip() == "1"

    # Comma-separated origins for browser callers of /api/*
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")

    # Paystack shared secret, checked on every webhook request
    PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY", "").strip()

    PLATFORM_VENDOR_ID = os.getenv("PLATFORM_VENDOR_ID", "admin").strip() or "admin"
    PREMIUM_VENDOR_TIER = os.getenv("PREMIUM_VENDOR_TIER", "BRAND").strip() or "BRAND"
    DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD").strip() or "USD"
    REFERRAL_MATURITY_DAYS = int(os.getenv("REFERRAL_MATURITY_DAYS", "14"))
    MIN_WITHDRAWAL_AMOUNT = float(os.getenv("MIN_WITHDRAWAL_AMOUNT", "50"))

    PLAN_PRICES = dict(PLAN_PRICES)

    # Email collaborator (Resend). Unset key means emails are skipped.
    RESEND_API_KEY = os.getenv("RESEND_API_KEY", "").strip()
    MAIL_FROM = os.getenv("MAIL_FROM", '"SOMA Ecosystem" <no-reply@somads.com>')
