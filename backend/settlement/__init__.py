import os

import click
from flask import Flask, jsonify
from sqlalchemy import text

from settlement.config import Config
from settlement.extensions import db, migrate, cors
from settlement.segments.segment_payment_webhooks import webhooks_bp


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    env = (app.config.get("SETTLEMENT_ENV") or "dev").strip().lower()

    # Production safety checks
    if env in ("prod", "production") and not app.config.get("TESTING"):
        secret = (app.config.get("SECRET_KEY") or "").strip()
        if not secret or secret == "dev-secret" or len(secret) < 16:
            raise RuntimeError("SECRET_KEY must be set and at least 16 chars in production")
        if not (os.getenv("DATABASE_URL") or "").strip() and not (os.getenv("SQLALCHEMY_DATABASE_URI") or "").strip():
            raise RuntimeError("DATABASE_URL (or SQLALCHEMY_DATABASE_URI) must be set in production")

    # Ensure instance dir exists for SQLite paths
    database_url = app.config["SQLALCHEMY_DATABASE_URI"]
    if database_url.startswith("sqlite://") and database_url != "sqlite:///:memory:":
        os.makedirs(app.config["INSTANCE_DIR"], exist_ok=True)

    # CORS configuration
    cors_origins = (app.config.get("CORS_ORIGINS") or "").strip()
    if env in ("prod", "production"):
        origins = [o.strip() for o in cors_origins.split(",") if o.strip()]
    else:
        origins = ["*"] if not cors_origins else [o.strip() for o in cors_origins.split(",") if o.strip()]
    cors.init_app(app, resources={r"/api/*": {"origins": origins}})

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db)

    app.register_blueprint(webhooks_bp)

    @app.get("/api/health")
    def health():
        db_state = "ok"
        try:
            db.session.execute(text("SELECT 1"))
        except Exception:
            db_state = "fail"
        return jsonify({
            "ok": True,
            "service": "settlement-backend",
            "env": env,
            "db": db_state,
        })

    _register_commands(app)

    return app


def _register_commands(app: Flask) -> None:
    from settlement.jobs.maturity_sweep import release_matured_rewards, wallet_summary

    @app.cli.command("release-matured-rewards")
    @click.option("--limit", default=500, show_default=True)
    @click.option("--user-id", default=None, help="Only sweep this user's rewards.")
    @click.option("--force", is_flag=True, help="Release held rewards before maturity (requires --user-id).")
    def release_matured_rewards_command(limit, user_id, force):
        """Promote referral rewards whose maturity hold has elapsed."""
        if force and not user_id:
            raise click.UsageError("--force requires --user-id")
        result = release_matured_rewards(limit=limit, user_id=user_id, force=force)
        click.echo(f"released={result['released']} notified={result['notified']}")

    @app.cli.command("wallet-summary")
    @click.argument("user_id")
    def wallet_summary_command(user_id):
        """Show available and maturing payout balances for a user."""
        summary = wallet_summary(user_id)
        for key, value in summary.items():
            click.echo(f"{key}: {value}")
