from __future__ import annotations

import json
from typing import Any, Optional

from flask import Blueprint, current_app, jsonify, request

from settlement.errors import MalformedEvent
from settlement.extensions import db
from settlement.utils import notify
from settlement.utils.alerts import raise_alert
from settlement.utils.event_log import OUTCOME_FAILED, OUTCOME_SUCCESS, record_event
from settlement.utils.events import ActivationCharge, OrderCharge, parse_event
from settlement.utils.ledger import LedgerResult, activate_subscription, settle_order
from settlement.utils.paystack_client import signature_from_headers, verify_signature

webhooks_bp = Blueprint("webhooks_bp", __name__, url_prefix="/api")


@webhooks_bp.before_app_request
def _ensure_tables_once():
    # Local SQLite convenience only; deployed databases are migrated with `flask db upgrade`
    if not current_app.config.get("AUTO_CREATE_TABLES"):
        return
    state = current_app.extensions.setdefault("settlement", {})
    if state.get("tables_ready"):
        return
    try:
        db.create_all()
    except Exception:
        current_app.logger.exception("create_all failed")
    state["tables_ready"] = True


def _reference_of(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    ref = data.get("reference")
    return str(ref).strip() if ref else None


def _notify_after_commit(event, result: LedgerResult) -> None:
    """Fire-and-forget emails; outcomes are logged inside notify and dropped."""
    if result.duplicate:
        return
    if isinstance(event, OrderCharge):
        notify.order_confirmation(
            result.notify.get("customer_email"),
            str(result.notify.get("order_id") or ""),
            str(result.notify.get("store_name") or ""),
        )
    elif isinstance(event, ActivationCharge) and result.notify.get("referrer_email"):
        notify.referral_activated(
            result.notify.get("referrer_email"),
            str(result.notify.get("referrer_name") or ""),
            str(result.notify.get("protege_name") or ""),
            notify.format_money(float(result.notify.get("reward") or 0.0), str(result.notify.get("currency") or "USD")),
        )


def process_webhook(raw: bytes) -> str:
    """Run one verified delivery through dispatch, ledger, log and alerting.

    Returns the logged outcome. Never raises: the provider only needs to know
    the delivery arrived, failures are surfaced through the log and alerts.
    """
    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        current_app.logger.warning("webhook body is not valid JSON")
        record_event("", raw.decode("utf-8", "replace"), OUTCOME_FAILED, "body is not valid JSON")
        return OUTCOME_FAILED

    event_type = str(payload.get("event") or "") if isinstance(payload, dict) else ""
    reference = _reference_of(payload)

    try:
        event = parse_event(payload, default_currency=current_app.config.get("DEFAULT_CURRENCY", "USD"))
    except MalformedEvent as e:
        current_app.logger.warning("malformed %s event ref=%s: %s", event_type or "unknown", reference, e)
        record_event(event_type, payload, OUTCOME_FAILED, str(e), reference=reference)
        return OUTCOME_FAILED

    if isinstance(event, OrderCharge):
        current_app.logger.info("processing product sale for store %s ref=%s", event.store_id, event.reference)
        handler, alert_kind, note = settle_order, "settlement_failed", "settled"
    elif isinstance(event, ActivationCharge):
        current_app.logger.info("processing plan activation for user %s ref=%s", event.user_id, event.reference)
        handler, alert_kind, note = activate_subscription, "activation_failed", "activated"
    else:
        current_app.logger.info("ignoring %s event", event.event_type)
        record_event(event_type, payload, OUTCOME_SUCCESS, reference=reference, note="ignored")
        return OUTCOME_SUCCESS

    try:
        result = handler(event)
    except Exception as e:
        current_app.logger.exception("%s failed for ref=%s", alert_kind, event.reference)
        record_event(event_type, payload, OUTCOME_FAILED, str(e), reference=event.reference)
        raise_alert(alert_kind, event.reference, str(e), meta={"event": event_type, "error_type": type(e).__name__})
        if isinstance(event, OrderCharge):
            notify.action_required(event.customer_email, event.reference)
        return OUTCOME_FAILED

    if result.duplicate:
        current_app.logger.info("duplicate delivery for ref=%s; nothing written", event.reference)
        note = "duplicate"
    record_event(event_type, payload, OUTCOME_SUCCESS, reference=event.reference, note=note)

    _notify_after_commit(event, result)
    return OUTCOME_SUCCESS


@webhooks_bp.post("/paystack-webhook")
def paystack_webhook():
    secret = (current_app.config.get("PAYSTACK_SECRET_KEY") or "").strip()
    if not secret:
        current_app.logger.error("PAYSTACK_SECRET_KEY is not set")
        return jsonify({"error": "Internal Server Error"}), 500

    raw = request.get_data() or b""
    sig = signature_from_headers(request.headers)
    if not verify_signature(raw, sig, secret):
        # Body is not logged: it may be forged
        current_app.logger.warning("rejected paystack webhook: %s signature", "invalid" if sig else "missing")
        return jsonify({"error": "Invalid signature"}), 401

    process_webhook(raw)
    return jsonify({"status": "success"}), 200
