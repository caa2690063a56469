import json

import pytest
from sqlalchemy import inspect

from settlement import create_app
from settlement.extensions import db
from settlement.models import Order, PayoutPending, RevenueLogEntry, SystemAlert, User, WebhookLogEntry
from settlement.utils import notify
from settlement.utils.paystack_client import sign

from conftest import SECRET, activation_payload, charge_payload, order_payload, post_signed


def test_order_delivery_settles(client, catalog):
    resp = post_signed(client, order_payload())

    assert resp.status_code == 200
    assert resp.get_json() == {"status": "success"}
    assert Order.query.count() == 1
    assert PayoutPending.query.count() == 2
    log = WebhookLogEntry.query.one()
    assert log.status == "success"
    assert log.note == "settled"
    assert log.reference == "ref_abc123"


def test_replayed_delivery_creates_one_order(client, catalog):
    for _ in range(3):
        assert post_signed(client, order_payload()).status_code == 200

    assert Order.query.count() == 1
    assert PayoutPending.query.count() == 2
    assert RevenueLogEntry.query.count() == 1
    logs = WebhookLogEntry.query.order_by(WebhookLogEntry.id).all()
    assert [l.status for l in logs] == ["success"] * 3
    assert [l.note for l in logs] == ["settled", "duplicate", "duplicate"]


def test_fallback_signature_header(client, catalog):
    resp = post_signed(client, order_payload(), header="X-Webhook-Signature")
    assert resp.status_code == 200
    assert Order.query.count() == 1


def test_forged_body_rejected(client, catalog):
    raw = json.dumps(order_payload()).encode()
    sig = sign(raw, SECRET)
    forged = raw.replace(b"36000", b"96000")

    resp = client.post("/api/paystack-webhook", data=forged, headers={"X-Paystack-Signature": sig})

    assert resp.status_code == 401
    assert Order.query.count() == 0
    assert PayoutPending.query.count() == 0
    assert WebhookLogEntry.query.count() == 0


def test_missing_signature_rejected(client, catalog):
    resp = client.post("/api/paystack-webhook", data=json.dumps(order_payload()))
    assert resp.status_code == 401
    assert Order.query.count() == 0


def test_unconfigured_secret_is_server_error(app, client):
    app.config["PAYSTACK_SECRET_KEY"] = ""
    resp = post_signed(client, order_payload())
    assert resp.status_code == 500


def test_partial_cart_fails_atomically_and_alerts(client, catalog):
    resp = post_signed(client, order_payload(cart=[{"id": "p1", "quantity": 1}, {"id": "missing", "quantity": 1}]))

    assert resp.status_code == 200
    assert Order.query.count() == 0
    assert PayoutPending.query.count() == 0
    assert RevenueLogEntry.query.count() == 0

    log = WebhookLogEntry.query.one()
    assert log.status == "failed"
    assert "product not found: missing" in log.error

    alert = SystemAlert.query.one()
    assert alert.kind == "settlement_failed"
    assert alert.reference == "ref_abc123"
    assert "missing" in alert.message


def test_missing_metadata_acknowledged_without_alert(client):
    resp = post_signed(client, charge_payload("ref_nometa", 1000, None))

    assert resp.status_code == 200
    log = WebhookLogEntry.query.one()
    assert log.status == "failed"
    assert "metadata" in log.error
    assert SystemAlert.query.count() == 0


def test_invalid_json_after_valid_signature(client):
    raw = b"not json"
    resp = client.post("/api/paystack-webhook", data=raw, headers={"X-Paystack-Signature": sign(raw, SECRET)})
    assert resp.status_code == 200
    assert WebhookLogEntry.query.one().status == "failed"


def test_other_event_logged_as_ignored(client):
    resp = post_signed(client, {"event": "transfer.success", "data": {"reference": "tr_1"}})
    assert resp.status_code == 200
    log = WebhookLogEntry.query.one()
    assert (log.status, log.note, log.event_type) == ("success", "ignored", "transfer.success")


def test_activation_delivery(client):
    db.session.add_all([
        User(id="ref", name="Amb", email="amb@example.com", has_access=True, active_referral_count=20),
        User(id="new", name="Protege", referred_by="ref"),
    ])
    db.session.commit()

    resp = post_signed(client, activation_payload("new"))

    assert resp.status_code == 200
    reward = PayoutPending.query.one()
    assert reward.status == "pending_maturity"
    assert reward.amount == pytest.approx(1.999)
    assert db.session.get(User, "ref").active_referral_count == 21
    assert WebhookLogEntry.query.one().note == "activated"


def test_unknown_user_activation_alerts(client):
    resp = post_signed(client, activation_payload("ghost"))
    assert resp.status_code == 200
    assert SystemAlert.query.one().kind == "activation_failed"
    assert RevenueLogEntry.query.count() == 0


def test_email_failure_does_not_touch_committed_order(app, client, catalog, monkeypatch):
    app.config["RESEND_API_KEY"] = "re_test"
    calls = []

    def exploding_post(*args, **kwargs):
        calls.append(kwargs.get("json"))
        raise ConnectionError("smtp down")

    monkeypatch.setattr(notify.requests, "post", exploding_post)

    resp = post_signed(client, order_payload())

    assert resp.status_code == 200
    assert len(calls) == 1
    assert calls[0]["to"] == "buyer@example.com"
    assert Order.query.count() == 1
    assert WebhookLogEntry.query.one().status == "success"


def test_failed_settlement_sends_action_required(app, client, catalog, monkeypatch):
    sent = []
    monkeypatch.setattr(notify, "send_email", lambda to, subject, text: sent.append((to, subject)) or notify.NotifyResult(ok=True))

    post_signed(client, order_payload(store_id="unknown"))

    assert sent == [("buyer@example.com", "We're finalising your order")]


def test_event_log_failure_is_swallowed(client, catalog, monkeypatch):
    from settlement.models import webhook_event

    class Broken:
        def __init__(self, **kwargs):
            raise RuntimeError("log store offline")

    monkeypatch.setattr("settlement.utils.event_log.WebhookLogEntry", Broken)
    resp = post_signed(client, order_payload())

    assert resp.status_code == 200
    assert Order.query.count() == 1
    assert webhook_event.WebhookLogEntry.query.count() == 0


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.get_json()["db"] == "ok"


def test_lapsed_subscriber_can_pay_again(client):
    db.session.add_all([
        User(id="ref", name="Amb", email="amb@example.com", has_access=True, active_referral_count=20),
        User(id="new", name="Protege", referred_by="ref"),
    ])
    db.session.commit()
    post_signed(client, activation_payload("new", reference="sub_1"))
    db.session.get(User, "new").has_access = False
    db.session.commit()

    resp = post_signed(client, activation_payload("new", reference="sub_2"))

    assert resp.status_code == 200
    assert SystemAlert.query.count() == 0
    assert db.session.get(User, "new").has_access is True
    assert PayoutPending.query.count() == 1
    assert RevenueLogEntry.query.count() == 2
    logs = WebhookLogEntry.query.order_by(WebhookLogEntry.id).all()
    assert [l.note for l in logs] == ["activated", "activated"]


@pytest.mark.parametrize("auto_create, expected", [(False, False), (True, True)])
def test_tables_created_on_request_only_when_enabled(auto_create, expected):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "AUTO_CREATE_TABLES": auto_create,
    })
    with app.app_context():
        assert app.test_client().get("/api/health").status_code == 200
        assert inspect(db.engine).has_table("orders") is expected
