import json

import pytest

from settlement import create_app
from settlement.extensions import db
from settlement.models import Product, Store, User
from settlement.utils.paystack_client import sign

SECRET = "sk_test_settlement"


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "PAYSTACK_SECRET_KEY": SECRET,
        "RESEND_API_KEY": "",
        "AUTO_CREATE_TABLES": False,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def catalog(app):
    """Store owner m1 with store s1, vendor v1 (STANDARD), premium vendor v2 (BRAND)."""
    db.session.add_all([
        User(id="m1", name="Mogul", email="mogul@example.com", plan_tier="SCALER", has_access=True),
        User(id="v1", name="Vendor One", email="v1@example.com", plan_tier="STANDARD", role="seller", has_access=True),
        User(id="v2", name="Vendor Two", email="v2@example.com", plan_tier="BRAND", role="seller", has_access=True),
    ])
    db.session.add(Store(id="s1", owner_id="m1", name="Mogul Goods"))
    db.session.add_all([
        Product(id="p1", name="Linen Shirt", wholesale_price=100.0, suggested_retail_price=180.0, vendor_id="v1", is_managed_by_soma=True),
        Product(id="p2", name="Leather Bag", wholesale_price=50.0, suggested_retail_price=95.0, vendor_id="v2", is_managed_by_soma=True),
        Product(id="p3", name="Candle", wholesale_price=10.0, suggested_retail_price=25.0, vendor_id="m1", store_id="s1", is_managed_by_soma=False),
        Product(id="p4", name="House Tee", wholesale_price=20.0, suggested_retail_price=40.0, vendor_id="admin", is_managed_by_soma=True),
    ])
    db.session.commit()


def charge_payload(reference, amount, metadata, event="charge.success", email="buyer@example.com"):
    data = {"reference": reference, "amount": amount, "customer": {"email": email}}
    if metadata is not None:
        data["metadata"] = metadata
    return {"event": event, "data": data}


def order_payload(reference="ref_abc123", amount=36000, cart=None, store_id="s1"):
    return charge_payload(reference, amount, {
        "cart": cart if cart is not None else [{"id": "p1", "quantity": 2}],
        "storeId": store_id,
        "shippingAddress": {"city": "Lagos", "line1": "1 Marina"},
    })


def activation_payload(user_id, reference="ref_sub_1", amount=1999, plan="monthly", tier="MERCHANT"):
    return charge_payload(reference, amount, {"userId": user_id, "plan": plan, "planTier": tier})


def post_signed(client, payload, secret=SECRET, header="X-Paystack-Signature"):
    raw = json.dumps(payload).encode("utf-8")
    return client.post(
        "/api/paystack-webhook",
        data=raw,
        headers={header: sign(raw, secret), "Content-Type": "application/json"},
    )
