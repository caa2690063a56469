import pytest

from settlement.errors import MalformedEvent
from settlement.utils.events import ActivationCharge, CartLine, OrderCharge, OtherEvent, parse_event


def _charge(metadata, **data):
    body = {"reference": "ref_1", "amount": 36000, "customer": {"email": "a@b.co"}}
    body.update(data)
    if metadata is not None:
        body["metadata"] = metadata
    return {"event": "charge.success", "data": body}


def test_cart_charge_becomes_order():
    ev = parse_event(_charge({"cart": [{"id": "p1", "quantity": 2}], "storeId": "s1", "shippingAddress": {"city": "Accra"}}))
    assert isinstance(ev, OrderCharge)
    assert ev.cart == (CartLine("p1", 2),)
    assert ev.amount_captured == 360.0
    assert ev.customer_email == "a@b.co"
    assert ev.currency == "USD"
    assert ev.shipping_address == {"city": "Accra"}


def test_user_charge_becomes_activation():
    ev = parse_event(_charge({"userId": "u1", "plan": "yearly", "planTier": "merchant"}, currency="ngn"))
    assert isinstance(ev, ActivationCharge)
    assert ev.plan_interval == "yearly"
    assert ev.plan_tier == "MERCHANT"
    assert ev.currency == "NGN"


def test_activation_defaults_to_monthly():
    ev = parse_event(_charge({"userId": "u1"}))
    assert ev.plan_interval == "monthly"
    assert ev.plan_tier is None


def test_metadata_as_json_string():
    ev = parse_event(_charge('{"userId": "u9"}'))
    assert isinstance(ev, ActivationCharge)
    assert ev.user_id == "u9"


def test_other_events_pass_through():
    ev = parse_event({"event": "transfer.success", "data": {"reference": "t1"}})
    assert ev == OtherEvent(event_type="transfer.success", reference="t1")


@pytest.mark.parametrize("payload", [
    [],
    {"data": {}},
    {"event": "charge.success"},
    _charge(None),
    _charge({}),
    _charge({"foo": "bar"}),
    _charge({"cart": [{"id": "p1", "quantity": 1}]}),
    _charge({"cart": [{"id": "p1", "quantity": 0}], "storeId": "s1"}),
    _charge({"cart": [{"quantity": 1}], "storeId": "s1"}),
    _charge({"cart": "p1", "storeId": "s1"}),
    _charge({"userId": "u1", "plan": "weekly"}),
    _charge({"userId": "u1"}, reference=""),
    _charge({"userId": "u1"}, amount="lots"),
    _charge({"userId": "u1"}, amount=-5),
    _charge("{not json"),
])
def test_malformed_shapes(payload):
    with pytest.raises(MalformedEvent):
        parse_event(payload)
