import hashlib
import hmac

from settlement.utils.paystack_client import sign, signature_from_headers, verify_signature

SECRET = "whsec"
BODY = b'{"event":"charge.success","data":{"reference":"r1"}}'


def test_valid_signature_accepted():
    sig = hmac.new(SECRET.encode(), BODY, hashlib.sha512).hexdigest()
    assert sign(BODY, SECRET) == sig
    assert verify_signature(BODY, sig, SECRET) is True


def test_altered_body_rejected():
    sig = sign(BODY, SECRET)
    tampered = BODY.replace(b"r1", b"r2")
    assert verify_signature(tampered, sig, SECRET) is False


def test_missing_signature_rejected():
    assert verify_signature(BODY, None, SECRET) is False
    assert verify_signature(BODY, "", SECRET) is False


def test_compare_is_case_sensitive():
    sig = sign(BODY, SECRET)
    assert verify_signature(BODY, sig.upper(), SECRET) is False


def test_wrong_secret_and_non_ascii_header():
    assert verify_signature(BODY, sign(BODY, "other"), SECRET) is False
    assert verify_signature(BODY, "sïg", SECRET) is False


def test_header_lookup_prefers_primary():
    assert signature_from_headers({"X-Paystack-Signature": "a", "X-Webhook-Signature": "b"}) == "a"
    assert signature_from_headers({"X-Webhook-Signature": " b "}) == "b"
    assert signature_from_headers({}) is None
