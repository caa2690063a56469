from __future__ import annotations

import hmac
import hashlib
from typing import Mapping

SIGNATURE_HEADER = "X-Paystack-Signature"
FALLBACK_SIGNATURE_HEADER = "X-Webhook-Signature"


def signature_from_headers(headers: Mapping[str, str]) -> str | None:
    sig = headers.get(SIGNATURE_HEADER) or headers.get(FALLBACK_SIGNATURE_HEADER)
    if not sig:
        return None
    return sig.strip() or None


def verify_signature(raw_body: bytes, signature: str | None, secret: str) -> bool:
    """HMAC-SHA512 of the raw body, hex encoded, compared in constant time.

    A missing signature is treated the same as a wrong one.
    """
    if not secret or not signature:
        return False
    try:
        return hmac.compare_digest(sign(raw_body, secret), signature)
    except TypeError:
        # non-ASCII header value
        return False


def sign(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()
