"""Best-effort email through the Resend HTTP API.

``send_email`` never raises. Callers get a ``NotifyResult`` they log and
drop; nothing here can reach back into a committed settlement.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import requests
from flask import current_app

RESEND_URL = "https://api.resend.com/emails"


@dataclass(frozen=True)
class NotifyResult:
    ok: bool
    error: str = ""
    provider_ref: str = ""
    # Nothing attempted (no API key or no recipient)
    skipped: bool = False


def send_email(to: Optional[str], subject: str, text: str) -> NotifyResult:
    api_key = (current_app.config.get("RESEND_API_KEY") or "").strip()
    if not api_key:
        return NotifyResult(ok=False, error="RESEND_API_KEY not set", skipped=True)
    if not to:
        return NotifyResult(ok=False, error="no recipient", skipped=True)

    payload = {
        "from": current_app.config.get("MAIL_FROM"),
        "to": to,
        "subject": subject,
        "text": text,
    }
    headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
    try:
        r = requests.post(RESEND_URL, headers=headers, json=payload, timeout=10)
        j = r.json() if r.content else {}
        if 200 <= r.status_code < 300:
            return NotifyResult(ok=True, provider_ref=str(j.get("id") or ""))
        return NotifyResult(ok=False, error=j.get("message") or f"HTTP {r.status_code}")
    except Exception as e:
        return NotifyResult(ok=False, error=str(e))


def deliver(to: Optional[str], subject: str, text: str) -> NotifyResult:
    res = send_email(to, subject, text)
    if res.ok:
        current_app.logger.info("email sent to %s (%s)", to, subject)
    elif res.skipped:
        current_app.logger.info("email to %s skipped: %s", to, res.error)
    else:
        current_app.logger.error("email to %s failed: %s", to, res.error)
    return res


def order_confirmation(to: Optional[str], order_id: str, store_name: str) -> NotifyResult:
    return deliver(
        to,
        f"Your order #{order_id} from {store_name} is confirmed!",
        f"Thank you for your purchase! We've received your order #{order_id} and are getting it ready for shipment.",
    )


def referral_activated(to: Optional[str], referrer_name: str, protege_name: str, credit: str) -> NotifyResult:
    return deliver(
        to,
        f"Congratulations! Your protege {protege_name} is now active",
        f"Hi {referrer_name}, {protege_name} just activated their plan. {credit} has been credited and will be available after the maturity hold.",
    )


def action_required(to: Optional[str], reference: str) -> NotifyResult:
    return deliver(
        to,
        "We're finalising your order",
        f"Your payment ({reference}) was received. We hit a snag recording your order and our team is on it; no action is needed from you.",
    )


def funds_available(to: Optional[str], name: str, amount: str) -> NotifyResult:
    return deliver(
        to,
        "Your referral funds are available",
        f"Hi {name}, {amount} from your referrals has cleared its hold and is ready to withdraw.",
    )


def format_money(amount: float, currency: str = "USD") -> str:
    # Presentation only: cents rounding happens here, never in the ledger
    symbol = "$" if (currency or "").upper() == "USD" else f"{currency} "
    return f"{symbol}{float(amount or 0.0):,.2f}"
