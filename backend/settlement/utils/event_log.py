from __future__ import annotations

import json
from typing import Any, Optional

from flask import current_app

from settlement.extensions import db
from settlement.models import WebhookLogEntry

OUTCOME_SUCCESS = "success"
OUTCOME_FAILED = "failed"


def record_event(
    event_type: str,
    payload: Any,
    outcome: str,
    error: Optional[str] = None,
    *,
    reference: Optional[str] = None,
    note: Optional[str] = None,
    provider: str = "paystack",
) -> Optional[WebhookLogEntry]:
    """Append one webhook log row. Never raises; a failed write is only logged."""
    try:
        raw = payload if isinstance(payload, str) else json.dumps(payload, default=str)
    except Exception:
        raw = str(payload)
    try:
        row = WebhookLogEntry(
            provider=provider,
            event_type=(event_type or "")[:64],
            reference=reference[:128] if reference else None,
            payload=raw,
            status=outcome,
            error=error,
            note=note,
        )
        db.session.add(row)
        db.session.commit()
        return row
    except Exception:
        db.session.rollback()
        current_app.logger.exception("webhook log write failed (event=%s outcome=%s)", event_type, outcome)
        return None
