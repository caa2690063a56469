from __future__ import annotations

import json
from typing import Any, Dict, Optional

from flask import current_app

from settlement.extensions import db
from settlement.models import SystemAlert


def raise_alert(kind: str, reference: Optional[str], message: str, meta: Optional[Dict[str, Any]] = None) -> Optional[SystemAlert]:
    """Record an unrecoverable failure for operator follow-up."""
    current_app.logger.error("ALERT %s ref=%s: %s", kind, reference, message)
    try:
        alert = SystemAlert(
            kind=kind,
            reference=reference,
            message=message or "",
            meta=json.dumps(meta or {}, default=str),
        )
        db.session.add(alert)
        db.session.commit()
        return alert
    except Exception:
        db.session.rollback()
        current_app.logger.exception("alert write failed for ref=%s", reference)
        return None
