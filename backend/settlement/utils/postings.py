from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class PayoutDraft:
    """A payout the ledger writer will persist as a PayoutPending row."""

    user_id: str
    amount: float
    type: str
    status: str
    idempotency_key: str
    meta: Dict[str, Any] = field(default_factory=dict)
    referred_user_id: Optional[str] = None
    matures_at: Optional[datetime] = None


@dataclass(frozen=True)
class RevenueDraft:
    amount: float
    type: str
    idempotency_key: str
    meta: Dict[str, Any] = field(default_factory=dict)
