from .user import User  # noqa: F401
from .store import Store  # noqa: F401
from .product import Product  # noqa: F401
from .order import Order  # noqa: F401
from .payout import PayoutPending  # noqa: F401
from .revenue import RevenueLogEntry  # noqa: F401

from .webhook_event import WebhookLogEntry  # noqa: F401
from .alert import SystemAlert  # noqa: F401
