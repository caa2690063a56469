class SettlementError(Exception):
    """Base class for failures while settling a payment event."""


class MalformedEvent(SettlementError):
    """The webhook envelope is missing fields required to act on it."""


class EntityNotFound(SettlementError):
    """A product, vendor, store or user referenced by the event does not exist."""

    def __init__(self, kind: str, ident: str):
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} not found: {ident}")
