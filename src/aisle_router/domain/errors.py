# aisle_router/domain/errors.py


class RoutingError(Exception):
    """Base class for errors surfaced to the invoking layer."""


class MalformedQueryError(RoutingError, ValueError):
    """Caller input violates a precondition (checked before any work starts)."""


class EmptyLayoutError(RoutingError, ValueError):
    """No usable line geometry was found in the supplied entities."""


class UnreachableStopError(RoutingError):
    def __init__(self, stop_ids: list, msg: str | None = None):
        self.stop_ids = list(stop_ids)
        super().__init__(msg or f"unreachable stops: {self.stop_ids}")
