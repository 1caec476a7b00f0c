"""Exceptions raised by the Ordering domain.

Every error carries a ``messages`` dict shaped like ``{"field": ["reason"]}``
so the API layer can render it unchanged. The HTTP status each family maps
to lives in ``ordering.api.errors``.
"""

from protean.exceptions import ProteanExceptionWithMessage


class OrderingError(ProteanExceptionWithMessage):
    """Base class for all ordering errors."""

    def __init__(self, messages=None, **kwargs):
        if isinstance(messages, str):
            messages = {"_entity": [messages]}
        super().__init__(messages or {}, **kwargs)

    def __reduce__(self):
        return (self.__class__, (self.messages,))


# ---------------------------------------------------------------------------
# Validation (400)
# ---------------------------------------------------------------------------
class ValidationError(OrderingError):
    pass


class EmptyCartError(ValidationError):
    pass


class InvalidAddressError(ValidationError):
    pass


class InvalidTransitionError(ValidationError):
    pass


class InvalidRefundError(ValidationError):
    pass


class ProductNotFoundError(ValidationError):
    pass


# ---------------------------------------------------------------------------
# Lookup (404)
# ---------------------------------------------------------------------------
class NotFoundError(OrderingError):
    pass


class OrderNotFoundError(NotFoundError):
    pass


class SubOrderNotFoundError(NotFoundError):
    pass


# ---------------------------------------------------------------------------
# Access (403) and concurrency (409)
# ---------------------------------------------------------------------------
class UnauthorizedOrderAccessError(OrderingError):
    pass


class PersistenceConflictError(OrderingError):
    """The order was changed by someone else between read and write."""
