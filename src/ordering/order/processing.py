"""Synchronous command dispatch for the order entry points."""

import structlog
from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

from ordering.exceptions import PersistenceConflictError

logger = structlog.get_logger(__name__)


def process(command):
    """Run ``command`` through its handler and return the handler's result.

    The handler has already re-read and re-applied the change on a version
    conflict; a conflict that survives that retry surfaces as
    PersistenceConflictError with nothing written.
    """
    try:
        return current_domain.process(command, asynchronous=False)
    except ExpectedVersionError as exc:
        order_id = getattr(command, "order_id", None)
        logger.error("Order update conflict persisted after retry", order_id=order_id, error=str(exc))
        raise PersistenceConflictError(
            {"order": [f"Order {order_id} was modified concurrently, please retry"]}
        ) from exc
