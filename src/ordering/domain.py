"""Ordering bounded context: multi-merchant orders.

Converts carts into orders split by merchant, runs each merchant's
sub-order through its own lifecycle, and serves the customer, merchant
and admin read models.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
