"""Ordering bounded context: checkout, payment dispatch and order lifecycle.

Handles coupon validation and redemption, shipping rate resolution, the
checkout flow that turns a draft into a durable order, and the order status
state machine driven by gateway callbacks and staff actions.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
