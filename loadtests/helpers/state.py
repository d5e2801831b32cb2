"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state: no cross-user sharing.
"""

from dataclasses import dataclass, field


@dataclass
class CheckoutState:
    """Tracks one simulated shopper from cart to order."""

    customer_id: str | None = None
    rate_id: str | None = None
    item_count: int = 0
    order_id: str | None = None
    outcome: str | None = None


@dataclass
class BackOfficeState:
    """Tracks the zones, coupons and orders a staff user has touched."""

    zone_id: str | None = None
    rate_ids: list[str] = field(default_factory=list)
    coupon_codes: list[str] = field(default_factory=list)
    order_ids: list[str] = field(default_factory=list)
