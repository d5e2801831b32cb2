"""PricingCalculator: subtotal, shipping, discount and grand total.

A total, deterministic function with no side effects. The discount arrives
already in currency (never a percentage) and is clamped to the subtotal, so
the grand total can never go below zero.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: float
    shipping: float
    discount: float
    grand_total: float

    def as_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "discount": self.discount,
            "total": self.grand_total,
        }


def calculate_totals(lines, shipping: float = 0.0, discount: float = 0.0) -> PriceBreakdown:
    """Price a list of lines exposing ``unit_price`` and ``quantity``."""
    subtotal = round(sum(line.unit_price * line.quantity for line in lines), 2)
    discount = round(min(discount or 0.0, subtotal), 2)
    shipping = round(shipping or 0.0, 2)
    grand_total = max(round(subtotal + shipping - discount, 2), 0.0)
    return PriceBreakdown(subtotal=subtotal, shipping=shipping, discount=discount, grand_total=grand_total)
