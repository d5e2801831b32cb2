"""ShippingRateResolver: turns a delivery-area selection into a charge.

A rate's ``free_shipping_threshold`` zeroes the charge once the subtotal
reaches it. A storefront that offers no delivery areas at all ships for free.
"""

from dataclasses import dataclass

from protean.utils.globals import current_domain

from ordering.shipping.zone import ShippingZone
from ordering.utils.paging import fetch_all

DEFAULT_AREA_NAME = "Standard"


@dataclass(frozen=True)
class RateOption:
    rate_id: str
    zone_id: str
    zone_name: str
    area_name: str
    charge: float
    free_shipping_threshold: float | None = None


@dataclass(frozen=True)
class ShippingCatalog:
    """Read-only view of the delivery areas offered at checkout."""

    options: tuple[RateOption, ...] = ()

    @property
    def offers_delivery_areas(self) -> bool:
        return bool(self.options)

    def find(self, rate_id) -> RateOption | None:
        return next((option for option in self.options if option.rate_id == str(rate_id)), None)


@dataclass(frozen=True)
class ShippingQuote:
    charge: float
    area_name: str = DEFAULT_AREA_NAME
    rate_id: str | None = None


def load_shipping_catalog() -> ShippingCatalog:
    """Collect the rates of every active zone."""
    zones = fetch_all(current_domain.repository_for(ShippingZone)._dao.query.filter(is_active=True))
    options = [
        RateOption(
            rate_id=str(rate.id),
            zone_id=str(zone.id),
            zone_name=zone.name,
            area_name=rate.area_name,
            charge=rate.rate,
            free_shipping_threshold=rate.free_shipping_threshold,
        )
        for zone in sorted(zones, key=lambda z: z.name)
        for rate in sorted(zone.rates, key=lambda r: r.area_name)
    ]
    return ShippingCatalog(options=tuple(options))


def resolve_shipping(rate_id, catalog: ShippingCatalog, subtotal: float) -> ShippingQuote | None:
    """Shipping charge for the selected rate, or None when nothing resolves.

    None means a delivery area must still be chosen (or the chosen one no
    longer exists); callers report it as a validation problem.
    """
    if not rate_id:
        if catalog.offers_delivery_areas:
            return None
        return ShippingQuote(charge=0.0)

    option = catalog.find(rate_id)
    if option is None:
        return None

    if option.free_shipping_threshold and subtotal >= option.free_shipping_threshold:
        charge = 0.0
    else:
        charge = option.charge
    return ShippingQuote(charge=round(charge, 2), area_name=option.area_name, rate_id=option.rate_id)
