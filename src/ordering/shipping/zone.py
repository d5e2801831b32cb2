"""ShippingZone aggregate: named delivery regions and their rates.

Checkout only reads zones: the chosen rate's charge is copied into the
order's shipping snapshot and the relationship ends there.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, String

from ordering.domain import ordering


class ZoneType(Enum):
    COUNTRY = "country"
    REGION = "region"
    CITY = "city"


@ordering.entity(part_of="ShippingZone")
class ShippingRate:
    area_name = String(required=True, max_length=255)
    country = String(max_length=100)
    rate = Float(required=True, min_value=0.0)
    free_shipping_threshold = Float(min_value=0.0)


@ordering.aggregate
class ShippingZone:
    name = String(required=True, max_length=255)
    zone_type = String(choices=ZoneType, default=ZoneType.REGION.value)
    is_active = Boolean(default=True)
    rates = HasMany(ShippingRate)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, name, zone_type=ZoneType.REGION.value):
        now = datetime.now(UTC)
        return cls(name=name, zone_type=zone_type, is_active=True, created_at=now, updated_at=now)

    def add_rate(self, area_name, rate, free_shipping_threshold=None, country=None):
        """Add a selectable delivery area to this zone and return its id."""
        if any(existing.area_name.lower() == area_name.strip().lower() for existing in self.rates):
            raise ValidationError({"area_name": [f"Zone {self.name} already has an area named {area_name}"]})

        shipping_rate = ShippingRate(
            area_name=area_name.strip(),
            country=country,
            rate=rate,
            free_shipping_threshold=free_shipping_threshold,
        )
        self.add_rates(shipping_rate)
        self.updated_at = datetime.now(UTC)
        return str(shipping_rate.id)

    def remove_rate(self, rate_id):
        shipping_rate = next((r for r in self.rates if str(r.id) == str(rate_id)), None)
        if shipping_rate is None:
            raise ValidationError({"rate_id": ["Rate not found in zone"]})

        self.remove_rates(shipping_rate)
        self.updated_at = datetime.now(UTC)

    def set_active(self, is_active):
        self.is_active = bool(is_active)
        self.updated_at = datetime.now(UTC)
