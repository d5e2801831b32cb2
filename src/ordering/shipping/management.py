"""Shipping administration: commands and handler."""

from protean import handle
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.shipping.zone import ShippingZone, ZoneType


@ordering.command(part_of="ShippingZone")
class CreateShippingZone:
    name = String(required=True, max_length=255)
    zone_type = String(choices=ZoneType, default=ZoneType.REGION.value)


@ordering.command(part_of="ShippingZone")
class AddShippingRate:
    zone_id = Identifier(required=True)
    area_name = String(required=True, max_length=255)
    country = String(max_length=100)
    rate = Float(required=True, min_value=0.0)
    free_shipping_threshold = Float(min_value=0.0)


@ordering.command(part_of="ShippingZone")
class RemoveShippingRate:
    zone_id = Identifier(required=True)
    rate_id = Identifier(required=True)


@ordering.command(part_of="ShippingZone")
class SetShippingZoneActive:
    zone_id = Identifier(required=True)
    is_active = Boolean(default=False)


@ordering.command_handler(part_of=ShippingZone)
class ShippingZoneHandler:
    @handle(CreateShippingZone)
    def create_zone(self, command):
        zone = ShippingZone.create(name=command.name, zone_type=command.zone_type)
        current_domain.repository_for(ShippingZone).add(zone)
        return str(zone.id)

    @handle(AddShippingRate)
    def add_rate(self, command):
        repo = current_domain.repository_for(ShippingZone)
        zone = repo.get(command.zone_id)
        rate_id = zone.add_rate(
            area_name=command.area_name,
            rate=command.rate,
            free_shipping_threshold=command.free_shipping_threshold,
            country=command.country,
        )
        repo.add(zone)
        return rate_id

    @handle(RemoveShippingRate)
    def remove_rate(self, command):
        repo = current_domain.repository_for(ShippingZone)
        zone = repo.get(command.zone_id)
        zone.remove_rate(command.rate_id)
        repo.add(zone)

    @handle(SetShippingZoneActive)
    def set_zone_active(self, command):
        repo = current_domain.repository_for(ShippingZone)
        zone = repo.get(command.zone_id)
        zone.set_active(bool(command.is_active))
        repo.add(zone)
