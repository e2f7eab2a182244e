"""Domain events for the Discount aggregate."""

from protean.fields import Float, Identifier, String

from checkout.domain import checkout


@checkout.event(part_of="Discount")
class DiscountCreated:
    __version__ = 1

    discount_id = Identifier(required=True)
    code = String(required=True)
    discount_type = String(required=True)
    value = Float(required=True)


@checkout.event(part_of="Discount")
class DiscountDeactivated:
    __version__ = 1

    discount_id = Identifier(required=True)
    code = String(required=True)
