"""Domain events for the Product aggregate."""

from protean.fields import Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Product")
class ProductRegistered:
    """A product and its variants became purchasable."""

    __version__ = 1

    product_id = Identifier(required=True)
    handle = String(required=True)
    variant_count = Integer(required=True)


@checkout.event(part_of="Product")
class InventoryLevelsUpdated:
    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity_available = Integer(required=True)
