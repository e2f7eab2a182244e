"""Domain events for the Order aggregate."""

from protean.fields import Float, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Order")
class OrderPlaced:
    """An order was created from a finalized checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    number = String(required=True)
    customer_id = Identifier()
    payment_method = String(required=True)
    total = Float(required=True)
    currency = String(required=True)
    item_count = Integer(required=True)


@checkout.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_by = String()


@checkout.event(part_of="Order")
class OrderTrackingUpdated:
    __version__ = 1

    order_id = Identifier(required=True)
    tracking_number = String()
    courier_name = String()
    tracking_url = String()
