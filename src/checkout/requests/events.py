"""Domain events for the PostPurchaseRequest aggregate."""

from protean.fields import Identifier, String, Text

from checkout.domain import checkout


@checkout.event(part_of="PostPurchaseRequest")
class PostPurchaseRequestSubmitted:
    __version__ = 1

    request_id = Identifier(required=True)
    order_id = Identifier(required=True)
    request_type = String(required=True)
    reason = String(required=True)
    item_ids = Text(required=True)  # JSON array


@checkout.event(part_of="PostPurchaseRequest")
class PostPurchaseRequestReviewed:
    __version__ = 1

    request_id = Identifier(required=True)
    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    reviewed_by = String()
