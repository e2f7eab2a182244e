"""Customer-facing side of post-purchase requests."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.order.order import Order
from checkout.requests.request import PostPurchaseRequest

logger = structlog.get_logger(__name__)


@checkout.command(part_of="PostPurchaseRequest")
class SubmitRequest:
    order_id = Identifier(required=True)
    customer_id = Identifier()
    request_type = String(required=True, max_length=20)
    item_ids = Text(required=True)  # JSON array of order line ids
    reason = String(required=True, max_length=100)
    other_reason = String(max_length=200)
    comments = String(max_length=1000)
    attachments = Text()  # JSON array
    bank_details = Text()  # JSON object, returns only


@checkout.command_handler(part_of=PostPurchaseRequest)
class RequestSubmissionHandler:
    @handle(SubmitRequest)
    def submit(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        if command.customer_id and str(order.customer_id) != str(command.customer_id):
            raise ValidationError({"order_id": ["This order belongs to another customer."]})

        request = PostPurchaseRequest.submit(
            order,
            request_type=command.request_type,
            item_ids=json.loads(command.item_ids),
            reason=command.reason,
            other_reason=command.other_reason,
            comments=command.comments,
            attachments=json.loads(command.attachments) if command.attachments else [],
            bank_details=json.loads(command.bank_details) if command.bank_details else None,
        )
        current_domain.repository_for(PostPurchaseRequest).add(request)

        logger.info(
            "post_purchase_request_submitted",
            request_id=str(request.id),
            order_id=str(order.id),
            request_type=request.request_type,
        )
        return str(request.id)


def submit_request(order_id, request_type, **fields) -> PostPurchaseRequest:
    """Raise a cancel, return or exchange request against an order."""
    for name in ("item_ids", "attachments", "bank_details"):
        if fields.get(name) is not None and not isinstance(fields[name], str):
            fields[name] = json.dumps(fields[name])

    request_id = current_domain.process(
        SubmitRequest(order_id=order_id, request_type=request_type, **fields),
        asynchronous=False,
    )
    return current_domain.repository_for(PostPurchaseRequest).get(request_id)
