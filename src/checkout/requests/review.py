"""Staff review of post-purchase requests, and the read side for both audiences."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.requests.request import PostPurchaseRequest
from checkout.shared.locks import keyed_locks

logger = structlog.get_logger(__name__)


@checkout.command(part_of="PostPurchaseRequest")
class ReviewRequest:
    request_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    reviewed_by = String(max_length=255)
    note = String(max_length=1000)


@checkout.command_handler(part_of=PostPurchaseRequest)
class RequestReviewHandler:
    @handle(ReviewRequest)
    def review(self, command):
        repo = current_domain.repository_for(PostPurchaseRequest)
        request = repo.get(command.request_id)
        previous = request.status
        request.review(command.status, reviewed_by=command.reviewed_by, note=command.note)
        repo.add(request)
        logger.info(
            "post_purchase_request_reviewed",
            request_id=str(request.id),
            previous_status=previous,
            new_status=request.status,
            reviewed_by=command.reviewed_by,
        )


def review_request(request_id, status, reviewed_by=None, note=None) -> PostPurchaseRequest:
    with keyed_locks.hold(f"request:{request_id}"):
        current_domain.process(
            ReviewRequest(request_id=request_id, status=status, reviewed_by=reviewed_by, note=note),
            asynchronous=False,
        )
    return current_domain.repository_for(PostPurchaseRequest).get(request_id)


def list_requests_for_customer(customer_id) -> list[PostPurchaseRequest]:
    return current_domain.repository_for(PostPurchaseRequest).for_customer(customer_id)


def list_requests_for_order(order_id) -> list[PostPurchaseRequest]:
    return current_domain.repository_for(PostPurchaseRequest).for_order(order_id)
