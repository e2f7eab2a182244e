"""Repository for the PostPurchaseRequest aggregate."""

from checkout.domain import checkout
from checkout.requests.request import PostPurchaseRequest


@checkout.repository(part_of=PostPurchaseRequest)
class PostPurchaseRequestRepository:
    def for_customer(self, customer_id) -> list[PostPurchaseRequest]:
        requests = self._dao.query.filter(customer_id=str(customer_id)).all().items
        return sorted(requests, key=lambda r: r.created_at, reverse=True)

    def for_order(self, order_id) -> list[PostPurchaseRequest]:
        requests = self._dao.query.filter(order_id=str(order_id)).all().items
        return sorted(requests, key=lambda r: r.created_at, reverse=True)
