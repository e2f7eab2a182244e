"""Repository for the Order aggregate."""

from protean.exceptions import ObjectNotFoundError

from checkout.domain import checkout
from checkout.order.order import Order, normalize_order_number


@checkout.repository(part_of=Order)
class OrderRepository:
    def find_by_idempotency_key(self, key) -> Order | None:
        results = self._dao.query.filter(idempotency_key=str(key)).all().items
        return results[0] if results else None

    def find_by_number(self, number) -> Order | None:
        results = self._dao.query.filter(number=normalize_order_number(number)).all().items
        return results[0] if results else None

    def get_by_number(self, number) -> Order:
        order = self.find_by_number(number)
        if order is None:
            raise ObjectNotFoundError({"number": ["Order not found."]})
        return order

    def for_customer(self, customer_id) -> list[Order]:
        orders = self._dao.query.filter(customer_id=str(customer_id)).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def list_all(self, status=None) -> list[Order]:
        query = self._dao.query.filter(status=status) if status else self._dao.query
        orders = query.all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)
