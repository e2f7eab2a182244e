"""Read-side helpers for orders: customer history, staff listing and public tracking."""

from collections import Counter

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from checkout.order.order import Order, OrderStatus


def list_orders_for_customer(customer_id) -> list[Order]:
    return current_domain.repository_for(Order).for_customer(customer_id)


def list_orders(status=None) -> tuple[list[Order], dict[str, int]]:
    """Orders (newest first) plus a count per status across all orders."""
    repo = current_domain.repository_for(Order)
    if status:
        try:
            status = OrderStatus(str(status).upper()).value
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status {status}"]}) from None

    every_order = repo.list_all()
    counts = Counter(order.status for order in every_order)
    summary = {s.value: counts.get(s.value, 0) for s in OrderStatus}
    orders = [o for o in every_order if o.status == status] if status else every_order
    return orders, summary


def track_order(number, email=None, phone=None) -> Order:
    """Public order lookup by number plus a contact detail the order was placed with."""
    if not number:
        raise ValidationError({"number": ["Order number is required."]})
    if not email and not phone:
        raise ValidationError({"contact": ["Provide the email or phone used for the order."]})

    order = current_domain.repository_for(Order).find_by_number(number)
    # Same answer for a wrong number and a wrong contact
    if order is None or not order.contact_matches(email=email, phone=phone):
        raise ObjectNotFoundError({"number": ["Order not found."]})
    return order
