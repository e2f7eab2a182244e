"""Application tests for order history, the staff listing and public tracking."""

import pytest
from checkout.order.order import Order
from checkout.order.placement import place_order
from checkout.order.queries import list_orders, list_orders_for_customer, track_order
from checkout.order.transitions import transition_order
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


@pytest.fixture
def two_orders(ready_draft):
    first = place_order(draft_id=ready_draft(customer_id="cust-001"))
    second = place_order(draft_id=ready_draft(customer_id="cust-002"))
    transition_order(second, "PAID")
    return first, second


@pytest.fixture
def placed(ready_draft):
    return place_order(draft_id=ready_draft())


def _number(order_id):
    return current_domain.repository_for(Order).get(order_id).number


class TestCustomerHistory:
    def test_only_own_orders(self, two_orders):
        first, _ = two_orders
        assert [str(o.id) for o in list_orders_for_customer("cust-001")] == [first]

    def test_no_orders(self):
        assert list_orders_for_customer("cust-404") == []


class TestStaffListing:
    def test_summary_counts_every_status(self, two_orders):
        orders, summary = list_orders()

        assert len(orders) == 2
        assert summary == {"PENDING": 1, "PAID": 1, "FULFILLED": 0, "CANCELLED": 0}

    def test_status_filter_keeps_full_summary(self, two_orders):
        _, second = two_orders
        orders, summary = list_orders("paid")

        assert [str(o.id) for o in orders] == [second]
        assert summary["PENDING"] == 1

    def test_unknown_status_filter(self):
        with pytest.raises(ValidationError):
            list_orders("LOST")


class TestTrackOrder:
    def test_by_email_ignores_case(self, placed):
        number = _number(placed)

        assert str(track_order(number, email="ASHA@example.com").id) == placed

    def test_by_phone_digits(self, placed):
        number = _number(placed)

        assert str(track_order(f"#{number.lower()}", phone="+91-98765-43210").id) == placed

    def test_wrong_contact_looks_like_missing_order(self, placed):
        with pytest.raises(ObjectNotFoundError):
            track_order(_number(placed), email="someone@example.com")

    def test_contact_required(self, placed):
        with pytest.raises(ValidationError):
            track_order(_number(placed))
