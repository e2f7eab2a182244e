"""Application tests for cancel, return and exchange requests."""

import pytest
from checkout.errors import IllegalTransitionError, RequestNotEligible
from checkout.order.order import Order, OrderStatus
from checkout.order.placement import place_order
from checkout.order.transitions import transition_order
from checkout.requests.request import RequestStatus
from checkout.requests.review import list_requests_for_customer, list_requests_for_order, review_request
from checkout.requests.submission import submit_request
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

BANK = {"account_name": "Asha Rao", "account_number": "001234567890", "ifsc": "HDFC0000123", "bank_name": "HDFC Bank"}


@pytest.fixture
def order_id(ready_draft):
    return place_order(draft_id=ready_draft())


@pytest.fixture
def delivered_order_id(order_id):
    transition_order(order_id, "PAID")
    transition_order(order_id, "FULFILLED")
    return order_id


def _line_ids(order_id):
    return sorted(current_domain.repository_for(Order).get(order_id).line_ids())


class TestSubmitRequest:
    def test_cancel_pending_order(self, order_id):
        request = submit_request(
            order_id,
            "cancel",
            customer_id="cust-001",
            item_ids=_line_ids(order_id),
            reason="Size doesn't fit",
        )

        assert request.request_type == "CANCEL"
        assert request.status == RequestStatus.REQUESTED.value
        assert request.selected_item_ids() == _line_ids(order_id)
        assert request.bank_details is None

    def test_submission_leaves_order_untouched(self, order_id):
        submit_request(order_id, "CANCEL", item_ids=_line_ids(order_id), reason="Size doesn't fit")
        assert current_domain.repository_for(Order).get(order_id).status == OrderStatus.PENDING.value

    def test_return_needs_bank_details(self, delivered_order_id):
        with pytest.raises(ValidationError) as exc:
            submit_request(
                delivered_order_id,
                "RETURN",
                item_ids=_line_ids(delivered_order_id),
                reason="Defective/Damaged item",
            )
        assert "bank_details" in exc.value.messages

    def test_return_with_bank_details(self, delivered_order_id):
        request = submit_request(
            delivered_order_id,
            "RETURN",
            item_ids=_line_ids(delivered_order_id),
            reason="Defective/Damaged item",
            attachments=["photo-1.jpg"],
            bank_details=BANK,
        )
        assert request.bank_details.ifsc == "HDFC0000123"

    def test_exchange_of_undelivered_order(self, order_id):
        with pytest.raises(RequestNotEligible) as exc:
            submit_request(order_id, "EXCHANGE", item_ids=_line_ids(order_id), reason="Size doesn't fit")
        assert exc.value.messages == {"order": ["Return or exchange is available only for delivered orders."]}

    def test_cancel_of_delivered_order(self, delivered_order_id):
        with pytest.raises(RequestNotEligible) as exc:
            submit_request(
                delivered_order_id, "CANCEL", item_ids=_line_ids(delivered_order_id), reason="Size doesn't fit"
            )
        assert exc.value.messages == {"order": ["Order has already been fulfilled. Use Return or Exchange instead."]}

    def test_items_must_belong_to_order(self, order_id):
        with pytest.raises(ValidationError) as exc:
            submit_request(order_id, "CANCEL", item_ids=["not-a-line"], reason="Size doesn't fit")
        assert exc.value.messages == {"item_ids": ["One or more selected items do not belong to this order."]}

    def test_other_reason_needs_description(self, order_id):
        with pytest.raises(ValidationError):
            submit_request(order_id, "CANCEL", item_ids=_line_ids(order_id), reason="Other", other_reason="x")

    def test_unknown_request_type(self, order_id):
        with pytest.raises(ValidationError):
            submit_request(order_id, "REFUND", item_ids=_line_ids(order_id), reason="Size doesn't fit")

    def test_order_of_another_customer(self, order_id):
        with pytest.raises(ValidationError) as exc:
            submit_request(
                order_id, "CANCEL", customer_id="cust-002", item_ids=_line_ids(order_id), reason="Size doesn't fit"
            )
        assert exc.value.messages == {"order_id": ["This order belongs to another customer."]}

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            submit_request("missing", "CANCEL", item_ids=["x"], reason="Size doesn't fit")


class TestReviewRequest:
    def test_approve_then_complete(self, order_id):
        request = submit_request(order_id, "CANCEL", item_ids=_line_ids(order_id), reason="Size doesn't fit")

        review_request(str(request.id), "approved", reviewed_by="staff@shop", note="Refund issued")
        completed = review_request(str(request.id), "COMPLETED", reviewed_by="staff@shop")

        assert completed.status == RequestStatus.COMPLETED.value
        assert completed.staff_note == "Refund issued"

    def test_rejected_is_final(self, order_id):
        request = submit_request(order_id, "CANCEL", item_ids=_line_ids(order_id), reason="Size doesn't fit")
        review_request(str(request.id), "REJECTED")

        with pytest.raises(IllegalTransitionError):
            review_request(str(request.id), "APPROVED")

    def test_review_never_touches_order(self, order_id):
        request = submit_request(order_id, "CANCEL", item_ids=_line_ids(order_id), reason="Size doesn't fit")
        review_request(str(request.id), "APPROVED")

        assert current_domain.repository_for(Order).get(order_id).status == OrderStatus.PENDING.value


class TestListRequests:
    def test_by_customer_and_by_order(self, order_id):
        request = submit_request(order_id, "CANCEL", item_ids=_line_ids(order_id), reason="Size doesn't fit")

        assert [r.id for r in list_requests_for_customer("cust-001")] == [request.id]
        assert [r.id for r in list_requests_for_order(order_id)] == [request.id]
        assert list_requests_for_customer("cust-002") == []
