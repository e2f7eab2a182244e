"""PostPurchaseRequest aggregate: a customer's cancel, return or exchange request.

A request never changes the order it refers to. Staff review the request
and, separately, move the order through its own state machine.

Request states:
    REQUESTED -> APPROVED -> COMPLETED
    REQUESTED -> REJECTED
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text, ValueObject

from checkout.domain import checkout
from checkout.errors import IllegalTransitionError, RequestNotEligible
from checkout.order.order import OrderStatus
from checkout.requests.events import PostPurchaseRequestReviewed, PostPurchaseRequestSubmitted

MAX_ATTACHMENTS = 6
MAX_COMMENTS_LENGTH = 1000


class RequestType(Enum):
    CANCEL = "CANCEL"
    RETURN = "RETURN"
    EXCHANGE = "EXCHANGE"


class RequestReason(Enum):
    SIZE = "Size doesn't fit"
    QUALITY = "Quality not as expected"
    WRONG_ITEM = "Wrong item received"
    DEFECTIVE = "Defective/Damaged item"
    STYLE = "Don't like the style/color"
    OTHER = "Other"


class RequestStatus(Enum):
    REQUESTED = "REQUESTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


_VALID_TRANSITIONS = {
    RequestStatus.REQUESTED: {RequestStatus.APPROVED, RequestStatus.REJECTED},
    RequestStatus.APPROVED: {RequestStatus.COMPLETED},
    RequestStatus.REJECTED: set(),
    RequestStatus.COMPLETED: set(),
}

# Order states in which each request type may be raised
_ELIGIBLE_ORDER_STATES = {
    RequestType.CANCEL: {OrderStatus.PENDING, OrderStatus.PAID},
    RequestType.RETURN: {OrderStatus.FULFILLED},
    RequestType.EXCHANGE: {OrderStatus.FULFILLED},
}


def assert_eligible(request_type: RequestType, order_status) -> None:
    """Raise ``RequestNotEligible`` with the reason the shopper should see."""
    status = OrderStatus(order_status)
    if status in _ELIGIBLE_ORDER_STATES[request_type]:
        return

    if request_type == RequestType.CANCEL:
        if status == OrderStatus.CANCELLED:
            message = "Order is already cancelled."
        else:
            message = "Order has already been fulfilled. Use Return or Exchange instead."
    elif status == OrderStatus.CANCELLED:
        message = "Cannot create a request for a cancelled order."
    else:
        message = "Return or exchange is available only for delivered orders."
    raise RequestNotEligible({"order": [message]})


@checkout.value_object(part_of="PostPurchaseRequest")
class BankDetails:
    """Where a refund for a returned item is paid out."""

    account_name = String(required=True, max_length=255)
    account_number = String(required=True, min_length=4, max_length=34)
    ifsc = String(required=True, min_length=4, max_length=20)
    bank_name = String(required=True, max_length=255)


@checkout.aggregate
class PostPurchaseRequest:
    order_id = Identifier(required=True)
    order_number = String(max_length=50)
    customer_id = Identifier()
    request_type = String(choices=RequestType, required=True)
    item_ids = Text(required=True)  # JSON array of order line ids
    reason = String(choices=RequestReason, required=True)
    other_reason = String(max_length=200)
    comments = String(max_length=MAX_COMMENTS_LENGTH)
    attachments = Text()  # JSON array of attachment references
    bank_details = ValueObject(BankDetails)
    status = String(choices=RequestStatus, default=RequestStatus.REQUESTED.value)
    reviewed_by = String(max_length=255)
    staff_note = String(max_length=1000)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def return_requires_bank_details(self):
        if self.request_type == RequestType.RETURN.value and self.bank_details is None:
            raise ValidationError({"bank_details": ["Bank details are required for a return refund."]})

    @invariant.post
    def other_reason_must_be_described(self):
        if self.reason == RequestReason.OTHER.value and len((self.other_reason or "").strip()) < 2:
            raise ValidationError({"other_reason": ["Describe the reason in 2 to 200 characters."]})

    @classmethod
    def submit(cls, order, request_type, item_ids, reason, other_reason=None, comments=None, attachments=None, bank_details=None):
        """Validate against ``order`` and create the request.

        ``bank_details`` is a dict; it is ignored for cancellations and
        exchanges, which never pay out.
        """
        try:
            kind = RequestType(str(request_type).upper())
        except ValueError:
            raise ValidationError({"request_type": [f"Unknown request type {request_type}"]}) from None

        assert_eligible(kind, order.status)

        selected = list(dict.fromkeys(str(i) for i in item_ids or []))
        if not selected:
            raise ValidationError({"item_ids": ["Select at least one item."]})
        if set(selected) - order.line_ids():
            raise ValidationError({"item_ids": ["One or more selected items do not belong to this order."]})

        if reason == RequestReason.OTHER.value and len((other_reason or "").strip()) < 2:
            raise ValidationError({"other_reason": ["Describe the reason in 2 to 200 characters."]})

        attachments = list(attachments or [])
        if len(attachments) > MAX_ATTACHMENTS:
            raise ValidationError({"attachments": [f"Attach at most {MAX_ATTACHMENTS} files."]})

        bank = None
        if kind == RequestType.RETURN:
            if not bank_details:
                raise ValidationError({"bank_details": ["Bank details are required for a return refund."]})
            bank = BankDetails(**{k: (str(v).strip() if v is not None else None) for k, v in bank_details.items()})

        now = datetime.now(UTC)
        request = cls(
            order_id=str(order.id),
            order_number=order.number,
            customer_id=order.customer_id,
            request_type=kind.value,
            item_ids=json.dumps(selected),
            reason=reason,
            other_reason=(other_reason or "").strip() or None,
            comments=(comments or "").strip() or None,
            attachments=json.dumps(attachments),
            bank_details=bank,
            created_at=now,
            updated_at=now,
        )
        request.raise_(
            PostPurchaseRequestSubmitted(
                request_id=str(request.id),
                order_id=str(order.id),
                request_type=kind.value,
                reason=reason,
                item_ids=request.item_ids,
            )
        )
        return request

    def selected_item_ids(self) -> list[str]:
        return json.loads(self.item_ids)

    def review(self, status, reviewed_by=None, note=None):
        try:
            target = RequestStatus(str(status).upper())
        except ValueError:
            raise ValidationError({"status": [f"Unknown request status {status}"]}) from None

        current = RequestStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise IllegalTransitionError({"status": [f"Cannot move request from {current.value} to {target.value}"]})

        self.status = target.value
        self.reviewed_by = reviewed_by
        self.staff_note = note or self.staff_note
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PostPurchaseRequestReviewed(
                request_id=str(self.id),
                order_id=str(self.order_id),
                previous_status=current.value,
                new_status=target.value,
                reviewed_by=reviewed_by,
            )
        )
