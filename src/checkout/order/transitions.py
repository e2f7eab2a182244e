"""Staff actions on orders: status changes and tracking updates."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.order.order import TRACKING_FIELDS, Order
from checkout.shared.locks import keyed_locks

logger = structlog.get_logger(__name__)


@checkout.command(part_of="Order")
class TransitionOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    expected_status = String(max_length=20)
    changed_by = String(max_length=255)
    tracking_number = String(max_length=100)
    awb = String(max_length=100)
    courier_name = String(max_length=100)
    tracking_url = String(max_length=500)
    estimated_delivery = String(max_length=10)


@checkout.command(part_of="Order")
class UpdateOrderTracking:
    order_id = Identifier(required=True)
    tracking_number = String(max_length=100)
    awb = String(max_length=100)
    courier_name = String(max_length=100)
    tracking_url = String(max_length=500)
    estimated_delivery = String(max_length=10)


@checkout.command_handler(part_of=Order)
class OrderStaffHandler:
    @handle(TransitionOrderStatus)
    def transition(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status
        order.transition_to(
            command.status,
            expected_status=command.expected_status,
            changed_by=command.changed_by,
        )
        tracking = {name: getattr(command, name) for name in TRACKING_FIELDS if getattr(command, name)}
        if tracking:
            # Same unit of work as the status change; a rejected update saves neither.
            order.update_tracking(**tracking)
        repo.add(order)
        logger.info(
            "order_status_changed",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.status,
            changed_by=command.changed_by,
        )

    @handle(UpdateOrderTracking)
    def update_tracking(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_tracking(
            tracking_number=command.tracking_number,
            awb=command.awb,
            courier_name=command.courier_name,
            tracking_url=command.tracking_url,
            estimated_delivery=command.estimated_delivery,
        )
        repo.add(order)


def transition_order(order_id, status, expected_status=None, changed_by=None, tracking=None) -> None:
    """Compare-and-set the order's status; concurrent staff actions on one order are serialized.

    ``tracking`` fields, when given, are recorded together with the status change.
    """
    with keyed_locks.hold(f"order-status:{order_id}"):
        current_domain.process(
            TransitionOrderStatus(
                order_id=order_id,
                status=status,
                expected_status=expected_status,
                changed_by=changed_by,
                **(tracking or {}),
            ),
            asynchronous=False,
        )
