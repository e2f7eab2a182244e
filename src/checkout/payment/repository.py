"""Repository for the PaymentIntent aggregate."""

import json

from protean.exceptions import ObjectNotFoundError

from checkout.domain import checkout
from checkout.payment.intent import PaymentIntent


@checkout.repository(part_of=PaymentIntent)
class PaymentIntentRepository:
    def find_by_receipt(self, receipt) -> PaymentIntent | None:
        results = self._dao.query.filter(receipt=str(receipt)).all().items
        return results[0] if results else None

    def get_by_gateway_order_id(self, gateway_order_id) -> PaymentIntent:
        """The intent that issued ``gateway_order_id``, whether it is still current or was superseded."""
        gateway_order_id = str(gateway_order_id)
        results = self._dao.query.filter(gateway_order_id=gateway_order_id).all().items
        if not results:
            results = [
                intent
                for intent in self._dao.query.filter(superseded_orders__contains=json.dumps(gateway_order_id))
                .all()
                .items
                if intent.amount_minor_for(gateway_order_id) is not None
            ]
        if not results:
            raise ObjectNotFoundError({"gateway_order_id": ["Unknown payment order."]})
        return results[0]
