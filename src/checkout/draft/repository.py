"""Repository for the CheckoutDraft aggregate."""

from checkout.domain import checkout
from checkout.draft.draft import CheckoutDraft, DraftStatus


@checkout.repository(part_of=CheckoutDraft)
class CheckoutDraftRepository:
    def find_open_for_customer(self, customer_id) -> CheckoutDraft | None:
        results = (
            self._dao.query.filter(customer_id=str(customer_id), status=DraftStatus.OPEN.value).all().items
        )
        return results[0] if results else None
