"""Repository for the Discount aggregate."""

from protean.exceptions import ObjectNotFoundError

from checkout.discount.discount import Discount, normalize_code
from checkout.domain import checkout


@checkout.repository(part_of=Discount)
class DiscountRepository:
    def find_by_code(self, code) -> Discount | None:
        results = self._dao.query.filter(code=normalize_code(code)).all().items
        return results[0] if results else None

    def get_by_code(self, code) -> Discount:
        discount = self.find_by_code(code)
        if discount is None:
            raise ObjectNotFoundError({"code": ["Discount code not found."]})
        return discount
