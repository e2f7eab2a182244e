"""Repository for the Product aggregate."""

from protean.exceptions import ObjectNotFoundError

from checkout.catalog.product import Product
from checkout.domain import checkout


@checkout.repository(part_of=Product)
class ProductRepository:
    def find_by_handle(self, handle: str) -> Product | None:
        results = self._dao.query.filter(handle=(handle or "").strip().lower()).all().items
        return results[0] if results else None

    def get_by_handle(self, handle: str) -> Product:
        product = self.find_by_handle(handle)
        if product is None:
            raise ObjectNotFoundError({"handle": [f"Product {handle} not found"]})
        return product
