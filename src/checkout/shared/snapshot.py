"""Immutable hand-off from checkout to order creation."""

from dataclasses import dataclass

from checkout.pricing.engine import Totals


@dataclass(frozen=True)
class SnapshotLine:
    line_id: str | None
    handle: str
    name: str
    unit_price: float
    quantity: int
    currency: str
    size: str | None = None
    variant_id: str | None = None
    sku: str | None = None

    def to_dict(self) -> dict:
        return {
            "line_id": self.line_id,
            "handle": self.handle,
            "variant_id": self.variant_id,
            "sku": self.sku,
            "name": self.name,
            "size": self.size,
            "unit_price": self.unit_price,
            "currency": self.currency,
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class OrderSnapshot:
    """Everything an order is created from, frozen at the moment checkout was finalized.

    ``shipping_address`` is a cleaned address dict copy; ``lines`` is a tuple
    so later edits to the draft or catalog cannot reach the order.
    """

    customer_id: str | None
    lines: tuple[SnapshotLine, ...]
    shipping_address: tuple[tuple[str, str | None], ...]
    totals: Totals
    payment_method: str
    discount_code: str | None = None
    draft_id: str | None = None

    @property
    def address(self) -> dict:
        return dict(self.shipping_address)

    @property
    def email(self) -> str | None:
        return self.address.get("email")

    @property
    def phone(self) -> str | None:
        return self.address.get("phone")

    def line_keys(self) -> list[tuple[str, str]]:
        from checkout.cart.cart import line_key

        return [line_key(line.handle, line.size) for line in self.lines]


def freeze_address(address: dict) -> tuple[tuple[str, str | None], ...]:
    return tuple(sorted(address.items()))
