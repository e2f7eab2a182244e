"""Shopping Cart aggregate: what a customer intends to buy, one line per product size.

Only selected lines take part in checkout. The cart outlives orders; placing
an order takes the ordered lines out of it and leaves the rest.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String

from checkout.cart.events import (
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CartSelectionChanged,
    OrderedItemsCleared,
)
from checkout.catalog.resolver import normalize_token
from checkout.domain import checkout


def line_key(handle, size) -> tuple[str, str]:
    return normalize_token(handle), normalize_token(size)


@checkout.entity(part_of="ShoppingCart")
class CartItem:
    handle = String(required=True, max_length=255)
    size = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    selected = Boolean(default=True)
    added_at = DateTime()

    @property
    def key(self):
        return line_key(self.handle, self.size)


@checkout.aggregate
class ShoppingCart:
    customer_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(customer_id=customer_id, created_at=now, updated_at=now)

    def _find(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    def add_item(self, handle, size, quantity):
        """Add a product size to the cart, merging with an existing line for the same size."""
        now = datetime.now(UTC)
        existing = next((i for i in self.items if i.key == line_key(handle, size)), None)

        if existing:
            existing.quantity += quantity
            existing.selected = True
            item_id = str(existing.id)
        else:
            item = CartItem(handle=handle, size=size, quantity=quantity, selected=True, added_at=now)
            self.add_items(item)
            item_id = str(item.id)

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=item_id,
                handle=handle,
                size=size,
                quantity=quantity,
            )
        )
        return item_id

    def update_item_quantity(self, item_id, new_quantity):
        item = self._find(item_id)
        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        item = self._find(item_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def set_selection(self, item_ids, selected):
        """Select or deselect lines for checkout. An empty ``item_ids`` means every line."""
        targets = [self._find(item_id) for item_id in item_ids] if item_ids else list(self.items)
        for item in targets:
            item.selected = selected
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartSelectionChanged(
                cart_id=str(self.id),
                item_ids=json.dumps([str(i.id) for i in targets]),
                selected=selected,
            )
        )

    def selected_items(self) -> list:
        return [item for item in self.items if item.selected]

    def clear_ordered_items(self, order_id, ordered_keys):
        """Remove lines whose (handle, size) was bought in ``order_id``."""
        ordered = set(ordered_keys)
        removed = [item for item in self.items if item.key in ordered]
        for item in removed:
            self.remove_items(item)

        if removed:
            self.updated_at = datetime.now(UTC)
            self.raise_(
                OrderedItemsCleared(
                    cart_id=str(self.id),
                    order_id=str(order_id),
                    removed_count=len(removed),
                )
            )
        return len(removed)
