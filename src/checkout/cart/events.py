"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Boolean, Identifier, Integer, String, Text

from checkout.domain import checkout


@checkout.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product size was added to the cart, or its quantity increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    handle = String(required=True)
    size = String()
    quantity = Integer(required=True)


@checkout.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@checkout.event(part_of="ShoppingCart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


@checkout.event(part_of="ShoppingCart")
class CartSelectionChanged:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_ids = Text(required=True)  # JSON array
    selected = Boolean(required=True)


@checkout.event(part_of="ShoppingCart")
class OrderedItemsCleared:
    """Items bought in an order were taken out of the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)
    removed_count = Integer(required=True)
