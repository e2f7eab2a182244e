"""Explicit stock check, run before a line is allowed into checkout."""

from checkout.catalog.product import InventoryPolicy
from checkout.errors import CheckoutValidationError


def check_availability(product, variant, quantity: int) -> None:
    """Reject a line whose variant cannot be sold in the requested quantity."""
    label = f"{product.title} ({variant.title})"

    if not variant.available_for_sale:
        raise CheckoutValidationError({"items": [f"{label} is out of stock."]})

    if (
        variant.track_inventory
        and variant.inventory_policy == InventoryPolicy.DENY.value
        and variant.levels_loaded
        and variant.quantity_available < quantity
    ):
        raise CheckoutValidationError(
            {"items": [f"Only {variant.quantity_available} of {label} left in stock."]}
        )
