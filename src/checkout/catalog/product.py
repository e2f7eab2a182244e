"""Product aggregate with its purchasable Variants.

This is the checkout context's local copy of the catalog: just enough of a
product (handle, variants, prices, inventory summaries) to resolve a size
token to a variant and price a line item.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Integer, String, Text

from checkout.catalog.events import InventoryLevelsUpdated, ProductRegistered
from checkout.domain import checkout


class InventoryPolicy(Enum):
    DENY = "DENY"
    CONTINUE = "CONTINUE"


@checkout.entity(part_of="Product")
class Variant:
    """A purchasable configuration of a product, such as "Red / M".

    ``inventory_levels`` holds a JSON list of ``{"location", "available"}``
    records, or nothing when inventory has not been loaded for the variant.
    """

    title: String(required=True, max_length=255)
    sku: String(max_length=100)
    price: Float(required=True, min_value=0.0)
    compare_at_price: Float(min_value=0.0)
    option_values: Text()  # JSON object, option name -> value
    track_inventory: Boolean(default=True)
    inventory_policy: String(choices=InventoryPolicy, default=InventoryPolicy.DENY.value)
    inventory_levels: Text()
    position: Integer(default=0)

    @property
    def option_map(self) -> dict:
        return json.loads(self.option_values) if self.option_values else {}

    @property
    def levels_loaded(self) -> bool:
        return self.inventory_levels is not None

    @property
    def quantity_available(self) -> int:
        if not self.levels_loaded:
            return 0
        return sum(int(level.get("available") or 0) for level in json.loads(self.inventory_levels))

    @property
    def available_for_sale(self) -> bool:
        if not self.track_inventory:
            return True
        if self.inventory_policy == InventoryPolicy.CONTINUE.value:
            return True
        if not self.levels_loaded:
            return True
        return self.quantity_available > 0


@checkout.aggregate
class Product:
    handle: String(required=True, max_length=255, unique=True)
    title: String(required=True, max_length=255)
    currency: String(max_length=3, default="INR")
    variants: HasMany(Variant)
    created_at: DateTime()

    @invariant.post
    def variant_prices_must_not_be_negative(self):
        for variant in self.variants:
            if variant.price is not None and variant.price < 0:
                raise ValidationError({"variants": [f"Variant {variant.title} has a negative price"]})

    @classmethod
    def register(cls, handle, title, variants_data, currency="INR"):
        """Create a product from raw variant dicts, keeping their given order."""
        product = cls(
            handle=handle.strip().lower(),
            title=title,
            currency=(currency or "INR").upper(),
            created_at=datetime.now(UTC),
        )
        for position, data in enumerate(variants_data):
            levels = data.get("inventory_levels")
            product.add_variants(
                Variant(
                    title=data.get("title") or "Default Title",
                    sku=data.get("sku"),
                    price=data["price"],
                    compare_at_price=data.get("compare_at_price"),
                    option_values=json.dumps(data.get("option_values") or {}),
                    track_inventory=data.get("track_inventory", True),
                    inventory_policy=data.get("inventory_policy") or InventoryPolicy.DENY.value,
                    inventory_levels=json.dumps(levels) if levels is not None else None,
                    position=position,
                )
            )

        product.raise_(
            ProductRegistered(
                product_id=str(product.id),
                handle=product.handle,
                variant_count=len(product.variants),
            )
        )
        return product

    def ordered_variants(self) -> list:
        """Variants in catalog order."""
        return sorted(self.variants, key=lambda v: v.position or 0)

    def find_variant(self, variant_id):
        return next((v for v in self.variants if str(v.id) == str(variant_id)), None)

    def set_inventory_levels(self, variant_id, levels):
        variant = self.find_variant(variant_id)
        if variant is None:
            raise ValidationError({"variant_id": [f"Variant {variant_id} not found"]})

        variant.inventory_levels = json.dumps(levels) if levels is not None else None

        self.raise_(
            InventoryLevelsUpdated(
                product_id=str(self.id),
                variant_id=str(variant.id),
                quantity_available=variant.quantity_available,
            )
        )
