"""Product registration and inventory updates: commands and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from checkout.catalog.product import Product
from checkout.domain import checkout


@checkout.command(part_of="Product")
class RegisterProduct:
    handle: String(required=True, max_length=255)
    title: String(required=True, max_length=255)
    currency: String(max_length=3, default="INR")
    variants: Text(required=True)  # JSON list of variant dicts


@checkout.command(part_of="Product")
class SetInventoryLevels:
    product_id: Identifier(required=True)
    variant_id: Identifier(required=True)
    inventory_levels: Text()  # JSON list, or empty to mark levels as not loaded


@checkout.command_handler(part_of=Product)
class ProductHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        repo = current_domain.repository_for(Product)
        if repo.find_by_handle(command.handle) is not None:
            raise ValidationError({"handle": [f"Product {command.handle} already exists"]})

        product = Product.register(
            handle=command.handle,
            title=command.title,
            variants_data=json.loads(command.variants),
            currency=command.currency,
        )
        repo.add(product)
        return str(product.id)

    @handle(SetInventoryLevels)
    def set_inventory_levels(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        levels = json.loads(command.inventory_levels) if command.inventory_levels else None
        product.set_inventory_levels(command.variant_id, levels)
        repo.add(product)
