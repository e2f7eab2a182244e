"""Cart item management: commands and handler."""

import json

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from checkout.cart.cart import ShoppingCart
from checkout.domain import checkout


@checkout.command(part_of="ShoppingCart")
class AddToCart:
    customer_id = Identifier(required=True)
    handle = String(required=True, max_length=255)
    size = String(max_length=100)
    quantity = Integer(required=True, min_value=1)


@checkout.command(part_of="ShoppingCart")
class UpdateCartQuantity:
    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    new_quantity = Integer(required=True, min_value=1)


@checkout.command(part_of="ShoppingCart")
class RemoveFromCart:
    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


@checkout.command(part_of="ShoppingCart")
class SelectCartItems:
    cart_id = Identifier(required=True)
    item_ids = Text()  # JSON array; empty selects every line
    selected = Boolean(default=True)


@checkout.command_handler(part_of=ShoppingCart)
class CartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.find_for_customer(command.customer_id) or ShoppingCart.create(command.customer_id)
        item_id = cart.add_item(command.handle, command.size, command.quantity)
        repo.add(cart)
        return {"cart_id": str(cart.id), "item_id": item_id}

    @handle(UpdateCartQuantity)
    def update_quantity(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.update_item_quantity(command.item_id, command.new_quantity)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.remove_item(command.item_id)
        repo.add(cart)

    @handle(SelectCartItems)
    def select_items(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        item_ids = json.loads(command.item_ids) if command.item_ids else []
        cart.set_selection(item_ids, command.selected)
        repo.add(cart)
