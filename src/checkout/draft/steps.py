"""Checkout steps: commands and handler.

Line items are always re-priced from the catalog when checkout begins, so a
stale cart can never carry an old price into a draft.
"""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from checkout.addresses.address_book import AddressBook
from checkout.cart.cart import ShoppingCart
from checkout.catalog.lines import price_lines
from checkout.discount.verification import live_discount_terms
from checkout.domain import checkout
from checkout.draft.draft import CheckoutDraft
from checkout.errors import EmptySelectionError
from checkout.shared.address import ADDRESS_FIELDS


@checkout.command(part_of="CheckoutDraft")
class BeginCheckout:
    """Start (or restart) checkout from the cart's selected lines or an explicit selection."""

    customer_id = Identifier(required=True)
    cart_id = Identifier()
    items = Text()  # JSON list of {handle, size, quantity}; overrides the cart when given


@checkout.command(part_of="CheckoutDraft")
class SetDraftAddress:
    draft_id = Identifier(required=True)
    saved_address_id = Identifier()
    full_name = String(max_length=255)
    email = String(max_length=255)
    phone = String(max_length=30)
    address = String(max_length=500)
    city = String(max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=100)
    save_to_address_book = Boolean(default=False)


@checkout.command(part_of="CheckoutDraft")
class SetDraftPaymentMethod:
    draft_id = Identifier(required=True)
    payment_method = String(required=True, max_length=20)


@checkout.command(part_of="CheckoutDraft")
class ApplyDraftDiscount:
    draft_id = Identifier(required=True)
    code = String(required=True, max_length=50)


@checkout.command(part_of="CheckoutDraft")
class RemoveDraftDiscount:
    draft_id = Identifier(required=True)


@checkout.command(part_of="CheckoutDraft")
class AbandonCheckout:
    draft_id = Identifier(required=True)


def _selection(command) -> tuple[list[dict], str | None]:
    if command.items:
        return json.loads(command.items), command.cart_id

    cart_repo = current_domain.repository_for(ShoppingCart)
    cart = cart_repo.get(command.cart_id) if command.cart_id else cart_repo.find_for_customer(command.customer_id)
    if cart is None:
        raise EmptySelectionError()
    requested = [
        {"handle": item.handle, "size": item.size, "quantity": item.quantity} for item in cart.selected_items()
    ]
    return requested, str(cart.id)


@checkout.command_handler(part_of=CheckoutDraft)
class CheckoutStepsHandler:
    @handle(BeginCheckout)
    def begin_checkout(self, command):
        requested, cart_id = _selection(command)
        if not requested:
            raise EmptySelectionError()
        lines = price_lines(requested)

        repo = current_domain.repository_for(CheckoutDraft)
        draft = repo.find_open_for_customer(command.customer_id)
        if draft is None:
            draft = CheckoutDraft.begin(command.customer_id, lines, cart_id=cart_id)
        else:
            draft.replace_items(lines)
            draft.cart_id = cart_id or draft.cart_id

        repo.add(draft)
        return str(draft.id)

    @handle(SetDraftAddress)
    def set_address(self, command):
        repo = current_domain.repository_for(CheckoutDraft)
        draft = repo.get(command.draft_id)

        if command.saved_address_id:
            book = current_domain.repository_for(AddressBook).find_for_customer(draft.customer_id)
            saved = book.find(command.saved_address_id) if book else None
            if saved is None:
                raise ObjectNotFoundError({"saved_address_id": [f"Address {command.saved_address_id} not found"]})
            address = saved.as_shipping()
            # Saved addresses may predate email capture
            address["email"] = address.get("email") or command.email
        else:
            address = {name: getattr(command, name) for name in ADDRESS_FIELDS}

        draft.set_address(address)

        if command.save_to_address_book and not command.saved_address_id:
            book_repo = current_domain.repository_for(AddressBook)
            book = book_repo.find_for_customer(draft.customer_id) or AddressBook(customer_id=draft.customer_id)
            book.save_address(address)
            book_repo.add(book)

        repo.add(draft)

    @handle(SetDraftPaymentMethod)
    def set_payment_method(self, command):
        repo = current_domain.repository_for(CheckoutDraft)
        draft = repo.get(command.draft_id)
        draft.set_payment_method(command.payment_method)
        repo.add(draft)

    @handle(ApplyDraftDiscount)
    def apply_discount(self, command):
        repo = current_domain.repository_for(CheckoutDraft)
        draft = repo.get(command.draft_id)
        draft.apply_discount(live_discount_terms(command.code))
        repo.add(draft)

    @handle(RemoveDraftDiscount)
    def remove_discount(self, command):
        repo = current_domain.repository_for(CheckoutDraft)
        draft = repo.get(command.draft_id)
        if not draft.applied_discount:
            raise ValidationError({"discount_code": ["No discount code is applied."]})
        draft.apply_discount(None)
        repo.add(draft)

    @handle(AbandonCheckout)
    def abandon(self, command):
        repo = current_domain.repository_for(CheckoutDraft)
        draft = repo.get(command.draft_id)
        draft.abandon()
        repo.add(draft)
