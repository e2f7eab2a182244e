"""Saved address management: commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from checkout.addresses.address_book import AddressBook
from checkout.domain import checkout
from checkout.shared.address import ADDRESS_FIELDS


@checkout.command(part_of="AddressBook")
class SaveAddress:
    customer_id: Identifier(required=True)
    address_id: Identifier()
    label: String(max_length=50)
    full_name: String(max_length=255)
    email: String(max_length=255)
    phone: String(max_length=30)
    address: String(max_length=500)
    city: String(max_length=100)
    state: String(max_length=100)
    postal_code: String(max_length=20)
    country: String(max_length=100)
    is_default: Boolean(default=False)


@checkout.command(part_of="AddressBook")
class SetDefaultAddress:
    customer_id: Identifier(required=True)
    address_id: Identifier(required=True)


@checkout.command(part_of="AddressBook")
class RemoveAddress:
    customer_id: Identifier(required=True)
    address_id: Identifier(required=True)


@checkout.command_handler(part_of=AddressBook)
class AddressBookHandler:
    def _book(self, customer_id):
        book = current_domain.repository_for(AddressBook).find_for_customer(customer_id)
        if book is None:
            raise ObjectNotFoundError({"customer_id": [f"No saved addresses for customer {customer_id}"]})
        return book

    @handle(SaveAddress)
    def save_address(self, command):
        repo = current_domain.repository_for(AddressBook)
        book = repo.find_for_customer(command.customer_id) or AddressBook(customer_id=command.customer_id)

        data = {name: getattr(command, name) for name in ADDRESS_FIELDS}
        saved = book.save_address(
            data,
            label=command.label,
            is_default=bool(command.is_default),
            address_id=command.address_id,
        )
        repo.add(book)
        return str(saved.id)

    @handle(SetDefaultAddress)
    def set_default(self, command):
        book = self._book(command.customer_id)
        book.set_default(command.address_id)
        current_domain.repository_for(AddressBook).add(book)

    @handle(RemoveAddress)
    def remove_address(self, command):
        book = self._book(command.customer_id)
        book.remove(command.address_id)
        current_domain.repository_for(AddressBook).add(book)
