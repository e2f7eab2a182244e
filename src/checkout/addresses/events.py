"""Domain events for the AddressBook aggregate."""

from protean.fields import Boolean, Identifier, String

from checkout.domain import checkout


@checkout.event(part_of="AddressBook")
class AddressSaved:
    __version__ = 1

    address_book_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    address_id = Identifier(required=True)
    label = String()
    is_default = Boolean()
    created = Boolean()


@checkout.event(part_of="AddressBook")
class DefaultAddressChanged:
    __version__ = 1

    address_book_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    address_id = Identifier(required=True)


@checkout.event(part_of="AddressBook")
class SavedAddressRemoved:
    __version__ = 1

    address_book_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    address_id = Identifier(required=True)
