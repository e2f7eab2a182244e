"""AddressBook aggregate: a customer's saved shipping addresses.

Re-saving an address that matches an existing one (by id, or by its
name/phone/street/city/postal-code fingerprint) updates it instead of adding
a duplicate. At most one address is the default at any time.
"""

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, HasMany, Identifier, String

from checkout.addresses.events import AddressSaved, DefaultAddressChanged, SavedAddressRemoved
from checkout.domain import checkout
from checkout.shared.address import ADDRESS_FIELDS, address_fingerprint, clean_address

DEFAULT_LABEL = "Home"


@checkout.entity(part_of="AddressBook")
class SavedAddress:
    label: String(max_length=50, default=DEFAULT_LABEL)
    full_name: String(required=True, max_length=255)
    email: String(max_length=255)
    phone: String(required=True, max_length=30)
    address: String(required=True, max_length=500)
    city: String(required=True, max_length=100)
    state: String(max_length=100)
    postal_code: String(required=True, max_length=6)
    country: String(max_length=100)
    is_default: Boolean(default=False)
    fingerprint: String(max_length=1000)

    def as_shipping(self) -> dict:
        return {name: getattr(self, name) for name in ADDRESS_FIELDS}


@checkout.aggregate
class AddressBook:
    customer_id: Identifier(required=True, unique=True)
    addresses: HasMany(SavedAddress)

    @invariant.post
    def at_most_one_default_address(self):
        if sum(1 for a in self.addresses if a.is_default) > 1:
            raise ValidationError({"addresses": ["Only one address can be the default"]})

    def find(self, address_id):
        return next((a for a in self.addresses if str(a.id) == str(address_id)), None)

    def default_address(self):
        return next((a for a in self.addresses if a.is_default), None)

    def save_address(self, data, label=None, is_default=False, address_id=None):
        """Insert or update an address; return the saved entry."""
        cleaned = clean_address(data)
        fingerprint = address_fingerprint(cleaned)

        existing = self.find(address_id) if address_id else None
        if address_id and existing is None:
            raise ValidationError({"address_id": [f"Address {address_id} not found"]})
        if existing is None:
            existing = next((a for a in self.addresses if a.fingerprint == fingerprint), None)

        if not self.addresses:
            is_default = True

        with atomic_change(self):
            if is_default:
                for addr in self.addresses:
                    if addr.is_default:
                        addr.is_default = False

            if existing is not None:
                for name, value in cleaned.items():
                    setattr(existing, name, value)
                existing.fingerprint = fingerprint
                existing.label = label or existing.label or DEFAULT_LABEL
                if is_default:
                    existing.is_default = True
                saved = existing
            else:
                saved = SavedAddress(
                    label=label or DEFAULT_LABEL,
                    is_default=is_default,
                    fingerprint=fingerprint,
                    **cleaned,
                )
                self.add_addresses(saved)

        self.raise_(
            AddressSaved(
                address_book_id=str(self.id),
                customer_id=str(self.customer_id),
                address_id=str(saved.id),
                label=saved.label,
                is_default=saved.is_default,
                created=existing is None,
            )
        )
        return saved

    def set_default(self, address_id):
        address = self.find(address_id)
        if address is None:
            raise ValidationError({"address_id": [f"Address {address_id} not found"]})

        with atomic_change(self):
            for addr in self.addresses:
                addr.is_default = False
            address.is_default = True

        self.raise_(
            DefaultAddressChanged(
                address_book_id=str(self.id),
                customer_id=str(self.customer_id),
                address_id=str(address.id),
            )
        )

    def remove(self, address_id):
        address = self.find(address_id)
        if address is None:
            raise ValidationError({"address_id": [f"Address {address_id} not found"]})

        was_default = address.is_default
        with atomic_change(self):
            self.remove_addresses(address)
            if was_default and self.addresses:
                self.addresses[0].is_default = True

        self.raise_(
            SavedAddressRemoved(
                address_book_id=str(self.id),
                customer_id=str(self.customer_id),
                address_id=str(address_id),
            )
        )
