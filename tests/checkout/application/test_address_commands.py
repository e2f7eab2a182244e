"""Application tests for saved address commands."""

import pytest
from checkout.addresses.address_book import AddressBook
from checkout.addresses.management import RemoveAddress, SaveAddress, SetDefaultAddress
from protean import current_domain
from protean.exceptions import ObjectNotFoundError


def _save(shipping_address, customer_id="cust-001", **overrides):
    return current_domain.process(
        SaveAddress(customer_id=customer_id, **{**shipping_address, **overrides}),
        asynchronous=False,
    )


def _addresses(customer_id="cust-001"):
    return current_domain.repository_for(AddressBook).saved_addresses(customer_id)


class TestAddressCommands:
    def test_save_creates_book_and_default(self, shipping_address):
        address_id = _save(shipping_address)
        (saved,) = _addresses()
        assert str(saved.id) == address_id
        assert saved.is_default

    def test_resave_does_not_duplicate(self, shipping_address):
        _save(shipping_address)
        _save(shipping_address, label="Office")
        assert len(_addresses()) == 1

    def test_set_default_and_remove(self, shipping_address):
        first = _save(shipping_address)
        second = _save(shipping_address, address="7 Park Street")
        current_domain.process(SetDefaultAddress(customer_id="cust-001", address_id=second), asynchronous=False)
        current_domain.process(RemoveAddress(customer_id="cust-001", address_id=second), asynchronous=False)

        (remaining,) = _addresses()
        assert str(remaining.id) == first
        assert remaining.is_default

    def test_customer_without_book(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(SetDefaultAddress(customer_id="nobody", address_id="x"), asynchronous=False)
        assert _addresses("nobody") == []
