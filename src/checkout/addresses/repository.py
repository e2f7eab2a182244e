"""Repository for the AddressBook aggregate."""

from checkout.addresses.address_book import AddressBook
from checkout.domain import checkout


@checkout.repository(part_of=AddressBook)
class AddressBookRepository:
    def find_for_customer(self, customer_id) -> AddressBook | None:
        results = self._dao.query.filter(customer_id=str(customer_id)).all().items
        return results[0] if results else None

    def saved_addresses(self, customer_id) -> list:
        book = self.find_for_customer(customer_id)
        return list(book.addresses) if book else []
