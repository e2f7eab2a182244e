"""Application tests for the checkout draft steps."""

import json

import pytest
from checkout.addresses.address_book import AddressBook
from checkout.addresses.management import SaveAddress
from checkout.cart.items import AddToCart, SelectCartItems
from checkout.discount.management import CreateDiscount
from checkout.draft.draft import CheckoutDraft, CheckoutStep, DraftStatus
from checkout.draft.steps import (
    AbandonCheckout,
    ApplyDraftDiscount,
    BeginCheckout,
    RemoveDraftDiscount,
    SetDraftAddress,
    SetDraftPaymentMethod,
)
from checkout.errors import CheckoutValidationError, EmptySelectionError
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _draft(draft_id):
    return current_domain.repository_for(CheckoutDraft).get(draft_id)


def _begin(customer_id="cust-001", items=None):
    items = items or [{"handle": "linen-kurta", "size": "M", "quantity": 1}]
    return _process(BeginCheckout(customer_id=customer_id, items=json.dumps(items)))


class TestBeginCheckout:
    def test_from_selected_cart_lines(self, catalog):
        added = _process(AddToCart(customer_id="cust-001", handle="linen-kurta", size="L", quantity=1))
        tee = _process(AddToCart(customer_id="cust-001", handle="cotton-tee", quantity=1))
        _process(SelectCartItems(cart_id=added["cart_id"], item_ids=json.dumps([tee["item_id"]]), selected=False))

        draft = _draft(_process(BeginCheckout(customer_id="cust-001")))

        assert [line.handle for line in draft.items] == ["linen-kurta"]
        assert str(draft.cart_id) == added["cart_id"]
        assert draft.totals.subtotal == 1600.0

    def test_nothing_selected(self, catalog):
        added = _process(AddToCart(customer_id="cust-001", handle="cotton-tee", quantity=1))
        _process(SelectCartItems(cart_id=added["cart_id"], selected=False))

        with pytest.raises(EmptySelectionError):
            _process(BeginCheckout(customer_id="cust-001"))

    def test_no_cart(self, catalog):
        with pytest.raises(EmptySelectionError):
            _process(BeginCheckout(customer_id="cust-404"))

    def test_restart_reuses_the_open_draft(self, catalog):
        first = _begin()
        second = _begin(items=[{"handle": "cotton-tee", "quantity": 2}])

        assert first == second
        assert _draft(first).totals.subtotal == 1998.0

    def test_unknown_product(self, catalog):
        with pytest.raises(ObjectNotFoundError):
            _begin(items=[{"handle": "no-such-thing"}])


class TestAddressStep:
    def test_typed_address(self, catalog, shipping_address):
        draft_id = _begin()
        _process(SetDraftAddress(draft_id=draft_id, **shipping_address))

        draft = _draft(draft_id)
        assert draft.step == CheckoutStep.ADDRESS_SET.value
        assert draft.shipping_address.city == "Bengaluru"
        assert draft.totals.shipping_fee == 100.0

    def test_invalid_address_lists_every_field(self, catalog, shipping_address):
        draft_id = _begin()
        with pytest.raises(CheckoutValidationError) as exc:
            _process(SetDraftAddress(draft_id=draft_id, **{**shipping_address, "postal_code": "5600", "email": "nope"}))

        assert set(exc.value.messages) == {"postal_code", "email"}
        assert _draft(draft_id).step == CheckoutStep.ITEMS_SELECTED.value

    def test_saved_address(self, catalog, shipping_address):
        address_id = _process(SaveAddress(customer_id="cust-001", **shipping_address))
        draft_id = _begin()

        _process(SetDraftAddress(draft_id=draft_id, saved_address_id=address_id))
        assert _draft(draft_id).shipping_address.full_name == "Asha Rao"

    def test_unknown_saved_address(self, catalog):
        draft_id = _begin()
        with pytest.raises(ObjectNotFoundError):
            _process(SetDraftAddress(draft_id=draft_id, saved_address_id="missing"))

    def test_save_to_address_book(self, catalog, shipping_address):
        draft_id = _begin()
        _process(SetDraftAddress(draft_id=draft_id, save_to_address_book=True, **shipping_address))

        saved = current_domain.repository_for(AddressBook).saved_addresses("cust-001")
        assert [a.full_name for a in saved] == ["Asha Rao"]


class TestPaymentStep:
    def test_payment_method_before_address(self, catalog):
        draft_id = _begin()
        with pytest.raises(ValidationError):
            _process(SetDraftPaymentMethod(draft_id=draft_id, payment_method="COD"))

    def test_cod_adds_fee(self, ready_draft):
        draft = _draft(ready_draft(payment_method="COD"))
        assert draft.step == CheckoutStep.PAYMENT_METHOD_SET.value
        assert draft.totals.payment_fee == 10.0
        assert draft.totals.total == 1610.0

    def test_online_method_has_no_fee(self, ready_draft):
        draft = _draft(ready_draft(payment_method="upi"))
        assert draft.payment_method == "UPI"
        assert draft.totals.total == 1600.0

    def test_changing_totals_sends_draft_back(self, ready_draft):
        draft_id = ready_draft()
        _begin(items=[{"handle": "cotton-tee", "quantity": 1}])
        assert _draft(draft_id).step == CheckoutStep.ITEMS_SELECTED.value


class TestDiscountStep:
    def test_apply_and_remove(self, ready_draft):
        _process(CreateDiscount(code="FLAT200", discount_type="FLAT", value=200.0))
        draft_id = ready_draft()

        _process(ApplyDraftDiscount(draft_id=draft_id, code="flat200"))
        draft = _draft(draft_id)
        assert draft.totals.discount_amount == 200.0
        assert draft.totals.total == 1410.0

        _process(RemoveDraftDiscount(draft_id=draft_id))
        assert _draft(draft_id).totals.total == 1610.0

    def test_unknown_code(self, ready_draft):
        draft_id = ready_draft()
        with pytest.raises(ObjectNotFoundError):
            _process(ApplyDraftDiscount(draft_id=draft_id, code="NOPE"))

    def test_remove_without_code(self, ready_draft):
        with pytest.raises(ValidationError):
            _process(RemoveDraftDiscount(draft_id=ready_draft()))


class TestAbandon:
    def test_abandoned_draft_is_closed(self, ready_draft):
        draft_id = ready_draft()
        _process(AbandonCheckout(draft_id=draft_id))

        assert _draft(draft_id).status == DraftStatus.ABANDONED.value
        with pytest.raises(ValidationError):
            _process(AbandonCheckout(draft_id=draft_id))

    def test_next_checkout_starts_fresh(self, ready_draft):
        draft_id = ready_draft()
        _process(AbandonCheckout(draft_id=draft_id))
        assert _begin() != draft_id
