"""Tests for ShoppingCart line handling."""

import pytest
from checkout.cart.cart import ShoppingCart, line_key
from protean.exceptions import ValidationError


@pytest.fixture
def cart():
    return ShoppingCart.create("cust-001")


class TestAddItem:
    def test_adds_a_selected_line(self, cart):
        cart.add_item("linen-kurta", "M", 1)
        assert len(cart.items) == 1
        assert cart.items[0].selected is True

    def test_same_handle_and_size_merge(self, cart):
        first = cart.add_item("linen-kurta", "M", 1)
        second = cart.add_item("Linen-Kurta", " m ", 2)
        assert first == second
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3

    def test_different_sizes_stay_separate(self, cart):
        cart.add_item("linen-kurta", "M", 1)
        cart.add_item("linen-kurta", "L", 1)
        assert len(cart.items) == 2


class TestSelection:
    def test_deselect_one_line(self, cart):
        m = cart.add_item("linen-kurta", "M", 1)
        cart.add_item("linen-kurta", "L", 1)
        cart.set_selection([m], selected=False)
        assert [item.size for item in cart.selected_items()] == ["L"]

    def test_empty_ids_apply_to_every_line(self, cart):
        cart.add_item("linen-kurta", "M", 1)
        cart.add_item("linen-kurta", "L", 1)
        cart.set_selection([], selected=False)
        assert cart.selected_items() == []

    def test_unknown_item_is_rejected(self, cart):
        with pytest.raises(ValidationError):
            cart.set_selection(["missing"], selected=True)


class TestUpdateAndRemove:
    def test_update_quantity(self, cart):
        item_id = cart.add_item("linen-kurta", "M", 1)
        cart.update_item_quantity(item_id, 4)
        assert cart.items[0].quantity == 4

    def test_remove_item(self, cart):
        item_id = cart.add_item("linen-kurta", "M", 1)
        cart.remove_item(item_id)
        assert len(cart.items) == 0


class TestClearOrderedItems:
    def test_removes_only_ordered_keys(self, cart):
        cart.add_item("linen-kurta", "M", 1)
        cart.add_item("cotton-tee", None, 1)
        removed = cart.clear_ordered_items("ord-1", [line_key("linen-kurta", "M")])
        assert removed == 1
        assert [item.handle for item in cart.items] == ["cotton-tee"]

    def test_nothing_to_clear(self, cart):
        cart.add_item("linen-kurta", "M", 1)
        assert cart.clear_ordered_items("ord-1", [line_key("silk-saree", None)]) == 0
