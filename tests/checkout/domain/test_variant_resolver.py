"""Tests for size-token to variant resolution."""

import pytest
from checkout.catalog.product import Product
from checkout.catalog.resolver import resolve_variant, size_label
from checkout.errors import NoPurchasableVariant


def _product(variants, handle="linen-kurta"):
    return Product.register(handle=handle, title="Linen Kurta", variants_data=variants)


@pytest.fixture
def sized_product():
    return _product(
        [
            {"title": "Indigo / S", "sku": "LK-S", "price": 1500.0, "option_values": {"Color": "Indigo", "Size": "S"}},
            {"title": "Indigo / M", "sku": "LK-M", "price": 1500.0, "option_values": {"Color": "Indigo", "Size": "M"}},
            {"title": "Indigo / L", "sku": "LK-L", "price": 1600.0, "option_values": {"Color": "Indigo", "Size": "L"}},
        ]
    )


class TestResolveVariant:
    def test_matches_size_option_case_insensitively(self, sized_product):
        assert resolve_variant(sized_product, " m ").sku == "LK-M"

    def test_matches_any_size_like_option_name(self):
        product = _product(
            [
                {"title": "30", "sku": "J-30", "price": 2000.0, "option_values": {"Waist Size": "30"}},
                {"title": "32", "sku": "J-32", "price": 2000.0, "option_values": {"Waist Size": "32"}},
            ]
        )
        assert resolve_variant(product, "32").sku == "J-32"

    def test_falls_back_to_exact_title(self):
        product = _product(
            [
                {"title": "Small", "sku": "A", "price": 10.0},
                {"title": "Large", "sku": "B", "price": 10.0},
            ]
        )
        assert resolve_variant(product, "large").sku == "B"

    def test_falls_back_to_title_segment(self):
        product = _product(
            [
                {"title": "Red / S", "sku": "R-S", "price": 10.0},
                {"title": "Red / XL", "sku": "R-XL", "price": 10.0},
            ]
        )
        assert resolve_variant(product, "xl").sku == "R-XL"

    def test_size_option_wins_over_title(self):
        product = _product(
            [
                {"title": "M", "sku": "TITLE-M", "price": 10.0, "option_values": {"Size": "L"}},
                {"title": "Other", "sku": "OPTION-M", "price": 10.0, "option_values": {"Size": "M"}},
            ]
        )
        assert resolve_variant(product, "M").sku == "OPTION-M"

    @pytest.mark.parametrize("token", [None, "", "   ", "Default Title", "default", "XXL", "%$#@", "S/M/L"])
    def test_always_returns_a_variant(self, sized_product, token):
        variant = resolve_variant(sized_product, token)
        assert variant is not None

    def test_unmatched_token_returns_first_variant(self, sized_product):
        assert resolve_variant(sized_product, "XXL").sku == "LK-S"

    def test_placeholder_token_takes_first_variant(self, sized_product):
        assert resolve_variant(sized_product, "Default Title").sku == "LK-S"

    def test_variant_titled_like_a_placeholder_is_selectable(self):
        product = _product(
            [
                {"title": "Blue", "sku": "BLUE", "price": 10.0},
                {"title": "Title", "sku": "TITLE", "price": 10.0},
            ]
        )
        assert resolve_variant(product, "title").sku == "TITLE"

    def test_product_without_variants_raises(self):
        product = _product([], handle="empty")
        with pytest.raises(NoPurchasableVariant):
            resolve_variant(product, "M")


class TestSizeLabel:
    def test_label_from_size_option(self, sized_product):
        assert size_label(resolve_variant(sized_product, "L")) == "L"

    def test_default_title_has_no_label(self):
        product = _product([{"title": "Default Title", "sku": "T", "price": 10.0}])
        assert size_label(resolve_variant(product, None)) == ""
