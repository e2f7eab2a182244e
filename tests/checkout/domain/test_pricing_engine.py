"""Tests for the pure totals computation."""

import pytest
from checkout.errors import MixedCurrencyError
from checkout.pricing.engine import (
    DiscountTerms,
    PricedLine,
    Totals,
    compute_totals,
    discount_amount_for,
    totals_match,
)
from checkout.pricing.policy import PricingPolicy


def _lines(*prices, currency="INR"):
    return [PricedLine(unit_price=price, quantity=1, currency=currency) for price in prices]


class TestSubtotalAndShipping:
    def test_subtotal_sums_price_times_quantity(self):
        totals = compute_totals([PricedLine(unit_price=250.0, quantity=3), PricedLine(unit_price=100.0, quantity=2)])
        assert totals.subtotal == 950.0
        assert totals.item_count == 5

    def test_below_threshold_pays_standard_shipping(self):
        totals = compute_totals(_lines(4999.0))
        assert totals.shipping_fee == 100.0
        assert totals.total == 5099.0

    def test_exact_threshold_ships_free(self):
        totals = compute_totals(_lines(5000.0))
        assert totals.shipping_fee == 0.0
        assert totals.total == 5000.0

    def test_deselected_lines_are_ignored(self):
        lines = [
            PricedLine(unit_price=300.0, quantity=1),
            PricedLine(unit_price=9000.0, quantity=1, selected=False),
        ]
        totals = compute_totals(lines)
        assert totals.subtotal == 300.0
        assert totals.shipping_fee == 100.0

    def test_empty_selection_prices_to_zero(self):
        totals = compute_totals([])
        assert totals == Totals()

    def test_custom_policy_changes_threshold(self):
        policy = PricingPolicy(free_shipping_threshold=1000.0, standard_shipping_fee=50.0)
        assert compute_totals(_lines(999.0), policy=policy).shipping_fee == 50.0
        assert compute_totals(_lines(1000.0), policy=policy).shipping_fee == 0.0


class TestPaymentFee:
    def test_cod_adds_fee(self):
        totals = compute_totals(_lines(1000.0), payment_method="COD")
        assert totals.payment_fee == 10.0
        assert totals.total == 1110.0

    @pytest.mark.parametrize("method", ["UPI", "CARD", "NET_BANKING", "WALLET", None])
    def test_other_methods_carry_no_fee(self, method):
        assert compute_totals(_lines(1000.0), payment_method=method).payment_fee == 0.0


class TestDiscounts:
    def test_flat_discount(self):
        terms = DiscountTerms(code="FLAT200", discount_type="FLAT", value=200.0)
        totals = compute_totals(_lines(1000.0), discount=terms)
        assert totals.discount_amount == 200.0
        assert totals.discount_code == "FLAT200"
        assert totals.total == 900.0

    def test_percentage_discount_is_capped(self):
        terms = DiscountTerms(code="TENOFF", discount_type="PERCENTAGE", value=10.0, max_discount=150.0)
        assert discount_amount_for(3000.0, terms) == 150.0

    def test_percentage_without_cap(self):
        terms = DiscountTerms(code="TENOFF", discount_type="PERCENTAGE", value=10.0)
        assert discount_amount_for(3000.0, terms) == 300.0

    def test_below_minimum_subtotal_yields_zero_without_error(self):
        terms = DiscountTerms(code="BIG", discount_type="FLAT", value=500.0, min_subtotal=5000.0)
        totals = compute_totals(_lines(3000.0), discount=terms)
        assert totals.discount_amount == 0.0
        assert totals.total == 3100.0

    def test_flat_discount_never_exceeds_subtotal(self):
        terms = DiscountTerms(code="HUGE", discount_type="FLAT", value=10_000.0)
        assert discount_amount_for(400.0, terms) == 400.0

    def test_total_is_never_negative(self):
        terms = DiscountTerms(code="HUGE", discount_type="FLAT", value=10_000.0)
        totals = compute_totals(_lines(400.0), discount=terms)
        assert totals.total == 100.0  # shipping still applies
        assert totals.total >= 0


class TestInvariants:
    def test_same_inputs_give_same_totals(self):
        terms = DiscountTerms(code="TENOFF", discount_type="PERCENTAGE", value=10.0)
        lines = _lines(1234.5, 99.99)
        assert compute_totals(lines, "COD", terms) == compute_totals(lines, "COD", terms)

    def test_total_equals_breakdown(self):
        terms = DiscountTerms(code="TENOFF", discount_type="PERCENTAGE", value=10.0)
        t = compute_totals(_lines(1234.5, 99.99), "COD", terms)
        assert t.total == pytest.approx(t.subtotal + t.shipping_fee + t.payment_fee - t.discount_amount)

    def test_mixed_currencies_are_rejected(self):
        lines = [PricedLine(unit_price=10.0, quantity=1, currency="INR"), PricedLine(unit_price=10.0, quantity=1, currency="USD")]
        with pytest.raises(MixedCurrencyError) as exc:
            compute_totals(lines)
        assert exc.value.currencies == ["INR", "USD"]

    def test_deselected_line_in_other_currency_is_ignored(self):
        lines = [
            PricedLine(unit_price=10.0, quantity=1, currency="INR"),
            PricedLine(unit_price=10.0, quantity=1, currency="USD", selected=False),
        ]
        assert compute_totals(lines).currency == "INR"


class TestTotalsMatch:
    def test_within_tolerance(self):
        assert totals_match(Totals(subtotal=100.0, total=100.0), 100.01)

    def test_outside_tolerance(self):
        assert not totals_match(Totals(subtotal=100.0, total=100.0), 100.02)

    def test_one_cent_gap_is_accepted_at_any_magnitude(self):
        for total in (0.1, 100.0, 1610.0, 99999.99):
            assert totals_match(Totals(total=total), round(total + 0.01, 2))
            assert totals_match(Totals(total=total), round(total - 0.01, 2))
