"""Server-side re-derivation of a client-submitted order payload.

The client may echo back items and totals it computed itself. Prices are
re-read from the catalog and totals recomputed; a client total that differs
by more than a rounding tolerance is rejected instead of trusted.
"""

from checkout.catalog.lines import price_lines
from checkout.discount.verification import live_discount_terms
from checkout.draft.draft import guard_selection
from checkout.errors import CheckoutValidationError
from checkout.pricing.engine import PricedLine, compute_totals, totals_match
from checkout.pricing.policy import PaymentMethod
from checkout.shared.address import clean_address
from checkout.shared.snapshot import OrderSnapshot, SnapshotLine, freeze_address

TOTAL_TOLERANCE = 0.01


def snapshot_from_payload(
    customer_id,
    items,
    shipping_address,
    payment_method,
    discount_code=None,
    submitted_total=None,
) -> OrderSnapshot:
    """Build an order snapshot from raw payload parts.

    ``items`` is a list of ``{id?, handle, size, quantity}`` dicts; any prices
    it carries are ignored.
    """
    method = str(payment_method or "").strip().upper()
    if method not in {m.value for m in PaymentMethod}:
        raise CheckoutValidationError({"payment_method": [f"Unsupported payment method {method or '(none)'}"]})

    if not items:
        guard_selection([])
    requested = [{**item, "line_id": item.get("id") or item.get("line_id")} for item in items]
    lines = price_lines(requested)
    guard_selection(lines)

    address = clean_address(shipping_address or {})
    terms = live_discount_terms(discount_code) if discount_code else None

    totals = compute_totals(
        [PricedLine(unit_price=line["unit_price"], quantity=line["quantity"], currency=line["currency"]) for line in lines],
        payment_method=method,
        discount=terms,
    )
    if submitted_total is not None and not totals_match(totals, submitted_total, TOTAL_TOLERANCE):
        raise CheckoutValidationError(
            {"totals": [f"Order total has changed to {totals.total:.2f}. Review your order and try again."]}
        )

    return OrderSnapshot(
        customer_id=str(customer_id) if customer_id else None,
        lines=tuple(
            SnapshotLine(
                line_id=line["line_id"],
                handle=line["handle"],
                variant_id=line["variant_id"],
                sku=line["sku"],
                name=line["name"],
                size=line["size"],
                unit_price=line["unit_price"],
                currency=line["currency"],
                quantity=line["quantity"],
            )
            for line in lines
        ),
        shipping_address=freeze_address(address),
        totals=totals,
        payment_method=method,
        discount_code=totals.discount_code,
    )
