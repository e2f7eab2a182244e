"""Turn requested (handle, size, quantity) triples into priced line dicts.

Prices always come from the catalog, never from the caller.
"""

from protean.utils.globals import current_domain

from checkout.catalog.inventory import check_availability
from checkout.catalog.product import Product
from checkout.catalog.resolver import resolve_variant, size_label


def price_line(request: dict) -> dict:
    product = current_domain.repository_for(Product).get_by_handle(request["handle"])
    quantity = int(request.get("quantity") or 1)

    variant = resolve_variant(product, request.get("size"))
    check_availability(product, variant, quantity)

    return {
        "line_id": request.get("line_id") or request.get("id") or variant.sku,
        "handle": product.handle,
        "variant_id": str(variant.id),
        "sku": variant.sku,
        "name": product.title,
        "size": request.get("size") or size_label(variant) or None,
        "unit_price": variant.price,
        "currency": product.currency,
        "quantity": quantity,
    }


def price_lines(requests) -> list[dict]:
    return [price_line(request) for request in requests]
