"""Size-token to variant resolution.

Resolution is deliberately lenient: once a product has at least one
variant, a variant is always returned, falling back to the first one in
catalog order. Stock is checked separately (see ``checkout.catalog.inventory``).
"""

from checkout.errors import NoPurchasableVariant

# Option names that carry a size, matched as substrings ("Waist Size", "Shoe size (EU)")
SIZE_OPTION_TOKENS = ("size", "waist", "inseam", "length", "shoe", "foot")

# Placeholder titles the catalog gives single-variant products
DEFAULT_SIZE_TOKENS = frozenset({"default", "default title", "title"})


def normalize_token(value) -> str:
    return str(value if value is not None else "").strip().lower()


def is_size_option(option_name) -> bool:
    name = normalize_token(option_name)
    return any(token in name for token in SIZE_OPTION_TOKENS)


def _matches_size_option(variant, token: str) -> bool:
    return any(
        is_size_option(name) and normalize_token(value) == token for name, value in variant.option_map.items()
    )


def _matches_title(variant, token: str) -> bool:
    return normalize_token(variant.title) == token


def _matches_title_segment(variant, token: str) -> bool:
    segments = (normalize_token(part) for part in str(variant.title or "").split("/"))
    return token in segments


_MATCHERS = (_matches_size_option, _matches_title, _matches_title_segment)


def resolve_variant(product, size_token=None):
    """Return the variant of ``product`` best matching ``size_token``.

    Raises ``NoPurchasableVariant`` only when the product has no variants.
    """
    variants = product.ordered_variants()
    if not variants:
        raise NoPurchasableVariant(product.handle)

    token = normalize_token(size_token)
    if not token:
        return variants[0]

    for matcher in _MATCHERS:
        match = next((v for v in variants if matcher(v, token)), None)
        if match is not None:
            return match

    # Unmatched tokens, including placeholders like "Default Title", take the first variant
    return variants[0]


def size_label(variant) -> str:
    """The size shown to the customer for a resolved variant."""
    size = next((str(value) for name, value in variant.option_map.items() if is_size_option(name)), None)
    if size:
        return size
    title = str(variant.title or "")
    return "" if normalize_token(title) in DEFAULT_SIZE_TOKENS else title
