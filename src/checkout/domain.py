"""Checkout bounded context: cart to order, payment reconciliation and post-purchase requests."""

from protean.domain import Domain

from checkout.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

checkout = Domain(name="checkout")
