import json

import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def checkout_bed():
    from checkout.domain import checkout

    bed = DomainFixture(checkout)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(scope="session", autouse=True)
def setup_db(checkout_bed):
    from checkout.domain import checkout
    from checkout.utils.db import drop_db, setup_db

    setup_db(checkout)

    yield

    drop_db(checkout)


@pytest.fixture(autouse=True)
def _ctx(checkout_bed):
    """Run each test inside the checkout domain context and clean up after it."""
    from checkout.payment.gateway import reset_gateway
    from checkout.pricing.policy import reset_pricing_policy

    with checkout_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()

        current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_pricing_policy()


@pytest.fixture
def fake_gateway():
    from checkout.payment.gateway import set_gateway
    from checkout.payment.gateway.fake_adapter import FakeGateway

    gateway = FakeGateway()
    set_gateway(gateway)
    return gateway


@pytest.fixture
def shipping_address():
    return {
        "full_name": "Asha Rao",
        "email": "asha@example.com",
        "phone": "+91 98765 43210",
        "address": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "postal_code": "560001",
        "country": "India",
    }


@pytest.fixture
def register_product():
    """Register a product through its command and return the product id."""
    from protean import current_domain

    from checkout.catalog.registration import RegisterProduct

    def _register(handle, variants, title=None, currency="INR"):
        command = RegisterProduct(
            handle=handle,
            title=title or handle.replace("-", " ").title(),
            currency=currency,
            variants=json.dumps(variants),
        )
        return current_domain.process(command, asynchronous=False)

    return _register


@pytest.fixture
def catalog(register_product):
    """A small catalog: a sized kurta, a one-size tee and a scarce saree."""
    return {
        "linen-kurta": register_product(
            "linen-kurta",
            [
                {"title": "S", "sku": "LK-S", "price": 1500.0, "option_values": {"Size": "S"}},
                {"title": "M", "sku": "LK-M", "price": 1500.0, "option_values": {"Size": "M"}},
                {"title": "L", "sku": "LK-L", "price": 1600.0, "option_values": {"Size": "L"}},
            ],
        ),
        "cotton-tee": register_product(
            "cotton-tee",
            [{"title": "Default Title", "sku": "CT-1", "price": 999.0}],
        ),
        "silk-saree": register_product(
            "silk-saree",
            [
                {
                    "title": "Free Size",
                    "sku": "SS-1",
                    "price": 5000.0,
                    "inventory_levels": [{"location": "BLR", "available": 1}],
                }
            ],
        ),
    }


@pytest.fixture
def ready_draft(catalog, shipping_address):
    """Walk a checkout through items, address and payment method; return the draft id."""
    from protean import current_domain

    from checkout.draft.steps import BeginCheckout, SetDraftAddress, SetDraftPaymentMethod

    def _ready(customer_id="cust-001", payment_method="COD", items=None):
        items = items or [{"handle": "linen-kurta", "size": "M", "quantity": 1}]
        draft_id = current_domain.process(
            BeginCheckout(customer_id=customer_id, items=json.dumps(items)),
            asynchronous=False,
        )
        current_domain.process(SetDraftAddress(draft_id=draft_id, **shipping_address), asynchronous=False)
        current_domain.process(
            SetDraftPaymentMethod(draft_id=draft_id, payment_method=payment_method),
            asynchronous=False,
        )
        return draft_id

    return _ready
