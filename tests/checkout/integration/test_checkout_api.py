"""Integration tests for catalog, cart, discount, address and draft endpoints via TestClient."""

import pytest
from checkout.api import register_checkout_error_handlers, routers
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.fixture()
def client():
    app = FastAPI()
    for router in routers:
        app.include_router(router)
    register_checkout_error_handlers(app)
    return TestClient(app)


def _begin(client, customer_id="cust-api-001", items=None):
    response = client.post(
        "/checkout/draft",
        json={
            "customer_id": customer_id,
            "items": items or [{"handle": "linen-kurta", "size": "M", "quantity": 1}],
        },
    )
    assert response.status_code == 200
    return response.json()


class TestProductEndpoints:
    def test_register_returns_201(self, client):
        response = client.post(
            "/products",
            json={
                "handle": "block-print-dupatta",
                "title": "Block Print Dupatta",
                "variants": [{"title": "Default Title", "sku": "BPD-1", "price": 799.0}],
            },
        )
        assert response.status_code == 201
        assert response.json()["product_id"]

    def test_duplicate_handle_returns_400(self, client, catalog):
        response = client.post(
            "/products",
            json={"handle": "linen-kurta", "title": "Again", "variants": [{"price": 1.0}]},
        )
        assert response.status_code == 400

    def test_resolve_size(self, client, catalog):
        response = client.get("/products/linen-kurta/resolve", params={"size": "l"})

        assert response.status_code == 200
        data = response.json()
        assert data["sku"] == "LK-L"
        assert data["price"] == 1600.0
        assert data["available_for_sale"] is True

    def test_resolve_unknown_product_returns_404(self, client):
        assert client.get("/products/ghost/resolve").status_code == 404


class TestCartEndpoints:
    def test_add_update_and_read(self, client):
        added = client.post("/carts/items", json={"customer_id": "cust-api-001", "handle": "cotton-tee"})
        assert added.status_code == 201
        cart_id, item_id = added.json()["cart_id"], added.json()["item_id"]

        response = client.put(f"/carts/{cart_id}/items/{item_id}", json={"quantity": 4})
        assert response.json() == {"status": "ok"}

        cart = client.get("/carts/cust-api-001").json()
        assert cart["items"][0]["quantity"] == 4

    def test_zero_quantity_is_rejected_by_schema(self, client):
        response = client.post("/carts/items", json={"customer_id": "c", "handle": "cotton-tee", "quantity": 0})
        assert response.status_code == 422

    def test_missing_cart_returns_404(self, client):
        assert client.get("/carts/nobody").status_code == 404


class TestDiscountEndpoints:
    def test_create_and_verify(self, client):
        created = client.post(
            "/discounts",
            json={"code": "welcome10", "discount_type": "percentage", "value": 10, "min_subtotal": 1000},
        )
        assert created.status_code == 201
        assert created.json() == {"code": "WELCOME10"}

        check = client.post("/discounts/verify", json={"code": "WELCOME10", "subtotal": 500}).json()
        assert check["eligible"] is False
        assert check["message"] == "Order subtotal must be at least 1000.00 to use this code."

    def test_inactive_code_returns_400(self, client):
        client.post("/discounts", json={"code": "OLD", "discount_type": "FLAT", "value": 50})
        client.post("/discounts/OLD/deactivate")

        response = client.post("/discounts/verify", json={"code": "OLD", "subtotal": 500})
        assert response.status_code == 400
        assert response.json() == {"error": {"discount_code": ["This discount code is not active."]}}


class TestAddressEndpoints:
    def test_save_and_list(self, client, shipping_address):
        response = client.post("/customers/cust-api-001/addresses", json={**shipping_address, "label": "Home"})
        assert response.status_code == 201

        listed = client.get("/customers/cust-api-001/addresses").json()
        assert listed[0]["id"] == response.json()["address_id"]
        assert listed[0]["is_default"] is True

    def test_invalid_address_returns_400_with_fields(self, client, shipping_address):
        response = client.post(
            "/customers/cust-api-001/addresses",
            json={**shipping_address, "phone": "123"},
        )
        assert response.status_code == 400
        assert "phone" in response.json()["error"]


class TestDraftEndpoints:
    def test_full_walkthrough(self, client, catalog, shipping_address):
        draft = _begin(client)
        assert draft["step"] == "ITEMS_SELECTED"
        assert draft["totals"]["subtotal"] == 1500.0

        draft = client.put(f"/checkout/draft/{draft['draft_id']}/address", json=shipping_address).json()
        assert draft["step"] == "ADDRESS_SET"

        draft = client.put(
            f"/checkout/draft/{draft['draft_id']}/payment-method", json={"payment_method": "COD"}
        ).json()
        assert draft["step"] == "PAYMENT_METHOD_SET"
        assert draft["totals"]["total"] == 1610.0

    def test_empty_selection_returns_400(self, client, catalog):
        response = client.post("/checkout/draft", json={"customer_id": "cust-api-001", "items": []})
        assert response.status_code == 400
        assert response.json() == {"error": {"items": ["Select at least one item to checkout."]}}

    def test_missing_address_fields_return_400(self, client, catalog):
        draft = _begin(client)
        response = client.put(f"/checkout/draft/{draft['draft_id']}/address", json={"full_name": "Asha"})

        assert response.status_code == 400
        assert {"email", "phone", "address", "city", "postal_code"} <= set(response.json()["error"])

    def test_discount_apply_and_remove(self, client, catalog, shipping_address):
        client.post("/discounts", json={"code": "FLAT100", "discount_type": "FLAT", "value": 100})
        draft = _begin(client)

        applied = client.post(f"/checkout/draft/{draft['draft_id']}/discount", json={"code": "flat100"}).json()
        assert applied["discount_code"] == "FLAT100"
        assert applied["totals"]["discount_amount"] == 100.0

        removed = client.delete(f"/checkout/draft/{draft['draft_id']}/discount").json()
        assert removed["discount_code"] is None

    def test_abandon(self, client, catalog):
        draft = _begin(client)
        response = client.post(f"/checkout/draft/{draft['draft_id']}/abandon")
        assert response.json()["status"] == "ABANDONED"


class TestMixedCurrencyDraft:
    def test_returns_422(self, client, catalog):
        client.post(
            "/products",
            json={
                "handle": "silk-scarf",
                "title": "Silk Scarf",
                "currency": "USD",
                "variants": [{"title": "Default Title", "sku": "SS-1", "price": 40.0}],
            },
        )

        response = client.post(
            "/checkout/draft",
            json={
                "customer_id": "cust-api-002",
                "items": [
                    {"handle": "linen-kurta", "size": "M", "quantity": 1},
                    {"handle": "silk-scarf", "quantity": 1},
                ],
            },
        )
        assert response.status_code == 422
        assert response.json() == {"error": {"currency": ["Cannot price items in mixed currencies: INR, USD"]}}
