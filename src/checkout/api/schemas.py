"""Pydantic request/response schemas for the Checkout API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands. Address fields are all optional here so that
missing values reach the domain and come back as field-level errors.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ItemRequest(BaseModel):
    id: str | None = None
    handle: str
    size: str | None = None
    quantity: int = Field(default=1, ge=1)


class AddressSchema(BaseModel):
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class TotalsSchema(BaseModel):
    subtotal: float = 0.0
    shipping_fee: float = 0.0
    payment_fee: float = 0.0
    discount_amount: float = 0.0
    discount_code: str | None = None
    total: float = 0.0
    currency: str = "INR"
    item_count: int = 0


class LineSchema(BaseModel):
    id: str
    handle: str
    variant_id: str | None = None
    sku: str | None = None
    name: str
    size: str | None = None
    unit_price: float
    currency: str
    quantity: int


class OrderPayloadMixin(BaseModel):
    """Either a draft id, or the items and address the client is checking out."""

    customer_id: str | None = None
    draft_id: str | None = None
    items: list[ItemRequest] = []
    shipping_address: AddressSchema | None = None
    discount_code: str | None = None
    totals: TotalsSchema | None = None


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
class InventoryLevelSchema(BaseModel):
    location: str | None = None
    available: int = 0


class VariantSchema(BaseModel):
    title: str | None = None
    sku: str | None = None
    price: float = Field(ge=0)
    compare_at_price: float | None = None
    option_values: dict[str, str] = {}
    track_inventory: bool = True
    inventory_policy: str = "DENY"
    inventory_levels: list[InventoryLevelSchema] | None = None
    position: int | None = None


class RegisterProductRequest(BaseModel):
    handle: str
    title: str
    currency: str = "INR"
    variants: list[VariantSchema]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "handle": "linen-kurta",
                    "title": "Linen Kurta",
                    "currency": "INR",
                    "variants": [
                        {"title": "S", "sku": "LK-S", "price": 1499.0, "option_values": {"Size": "S"}},
                        {"title": "M", "sku": "LK-M", "price": 1499.0, "option_values": {"Size": "M"}},
                    ],
                }
            ]
        }
    }


class ProductIdResponse(BaseModel):
    product_id: str


class ResolvedVariantResponse(BaseModel):
    handle: str
    variant_id: str
    title: str
    sku: str | None = None
    size: str | None = None
    price: float
    currency: str
    available_for_sale: bool
    quantity_available: int | None = None


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    customer_id: str
    handle: str
    size: str | None = None
    quantity: int = Field(default=1, ge=1)


class UpdateCartQuantityRequest(BaseModel):
    quantity: int = Field(ge=1)


class SelectCartItemsRequest(BaseModel):
    item_ids: list[str] = []
    selected: bool = True


class CartItemResponse(BaseModel):
    item_id: str
    cart_id: str


class CartLineSchema(BaseModel):
    id: str
    handle: str
    size: str | None = None
    quantity: int
    selected: bool


class CartResponse(BaseModel):
    cart_id: str
    customer_id: str
    items: list[CartLineSchema]


# ---------------------------------------------------------------------------
# Discounts
# ---------------------------------------------------------------------------
class CreateDiscountRequest(BaseModel):
    code: str
    description: str | None = None
    discount_type: str
    value: float
    min_subtotal: float = 0.0
    max_discount: float | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    is_active: bool = True

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "code": "WELCOME10",
                    "discount_type": "PERCENTAGE",
                    "value": 10,
                    "min_subtotal": 1000,
                    "max_discount": 500,
                }
            ]
        }
    }


class VerifyDiscountRequest(BaseModel):
    code: str
    subtotal: float = Field(ge=0)


class DiscountCodeResponse(BaseModel):
    code: str


class DiscountCheckResponse(BaseModel):
    code: str
    eligible: bool
    amount: float
    message: str | None = None


# ---------------------------------------------------------------------------
# Saved addresses
# ---------------------------------------------------------------------------
class SaveAddressRequest(AddressSchema):
    address_id: str | None = None
    label: str | None = None
    is_default: bool = False


class SavedAddressSchema(AddressSchema):
    id: str
    label: str | None = None
    is_default: bool = False


class AddressIdResponse(BaseModel):
    address_id: str


# ---------------------------------------------------------------------------
# Checkout draft
# ---------------------------------------------------------------------------
class BeginCheckoutRequest(BaseModel):
    customer_id: str
    cart_id: str | None = None
    items: list[ItemRequest] | None = None


class SetDraftAddressRequest(AddressSchema):
    saved_address_id: str | None = None
    save_to_address_book: bool = False


class SetPaymentMethodRequest(BaseModel):
    payment_method: str


class ApplyDiscountRequest(BaseModel):
    code: str


class DraftResponse(BaseModel):
    draft_id: str
    customer_id: str
    cart_id: str | None = None
    status: str
    step: str
    items: list[LineSchema]
    shipping_address: AddressSchema | None = None
    payment_method: str | None = None
    discount_code: str | None = None
    totals: TotalsSchema
    order_id: str | None = None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class PlaceCodOrderRequest(OrderPayloadMixin):
    idempotency_key: str | None = None
    payment_method: str = "COD"

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "items": [{"handle": "linen-kurta", "size": "M", "quantity": 1}],
                    "shipping_address": {
                        "full_name": "Asha Rao",
                        "email": "asha@example.com",
                        "phone": "+91 98765 43210",
                        "address": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "Karnataka",
                        "postal_code": "560001",
                    },
                    "payment_method": "COD",
                    "totals": {"total": 1609.0},
                }
            ]
        }
    }


class CreateIntentRequest(BaseModel):
    amount: float = Field(gt=0)
    currency: str = "INR"
    receipt: str
    customer_id: str | None = None
    notes: dict[str, str] = {}
    prefill: dict[str, str] = {}


class IntentResponse(BaseModel):
    key_id: str
    gateway_order_id: str
    amount: int
    currency: str
    receipt: str
    prefill: dict[str, str] = {}


class ConfirmPaymentRequest(OrderPayloadMixin):
    gateway_order_id: str
    gateway_payment_id: str
    gateway_signature: str
    payment_method: str = "UPI"


class PaymentFailureRequest(BaseModel):
    gateway_order_id: str
    reason: str | None = None


class TrackingSchema(BaseModel):
    tracking_number: str | None = None
    awb: str | None = None
    courier_name: str | None = None
    tracking_url: str | None = None
    estimated_delivery: str | None = None


class UpdateOrderRequest(BaseModel):
    """Staff update: a status change, tracking details, or both."""

    status: str | None = None
    expected_status: str | None = None
    changed_by: str | None = None
    shipping: TrackingSchema | None = None


class OrderResponse(BaseModel):
    order_id: str
    number: str
    customer_id: str | None = None
    email: str | None = None
    phone: str | None = None
    status: str
    items: list[LineSchema]
    totals: TotalsSchema
    shipping_address: AddressSchema | None = None
    tracking: TrackingSchema | None = None
    payment_method: str
    payment_gateway: str | None = None
    payment_id: str | None = None
    gateway_order_id: str | None = None
    discount_code: str | None = None
    created_at: datetime | None = None
    paid_at: datetime | None = None
    fulfilled_at: datetime | None = None
    cancelled_at: datetime | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    summary: dict[str, int] = {}


# ---------------------------------------------------------------------------
# Post-purchase requests
# ---------------------------------------------------------------------------
class BankDetailsSchema(BaseModel):
    account_name: str | None = None
    account_number: str | None = None
    ifsc: str | None = None
    bank_name: str | None = None


class SubmitRequestRequest(BaseModel):
    customer_id: str | None = None
    item_ids: list[str]
    reason: str
    other_reason: str | None = None
    comments: str | None = None
    attachments: list[str] = []
    bank_details: BankDetailsSchema | None = None


class ReviewRequestRequest(BaseModel):
    status: str
    reviewed_by: str | None = None
    note: str | None = None


class PostPurchaseRequestResponse(BaseModel):
    request_id: str
    order_id: str
    order_number: str | None = None
    customer_id: str | None = None
    request_type: str
    item_ids: list[str]
    reason: str
    other_reason: str | None = None
    comments: str | None = None
    attachments: list[str] = []
    status: str
    reviewed_by: str | None = None
    staff_note: str | None = None
    created_at: datetime | None = None


class RequestListResponse(BaseModel):
    requests: list[PostPurchaseRequestResponse]


# ---------------------------------------------------------------------------
# Gateway (development only)
# ---------------------------------------------------------------------------
class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Gateway unavailable"


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str


class StatusResponse(BaseModel):
    status: str = "ok"
