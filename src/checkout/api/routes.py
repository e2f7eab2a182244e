"""FastAPI routes for the Checkout context: catalog, cart, discounts, addresses,
checkout drafts, orders, gateway payments and post-purchase requests."""

import json
import os

from fastapi import APIRouter, HTTPException
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from checkout.addresses.address_book import AddressBook
from checkout.addresses.management import RemoveAddress, SaveAddress, SetDefaultAddress
from checkout.api.schemas import (
    AddressIdResponse,
    AddressSchema,
    AddToCartRequest,
    ApplyDiscountRequest,
    BeginCheckoutRequest,
    CartItemResponse,
    CartLineSchema,
    CartResponse,
    ConfigureGatewayRequest,
    ConfirmPaymentRequest,
    CreateDiscountRequest,
    CreateIntentRequest,
    DiscountCheckResponse,
    DiscountCodeResponse,
    DraftResponse,
    GatewayConfigResponse,
    IntentResponse,
    LineSchema,
    OrderListResponse,
    OrderPayloadMixin,
    OrderResponse,
    PaymentFailureRequest,
    PlaceCodOrderRequest,
    PostPurchaseRequestResponse,
    ProductIdResponse,
    RegisterProductRequest,
    RequestListResponse,
    ResolvedVariantResponse,
    ReviewRequestRequest,
    SavedAddressSchema,
    SaveAddressRequest,
    SelectCartItemsRequest,
    SetDraftAddressRequest,
    SetPaymentMethodRequest,
    StatusResponse,
    SubmitRequestRequest,
    TotalsSchema,
    TrackingSchema,
    UpdateCartQuantityRequest,
    UpdateOrderRequest,
    VerifyDiscountRequest,
)
from checkout.cart.cart import ShoppingCart
from checkout.cart.items import AddToCart, RemoveFromCart, SelectCartItems, UpdateCartQuantity
from checkout.catalog.product import Product
from checkout.catalog.registration import RegisterProduct
from checkout.catalog.resolver import resolve_variant, size_label
from checkout.discount.management import CreateDiscount, DeactivateDiscount
from checkout.discount.verification import verify_discount
from checkout.draft.draft import CheckoutDraft
from checkout.draft.steps import (
    AbandonCheckout,
    ApplyDraftDiscount,
    BeginCheckout,
    RemoveDraftDiscount,
    SetDraftAddress,
    SetDraftPaymentMethod,
)
from checkout.order.order import TRACKING_FIELDS, Order
from checkout.order.placement import place_order
from checkout.order.queries import list_orders, list_orders_for_customer, track_order
from checkout.order.transitions import UpdateOrderTracking, transition_order
from checkout.payment.gateway import get_gateway
from checkout.payment.gateway.fake_adapter import FakeGateway
from checkout.payment.reconciliation import RecordPaymentFailure, confirm_gateway_payment, create_payment_intent
from checkout.requests.review import list_requests_for_customer, list_requests_for_order, review_request
from checkout.requests.submission import submit_request
from checkout.shared.address import ADDRESS_FIELDS


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------
def _address_view(address) -> AddressSchema | None:
    if address is None:
        return None
    return AddressSchema(**{name: getattr(address, name, None) for name in ADDRESS_FIELDS})


def _totals_view(totals) -> TotalsSchema:
    return TotalsSchema(**totals.as_totals().to_dict()) if totals else TotalsSchema()


def _line_view(line) -> LineSchema:
    return LineSchema(
        id=line.line_id,
        handle=line.handle,
        variant_id=line.variant_id,
        sku=line.sku,
        name=line.name,
        size=line.size,
        unit_price=line.unit_price,
        currency=line.currency,
        quantity=line.quantity,
    )


def _draft_view(draft: CheckoutDraft) -> DraftResponse:
    terms = draft.discount_terms()
    return DraftResponse(
        draft_id=str(draft.id),
        customer_id=str(draft.customer_id),
        cart_id=str(draft.cart_id) if draft.cart_id else None,
        status=draft.status,
        step=draft.step,
        items=[_line_view(line) for line in draft.items],
        shipping_address=_address_view(draft.shipping_address),
        payment_method=draft.payment_method,
        discount_code=terms.code if terms else None,
        totals=_totals_view(draft.totals),
        order_id=str(draft.order_id) if draft.order_id else None,
    )


def _order_view(order: Order) -> OrderResponse:
    tracking = None
    if order.tracking is not None:
        tracking = TrackingSchema(**{name: getattr(order.tracking, name) for name in TRACKING_FIELDS})
    return OrderResponse(
        order_id=str(order.id),
        number=order.number,
        customer_id=str(order.customer_id) if order.customer_id else None,
        email=order.email,
        phone=order.phone,
        status=order.status,
        items=[_line_view(line) for line in order.items],
        totals=_totals_view(order.totals),
        shipping_address=_address_view(order.shipping_address),
        tracking=tracking,
        payment_method=order.payment_method,
        payment_gateway=order.payment_gateway,
        payment_id=order.payment_id,
        gateway_order_id=order.gateway_order_id,
        discount_code=order.discount_code,
        created_at=order.created_at,
        paid_at=order.paid_at,
        fulfilled_at=order.fulfilled_at,
        cancelled_at=order.cancelled_at,
    )


def _request_view(request) -> PostPurchaseRequestResponse:
    return PostPurchaseRequestResponse(
        request_id=str(request.id),
        order_id=str(request.order_id),
        order_number=request.order_number,
        customer_id=str(request.customer_id) if request.customer_id else None,
        request_type=request.request_type,
        item_ids=request.selected_item_ids(),
        reason=request.reason,
        other_reason=request.other_reason,
        comments=request.comments,
        attachments=json.loads(request.attachments) if request.attachments else [],
        status=request.status,
        reviewed_by=request.reviewed_by,
        staff_note=request.staff_note,
        created_at=request.created_at,
    )


def _payload_fields(body: OrderPayloadMixin) -> dict:
    """Map the shared order payload onto command fields (JSON-encoded where the command expects text)."""
    return {
        "customer_id": body.customer_id,
        "draft_id": body.draft_id,
        "items": json.dumps([item.model_dump(exclude_none=True) for item in body.items]) if body.items else None,
        "shipping_address": json.dumps(body.shipping_address.model_dump()) if body.shipping_address else None,
        "payment_method": body.payment_method,
        "discount_code": body.discount_code,
        "submitted_total": body.totals.total if body.totals else None,
    }


def _draft(draft_id) -> DraftResponse:
    return _draft_view(current_domain.repository_for(CheckoutDraft).get(draft_id))


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def register_product(body: RegisterProductRequest) -> ProductIdResponse:
    """Register a product with its variants."""
    command = RegisterProduct(
        handle=body.handle,
        title=body.title,
        currency=body.currency,
        variants=json.dumps([variant.model_dump(exclude_none=True) for variant in body.variants]),
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.get("/{handle}/resolve", response_model=ResolvedVariantResponse)
async def resolve_product_variant(handle: str, size: str | None = None) -> ResolvedVariantResponse:
    """Resolve the variant a shopper's size choice refers to."""
    product = current_domain.repository_for(Product).get_by_handle(handle)
    variant = resolve_variant(product, size)
    return ResolvedVariantResponse(
        handle=product.handle,
        variant_id=str(variant.id),
        title=variant.title,
        sku=variant.sku,
        size=size_label(variant) or None,
        price=variant.price,
        currency=product.currency,
        available_for_sale=variant.available_for_sale,
        quantity_available=variant.quantity_available if variant.levels_loaded else None,
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("/items", status_code=201, response_model=CartItemResponse)
async def add_to_cart(body: AddToCartRequest) -> CartItemResponse:
    command = AddToCart(
        customer_id=body.customer_id,
        handle=body.handle,
        size=body.size,
        quantity=body.quantity,
    )
    result = current_domain.process(command, asynchronous=False)
    return CartItemResponse(**result)


@cart_router.put("/{cart_id}/items/{item_id}", response_model=StatusResponse)
async def update_cart_quantity(cart_id: str, item_id: str, body: UpdateCartQuantityRequest) -> StatusResponse:
    command = UpdateCartQuantity(cart_id=cart_id, item_id=item_id, new_quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items/{item_id}", response_model=StatusResponse)
async def remove_from_cart(cart_id: str, item_id: str) -> StatusResponse:
    current_domain.process(RemoveFromCart(cart_id=cart_id, item_id=item_id), asynchronous=False)
    return StatusResponse()


@cart_router.post("/{cart_id}/selection", response_model=StatusResponse)
async def select_cart_items(cart_id: str, body: SelectCartItemsRequest) -> StatusResponse:
    command = SelectCartItems(cart_id=cart_id, item_ids=json.dumps(body.item_ids), selected=body.selected)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.get("/{customer_id}", response_model=CartResponse)
async def get_cart(customer_id: str) -> CartResponse:
    cart = current_domain.repository_for(ShoppingCart).find_for_customer(customer_id)
    if cart is None:
        raise ObjectNotFoundError({"customer_id": [f"No cart for customer {customer_id}"]})
    return CartResponse(
        cart_id=str(cart.id),
        customer_id=str(cart.customer_id),
        items=[
            CartLineSchema(
                id=str(item.id),
                handle=item.handle,
                size=item.size,
                quantity=item.quantity,
                selected=item.selected,
            )
            for item in cart.items
        ],
    )


# ---------------------------------------------------------------------------
# Discount Router
# ---------------------------------------------------------------------------
discount_router = APIRouter(prefix="/discounts", tags=["discounts"])


@discount_router.post("", status_code=201, response_model=DiscountCodeResponse)
async def create_discount(body: CreateDiscountRequest) -> DiscountCodeResponse:
    command = CreateDiscount(**body.model_dump(exclude_none=True))
    result = current_domain.process(command, asynchronous=False)
    return DiscountCodeResponse(code=result)


@discount_router.post("/verify", response_model=DiscountCheckResponse)
async def verify_discount_code(body: VerifyDiscountRequest) -> DiscountCheckResponse:
    """Tell the shopper what a code is worth against their subtotal."""
    check = verify_discount(body.code, body.subtotal)
    return DiscountCheckResponse(code=check.code, eligible=check.eligible, amount=check.amount, message=check.message)


@discount_router.post("/{code}/deactivate", response_model=StatusResponse)
async def deactivate_discount(code: str) -> StatusResponse:
    current_domain.process(DeactivateDiscount(code=code), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Saved Address Router
# ---------------------------------------------------------------------------
address_router = APIRouter(prefix="/customers/{customer_id}/addresses", tags=["addresses"])


@address_router.get("", response_model=list[SavedAddressSchema])
async def list_saved_addresses(customer_id: str) -> list[SavedAddressSchema]:
    addresses = current_domain.repository_for(AddressBook).saved_addresses(customer_id)
    return [
        SavedAddressSchema(
            id=str(saved.id),
            label=saved.label,
            is_default=saved.is_default,
            **saved.as_shipping(),
        )
        for saved in addresses
    ]


@address_router.post("", status_code=201, response_model=AddressIdResponse)
async def save_address(customer_id: str, body: SaveAddressRequest) -> AddressIdResponse:
    command = SaveAddress(customer_id=customer_id, **body.model_dump(exclude_none=True))
    result = current_domain.process(command, asynchronous=False)
    return AddressIdResponse(address_id=result)


@address_router.put("/{address_id}/default", response_model=StatusResponse)
async def set_default_address(customer_id: str, address_id: str) -> StatusResponse:
    current_domain.process(SetDefaultAddress(customer_id=customer_id, address_id=address_id), asynchronous=False)
    return StatusResponse()


@address_router.delete("/{address_id}", response_model=StatusResponse)
async def remove_address(customer_id: str, address_id: str) -> StatusResponse:
    current_domain.process(RemoveAddress(customer_id=customer_id, address_id=address_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Checkout Draft Router
# ---------------------------------------------------------------------------
draft_router = APIRouter(prefix="/checkout/draft", tags=["checkout"])


@draft_router.post("", response_model=DraftResponse)
async def begin_checkout(body: BeginCheckoutRequest) -> DraftResponse:
    """Start checkout, or replace the open draft's items; returns recomputed totals."""
    command = BeginCheckout(
        customer_id=body.customer_id,
        cart_id=body.cart_id,
        items=json.dumps([item.model_dump(exclude_none=True) for item in body.items]) if body.items else None,
    )
    draft_id = current_domain.process(command, asynchronous=False)
    return _draft(draft_id)


@draft_router.get("/{draft_id}", response_model=DraftResponse)
async def get_draft(draft_id: str) -> DraftResponse:
    return _draft(draft_id)


@draft_router.put("/{draft_id}/address", response_model=DraftResponse)
async def set_draft_address(draft_id: str, body: SetDraftAddressRequest) -> DraftResponse:
    command = SetDraftAddress(draft_id=draft_id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return _draft(draft_id)


@draft_router.put("/{draft_id}/payment-method", response_model=DraftResponse)
async def set_draft_payment_method(draft_id: str, body: SetPaymentMethodRequest) -> DraftResponse:
    command = SetDraftPaymentMethod(draft_id=draft_id, payment_method=body.payment_method)
    current_domain.process(command, asynchronous=False)
    return _draft(draft_id)


@draft_router.post("/{draft_id}/discount", response_model=DraftResponse)
async def apply_draft_discount(draft_id: str, body: ApplyDiscountRequest) -> DraftResponse:
    current_domain.process(ApplyDraftDiscount(draft_id=draft_id, code=body.code), asynchronous=False)
    return _draft(draft_id)


@draft_router.delete("/{draft_id}/discount", response_model=DraftResponse)
async def remove_draft_discount(draft_id: str) -> DraftResponse:
    current_domain.process(RemoveDraftDiscount(draft_id=draft_id), asynchronous=False)
    return _draft(draft_id)


@draft_router.post("/{draft_id}/abandon", response_model=DraftResponse)
async def abandon_checkout(draft_id: str) -> DraftResponse:
    current_domain.process(AbandonCheckout(draft_id=draft_id), asynchronous=False)
    return _draft(draft_id)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def place_cod_order(body: PlaceCodOrderRequest) -> OrderResponse:
    """Place a cash-on-delivery order from a draft or an explicit payload."""
    order_id = place_order(idempotency_key=body.idempotency_key, **_payload_fields(body))
    return _order_view(current_domain.repository_for(Order).get(order_id))


@order_router.get("", response_model=OrderListResponse)
async def customer_orders(customer_id: str) -> OrderListResponse:
    return OrderListResponse(orders=[_order_view(order) for order in list_orders_for_customer(customer_id)])


@order_router.get("/admin", response_model=OrderListResponse)
async def admin_orders(status: str | None = None) -> OrderListResponse:
    """Staff listing with a count per status."""
    orders, summary = list_orders(status)
    return OrderListResponse(orders=[_order_view(order) for order in orders], summary=summary)


@order_router.get("/track", response_model=OrderResponse)
async def track(number: str | None = None, email: str | None = None, phone: str | None = None) -> OrderResponse:
    return _order_view(track_order(number, email=email, phone=phone))


@order_router.post("/gateway/intent", response_model=IntentResponse)
async def create_gateway_intent(body: CreateIntentRequest) -> IntentResponse:
    """Ask the gateway for a payment order the client can pay against."""
    intent = create_payment_intent(
        receipt=body.receipt,
        amount=body.amount,
        currency=body.currency,
        customer_id=body.customer_id,
        notes=json.dumps(body.notes),
    )
    return IntentResponse(
        key_id=get_gateway().key_id,
        gateway_order_id=intent.gateway_order_id,
        amount=intent.amount_minor,
        currency=intent.currency,
        receipt=intent.receipt,
        prefill=body.prefill,
    )


@order_router.post("/gateway/confirm", response_model=OrderResponse)
async def confirm_gateway(body: ConfirmPaymentRequest) -> OrderResponse:
    """Verify the gateway's signature and materialize the order (once per gateway order)."""
    order = confirm_gateway_payment(
        gateway_order_id=body.gateway_order_id,
        gateway_payment_id=body.gateway_payment_id,
        gateway_signature=body.gateway_signature,
        **_payload_fields(body),
    )
    return _order_view(order)


@order_router.post("/gateway/failure", response_model=StatusResponse)
async def record_gateway_failure(body: PaymentFailureRequest) -> StatusResponse:
    """The shopper dismissed the payment UI or the gateway declined; no order is created."""
    command = RecordPaymentFailure(gateway_order_id=body.gateway_order_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="payment_failed")


@order_router.get("/requests", response_model=RequestListResponse)
async def list_requests(customer_id: str | None = None, order_id: str | None = None) -> RequestListResponse:
    if order_id:
        requests = list_requests_for_order(order_id)
    elif customer_id:
        requests = list_requests_for_customer(customer_id)
    else:
        raise ValidationError({"customer_id": ["Provide a customer_id or an order_id."]})
    return RequestListResponse(requests=[_request_view(request) for request in requests])


@order_router.patch("/requests/{request_id}", response_model=PostPurchaseRequestResponse)
async def review_post_purchase_request(request_id: str, body: ReviewRequestRequest) -> PostPurchaseRequestResponse:
    """Staff decision on a request. The order itself is changed separately."""
    request = review_request(request_id, body.status, reviewed_by=body.reviewed_by, note=body.note)
    return _request_view(request)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    return _order_view(current_domain.repository_for(Order).get(order_id))


@order_router.patch("/{order_id}", response_model=OrderResponse)
async def update_order(order_id: str, body: UpdateOrderRequest) -> OrderResponse:
    """Staff update: move the order through its state machine and/or record shipping details."""
    if body.status is None and body.shipping is None:
        raise ValidationError({"order": ["Provide a status or shipping details."]})

    tracking = body.shipping.model_dump(exclude_none=True) if body.shipping is not None else None
    if body.status is not None:
        transition_order(
            order_id,
            body.status,
            expected_status=body.expected_status,
            changed_by=body.changed_by,
            tracking=tracking,
        )
    else:
        command = UpdateOrderTracking(order_id=order_id, **tracking)
        current_domain.process(command, asynchronous=False)

    return _order_view(current_domain.repository_for(Order).get(order_id))


def _submit(order_id: str, request_type: str, body: SubmitRequestRequest) -> PostPurchaseRequestResponse:
    request = submit_request(
        order_id,
        request_type,
        customer_id=body.customer_id,
        item_ids=body.item_ids,
        reason=body.reason,
        other_reason=body.other_reason,
        comments=body.comments,
        attachments=body.attachments,
        bank_details=body.bank_details.model_dump() if body.bank_details else None,
    )
    return _request_view(request)


@order_router.post("/{order_id}/cancel", status_code=201, response_model=PostPurchaseRequestResponse)
async def request_cancellation(order_id: str, body: SubmitRequestRequest) -> PostPurchaseRequestResponse:
    return _submit(order_id, "CANCEL", body)


@order_router.post("/{order_id}/return", status_code=201, response_model=PostPurchaseRequestResponse)
async def request_return(order_id: str, body: SubmitRequestRequest) -> PostPurchaseRequestResponse:
    return _submit(order_id, "RETURN", body)


@order_router.post("/{order_id}/exchange", status_code=201, response_model=PostPurchaseRequestResponse)
async def request_exchange(order_id: str, body: SubmitRequestRequest) -> PostPurchaseRequestResponse:
    return _submit(order_id, "EXCHANGE", body)


# ---------------------------------------------------------------------------
# Gateway Router (development only)
# ---------------------------------------------------------------------------
gateway_router = APIRouter(prefix="/payments", tags=["payments"])


@gateway_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )
