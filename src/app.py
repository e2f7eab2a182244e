"""Checkout FastAPI application.

Web server that processes checkout commands synchronously via HTTP. Each
request under a checkout route runs inside the checkout domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied.
from checkout.domain import checkout  # noqa: E402
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

checkout.init()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_CHECKOUT_PREFIXES = (
    "/products",
    "/carts",
    "/discounts",
    "/customers",
    "/checkout",
    "/orders",
    "/payments",
)


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    if path.startswith(_CHECKOUT_PREFIXES):
        return checkout
    return None


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Checkout API",
    description="Cart to order: pricing, checkout drafts, payments and post-purchase requests",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the checkout domain context for checkout routes."""
    domain = _resolve_domain(request.url.path)
    if domain is not None:
        with domain.domain_context():
            response = await call_next(request)
        return response
    # No domain match: pass through (health check, docs, etc.)
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from checkout.api import register_checkout_error_handlers, routers  # noqa: E402

for router in routers:
    app.include_router(router)

register_checkout_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domains": {"checkout": {"name": checkout.name}}})
