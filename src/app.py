"""Storefront checkout FastAPI application.

Processes checkout, order administration, coupon, shipping and cart
commands synchronously via HTTP. Every ordering request runs inside the
ordering domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay of domain.toml is applied:
#   - "test"       → in-memory adapters
#   - "sqlite"     → local sqlite file (create tables with `manage.py setup-db`)
#   - "production" → debug off, JSON logs
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ordering.domain import ordering  # noqa: E402
from ordering.utils.logging import configure_logging
from protean.integrations.fastapi import register_exception_handlers

configure_logging()
ordering.init()

_ORDERING_PREFIXES = ("/checkout", "/orders", "/coupons", "/shipping-zones", "/carts", "/gateways")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Checkout API",
    description="Checkout, payment dispatch and order lifecycle for the storefront",
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
    """Push the ordering domain context for every ordering route."""
    if request.url.path.startswith(_ORDERING_PREFIXES):
        with ordering.domain_context():
            response = await call_next(request)
        return response
    # Health check, docs, etc.
    return await call_next(request)


# ValidationError → 400, ObjectNotFoundError → 404, InvalidOperationError → 400
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api import (  # noqa: E402
    cart_router,
    checkout_router,
    coupon_router,
    gateway_router,
    order_router,
    shipping_router,
)

app.include_router(checkout_router)
app.include_router(order_router)
app.include_router(coupon_router)
app.include_router(shipping_router)
app.include_router(cart_router)
app.include_router(gateway_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": ordering.name})
