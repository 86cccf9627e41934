"""
FastAPI application for the storefront: persisted cart, payment
initialization proxy, catalog pass-through and confirmation receipt.
"""
import time
import logging
from typing import Optional
from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError as PydanticValidationError

from storefront.config import Config
from storefront.models import (
    CartItemRequest,
    CartResponse,
    InitializeRequest,
    InitializeResponse,
    QuantityUpdateRequest,
)
from storefront.cart_service import CartStore
from storefront.cart_storage import RedisCartStorage
from storefront.catalog_client import CatalogClient
from storefront.confirmation import Receipt, parse_receipt
from storefront.exceptions import (
    CatalogError,
    GatewayInitError,
    RedisConnectionError,
    ValidationError,
)
from storefront.middleware import MetricsMiddleware
from storefront.paystack_client import PaystackClient, get_paystack_client
from storefront.redis_client import get_redis_client

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Storefront API",
    description="Persisted cart and Paystack checkout for the storefront",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Metrics middleware
app.add_middleware(MetricsMiddleware)


_catalog_client: Optional[CatalogClient] = None

def get_catalog_client() -> CatalogClient:
    """Get or create catalog client instance (singleton)"""
    global _catalog_client
    if _catalog_client is None:
        _catalog_client = CatalogClient()
    return _catalog_client


def get_cart_store(
    cart_id: str = Header(..., alias="X-Cart-ID", description="Cart identifier"),
    redis_client=Depends(get_redis_client),
) -> CartStore:
    """Rehydrate the cart for the requesting session"""
    if not cart_id or not cart_id.strip():
        raise ValidationError("Cart ID is required")

    cart_id = cart_id.strip()
    return CartStore(RedisCartStorage(redis_client, cart_id), cart_id=cart_id)


# Health check endpoint for ALB
@app.get("/health")
async def health_check():
    """
    Health check endpoint for ALB.
    Always returns HTTP 200 if the application is running.
    Checks Redis connectivity but does not fail if Redis is unavailable.
    """
    redis_status = "healthy"
    redis_latency_ms = None

    try:
        redis_client = get_redis_client()
        ping_start = time.time()
        ping_result = redis_client.ping()
        redis_latency_ms = round((time.time() - ping_start) * 1000, 2)

        if not ping_result:
            redis_status = "unhealthy"
    except RedisConnectionError:
        redis_status = "unhealthy"

    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "service": "storefront-api",
            "redis": {
                "status": redis_status,
                "latency_ms": redis_latency_ms
            },
            "timestamp": time.time()
        }
    )


# Cart endpoints
@app.get("/cart", response_model=CartResponse)
async def get_cart(cart: CartStore = Depends(get_cart_store)):
    """Get cart contents with subtotal, VAT and total"""
    return cart.to_response()


@app.post("/cart/items", response_model=CartResponse)
async def add_cart_item(request: CartItemRequest, cart: CartStore = Depends(get_cart_store)):
    """
    Add one unit of a product.
    Repeated adds of the same product only increase its quantity.
    """
    cart.add_to_cart(request)
    return cart.to_response()


@app.patch("/cart/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: str,
    request: QuantityUpdateRequest,
    cart: CartStore = Depends(get_cart_store),
):
    """Set a line's quantity; values below 1 are clamped to 1"""
    cart.update_quantity(product_id, request.quantity)
    return cart.to_response()


@app.delete("/cart/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(product_id: str, cart: CartStore = Depends(get_cart_store)):
    """Remove a line; removing an unknown product is not an error"""
    cart.remove_from_cart(product_id)
    return cart.to_response()


# Payment initialization proxy
@app.post("/api/paystack")
async def initialize_payment(
    request: Request,
    paystack: PaystackClient = Depends(get_paystack_client),
):
    """
    Initialize a Paystack transaction.
    Only the access code is returned; the upstream body is never forwarded.
    """
    try:
        body = await request.json()

        try:
            payload = InitializeRequest.model_validate(body)
        except PydanticValidationError:
            payload = None

        # Amount must be a positive integer in minor units
        if payload is None or not payload.email or payload.amount is None or payload.amount <= 0:
            return JSONResponse(
                status_code=422,
                content={"error": "email and a positive amount are required"}
            )

        access_code = await paystack.initialize_transaction(
            email=payload.email,
            amount=payload.amount,
            reference=payload.ref,
            firstname=payload.firstname,
            lastname=payload.lastname,
            phone=payload.phone,
            metadata=payload.metadata,
        )
        return InitializeResponse(access_code=access_code)

    except GatewayInitError as e:
        return JSONResponse(status_code=400, content={"error": e.message})
    except Exception as e:
        logger.error(f"[paystack/initialize] {type(e).__name__}: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Catalog pass-through
@app.get("/products")
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(Config.CATALOG_PAGE_SIZE, ge=1),
    category: Optional[str] = Query(None),
    name: Optional[str] = Query(None, description="Search term"),
    catalog: CatalogClient = Depends(get_catalog_client),
):
    """One page of products from the remote catalog"""
    result = await catalog.fetch_products(page, limit, category, name)
    return {
        "data": [product.model_dump(mode="json") for product in result.data],
        "meta": {"hasNextPage": result.has_next_page},
    }


@app.get("/confirmation", response_model=Receipt)
async def confirmation(request: Request):
    """Receipt for the confirmation view, read from the redirect's query"""
    return parse_receipt(request.query_params)


# Error handlers
@app.exception_handler(ValidationError)
async def validation_error_handler(request, exc):
    return JSONResponse(
        status_code=400,
        content={"error": "Validation error", "message": str(exc), "errors": exc.field_errors}
    )


@app.exception_handler(RedisConnectionError)
async def redis_error_handler(request, exc):
    return JSONResponse(
        status_code=503,
        content={"error": "Service unavailable", "message": "Redis connection failed"}
    )


@app.exception_handler(CatalogError)
async def catalog_error_handler(request, exc):
    logger.warning(f"Catalog request failed: {exc.message}", extra={"upstream_status": exc.status_code})
    return JSONResponse(
        status_code=502,
        content={"error": "Catalog unavailable", "message": exc.message}
    )


# Generic exception handler for unhandled errors
@app.exception_handler(Exception)
async def generic_exception_handler(request, exc):
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=Config.APP_PORT)
