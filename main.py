"""
Storefront - Application Entry Point
======================================
FastAPI app initialization, error rendering, middleware, and router registration.
"""

import logging
import time as _time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config import settings
from common.exceptions import StorefrontError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("storefront.http")


# ==========================================
# Import ALL models so Base.metadata sees every table
# ==========================================
from modules.user.models import User  # noqa: F401,E402
from modules.catalog.models import Product  # noqa: F401,E402
from modules.inventory.models import StockMovement  # noqa: F401,E402
from modules.cart.models import CartItem  # noqa: F401,E402
from modules.order.models import Order, OrderItem, OrderStatusLog  # noqa: F401,E402

# ==========================================
# Import routers
# ==========================================
from modules.cart.routes import router as cart_router  # noqa: E402
from modules.order.routes import router as order_router  # noqa: E402
from modules.order.admin_routes import router as order_admin_router  # noqa: E402
from modules.catalog.routes import router as catalog_router  # noqa: E402
from modules.catalog.admin_routes import router as catalog_admin_router  # noqa: E402
from modules.user.admin_routes import router as user_admin_router  # noqa: E402


# ==========================================
# Create App
# ==========================================
app = FastAPI(
    title="Storefront",
    description="Cart, checkout and order lifecycle with stock-consistent placement",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)


# ==========================================
# Exception handlers: business errors → JSON
# ==========================================
@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    """Render every business error as {"error": {code, message, retryable, ...}}."""
    if exc.status_code >= 500 or exc.retryable:
        logger.warning(f"{request.method} {request.url.path} -> {exc.code}: {exc.message}")
    return JSONResponse({"error": exc.to_dict()}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {
            "error": {
                "code": "VALIDATION_FAILED",
                "message": "Request validation failed.",
                "retryable": False,
                "fields": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
                    for err in exc.errors()
                ],
            }
        },
        status_code=422,
    )


# ==========================================
# Middleware: Request Log
# ==========================================
_SKIP_PATHS = ("/health", "/favicon.ico")


@app.middleware("http")
async def request_logger(request: Request, call_next):
    """Log method, path, status and elapsed time for every request."""
    path = request.url.path
    if path in _SKIP_PATHS:
        return await call_next(request)

    start = _time.time()
    response = await call_next(request)
    elapsed_ms = int((_time.time() - start) * 1000)
    logger.info(f"{request.method} {path} {response.status_code} {elapsed_ms}ms")
    return response


# ==========================================
# Register Routers
# ==========================================
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(order_admin_router)
app.include_router(catalog_router)
app.include_router(catalog_admin_router)
app.include_router(user_admin_router)


# ==========================================
# Health check
# ==========================================
@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
