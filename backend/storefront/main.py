"""
Storefront Backend Application.

Multi-vendor shop API: public catalog, guest and customer carts,
cash-on-delivery checkout, reviews, wishlists, seller and admin back-offices.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from loguru import logger

from storefront import __version__
from storefront.api.v1 import router as api_v1_router
from storefront.core.config import settings
from storefront.core.database import close_db, init_db
from storefront.core.exceptions import register_exception_handlers
from storefront.core.logging import setup_logging

API_DESCRIPTION = """
Storefront marketplace API.

* **Catalog**: browse, search and filter active products by category, brand and tag
* **Cart**: guest carts keyed by session, customer carts, merge at login
* **Checkout**: cash-on-delivery orders with price snapshots and stock decrement
* **Customers**: reviews, wishlists, saved addresses and profile
* **Sellers**: one store per seller, product listings, fulfilment of their order lines
* **Admins**: catalog attributes, seller approval, marketplace-wide orders

Every response is wrapped in `{success, message, data | error, statusCode}`.
"""


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging and the database for the lifetime of the app."""
    setup_logging()
    logger.info(f"Starting {settings.app_name} v{__version__} (debug={settings.debug})")

    await init_db()
    logger.info("Database tables ready")

    yield

    logger.info(f"Stopping {settings.app_name}")
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=API_DESCRIPTION,
    openapi_url=f"{settings.api_v1_prefix}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)
app.include_router(api_v1_router, prefix=settings.api_v1_prefix)


@app.get("/health", tags=["System"])
async def health_check() -> dict:
    """Liveness probe."""
    return {"status": "healthy", "version": settings.app_version}


@app.get("/", tags=["System"])
async def root() -> dict:
    """Service name and where to find the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "api": settings.api_v1_prefix,
        "docs": "/docs",
        "paymentMethods": [settings.payment_method],
    }
