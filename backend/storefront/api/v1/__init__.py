"""
API Version 1 Router.

Combines all API endpoints under /api/v1 prefix.
"""

from fastapi import APIRouter

from storefront.api.v1.endpoints import (
    account,
    admin,
    auth,
    cart,
    catalog,
    orders,
    reviews,
    seller,
    wishlists,
)

router = APIRouter()

# Include endpoint routers
router.include_router(auth.router, prefix="/auth", tags=["Auth"])
router.include_router(catalog.router, prefix="/products", tags=["Catalog"])
router.include_router(cart.router, prefix="/cart", tags=["Cart"])
router.include_router(orders.router, tags=["Orders"])
router.include_router(reviews.router, prefix="/reviews", tags=["Reviews"])
router.include_router(wishlists.router, prefix="/wishlists", tags=["Wishlists"])
router.include_router(account.router, tags=["Account"])
router.include_router(seller.router, prefix="/seller", tags=["Seller"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])
