"""
Shop Module - Customer-facing commerce.

Features:
- Public product catalog
- Guest and customer carts with session-to-account merging
- Checkout with stock reservation and price snapshots
- Order lifecycle
- Product reviews
"""

from storefront.modules.shop.cart import CartService
from storefront.modules.shop.orders import OrderService
from storefront.modules.shop.reviews import ReviewService
from storefront.modules.shop.service import ShopService

__all__ = [
    "CartService",
    "OrderService",
    "ReviewService",
    "ShopService",
]
